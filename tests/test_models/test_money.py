"""Tests for fixed-precision money parsing and quantization."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from taxreturn.models.money import money, parse_currency, rate
from taxreturn.models.tax_forms import W2Data


class TestParseCurrency:
    def test_plain_and_formatted(self):
        assert parse_currency("12,345.67") == Decimal("12345.67")
        assert parse_currency("$1,000") == Decimal("1000")
        assert parse_currency("$ 50.00") == Decimal("50.00")

    def test_parentheses_are_negative(self):
        assert parse_currency("(1,234.56)") == Decimal("-1234.56")

    def test_minus_sign(self):
        assert parse_currency("-12.00") == Decimal("-12.00")

    def test_blank_and_garbage(self):
        assert parse_currency("") is None
        assert parse_currency("   ") is None
        assert parse_currency("n/a") is None
        assert parse_currency(None) is None

    def test_passthrough_types(self):
        assert parse_currency(Decimal("1.5")) == Decimal("1.5")
        assert parse_currency(7) == Decimal("7")


class TestRounding:
    def test_money_rounds_half_up(self):
        assert money(Decimal("0.005")) == Decimal("0.01")
        assert money(Decimal("2.345")) == Decimal("2.35")
        assert money(Decimal("-2.345")) == Decimal("-2.35")

    def test_rate_has_four_places(self):
        assert rate(Decimal("0.123456")) == Decimal("0.1235")


class TestMoneyField:
    def test_string_is_quantized(self):
        w2 = W2Data(tax_return_id="r1", wages="60,000")
        assert w2.wages == Decimal("60000.00")
        assert str(w2.wages) == "60000.00"

    def test_float_rejected(self):
        with pytest.raises(ValidationError):
            W2Data(tax_return_id="r1", wages=60000.5)

    def test_unparseable_rejected(self):
        with pytest.raises(ValidationError):
            W2Data(tax_return_id="r1", wages="sixty thousand")

    def test_optional_money_accepts_none(self):
        w2 = W2Data(tax_return_id="r1", state_wages=None)
        assert w2.state_wages is None
        assert w2.wages == Decimal("0.00")
