"""Tests for 1099-INT and 1099-DIV text extraction."""

from decimal import Decimal

import pytest

from taxreturn.models.enums import DocumentType
from taxreturn.parsing.extractors import get_extractor, supported_types
from taxreturn.parsing.extractors.form_1099div import Form1099DIVExtractor
from taxreturn.parsing.extractors.form_1099int import Form1099INTExtractor


class TestForm1099INTExtractor:
    def setup_method(self):
        self.extractor = Form1099INTExtractor()

    def test_extract(self, int_text):
        data = self.extractor.extract(int_text)
        assert data["payer_name"] == "First National Bank"
        assert data["payer_tin"] == "11-2233445"
        assert data["interest_income"] == Decimal("1500.00")
        assert data["early_withdrawal_penalty"] == Decimal("0.00")
        assert data["us_bond_interest"] == Decimal("0.00")
        assert data["federal_withheld"] == Decimal("100.00")
        assert self.extractor.confidence(data) == 1.0

    def test_box_layout(self):
        data = self.extractor.extract("Box 1 $250.75\nBox 4 $25.00")
        assert data["interest_income"] == Decimal("250.75")
        assert data["federal_withheld"] == Decimal("25.00")

    def test_no_warnings(self):
        assert self.extractor.get_warnings({}) == []


class TestForm1099DIVExtractor:
    def setup_method(self):
        self.extractor = Form1099DIVExtractor()

    def test_extract(self, div_text):
        data = self.extractor.extract(div_text)
        assert data["payer_name"] == "Vanguard Group"
        assert data["ordinary_dividends"] == Decimal("1234.56")
        assert data["qualified_dividends"] == Decimal("987.65")
        assert data["total_capital_gain"] == Decimal("500.00")
        assert data["federal_withheld"] == Decimal("0.00")
        assert self.extractor.confidence(data) == 1.0

    def test_qualified_exceeds_ordinary_warning(self):
        warnings = self.extractor.get_warnings(
            {"ordinary_dividends": Decimal("10"), "qualified_dividends": Decimal("20")}
        )
        assert len(warnings) == 1


class TestExtractorFactory:
    def test_all_types(self):
        assert set(supported_types()) == {
            DocumentType.W2,
            DocumentType.FORM_1099DIV,
            DocumentType.FORM_1099INT,
            DocumentType.FORM_1099B,
        }

    def test_unknown_raises(self):
        with pytest.raises(KeyError):
            get_extractor(DocumentType.UNKNOWN)
