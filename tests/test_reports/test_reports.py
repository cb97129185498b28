"""Tests for text report generation."""

from datetime import date
from decimal import Decimal

from taxreturn.models.enums import Form8949Category
from taxreturn.models.schedules import Form8949Row, ScheduleD
from taxreturn.models.tax_return import Form1040, StateTaxReturn, TaxReturn
from taxreturn.reports import Form1040Generator, Form8949Generator, ScheduleDGenerator
from taxreturn.reports.filters import pct, usd


def _row(description, category, gain, short=True, **kwargs) -> Form8949Row:
    proceeds = kwargs.pop("proceeds", Decimal("1000.00"))
    return Form8949Row(
        tax_return_id="r1",
        description=description,
        date_acquired=date(2024, 1, 15),
        date_sold=date(2024, 6, 20),
        proceeds=proceeds,
        cost_basis=proceeds - gain,
        gain_or_loss=gain,
        is_short_term=short,
        category=category,
        **kwargs,
    )


class TestFilters:
    def test_usd(self):
        assert usd(Decimal("1234.5")) == "$1,234.50"
        assert usd(Decimal("-800")) == "($800.00)"
        assert usd(None) == "-"

    def test_pct(self):
        assert pct(Decimal("0.1211")) == "12.11%"


class TestForm8949Generator:
    def test_group_skips_excluded_and_empty_boxes(self):
        rows = [
            _row("AAPL", Form8949Category.A, Decimal("3000.00")),
            _row("GOOG", Form8949Category.D, Decimal("1000.00"), short=False),
            _row("DUP", Form8949Category.A, Decimal("5.00"), excluded=True),
        ]
        grouped = Form8949Generator.group(rows)
        assert list(grouped) == [Form8949Category.A, Form8949Category.D]
        assert [r.description for r in grouped[Form8949Category.A]] == ["AAPL"]

    def test_render(self):
        rows = [
            _row("AAPL", Form8949Category.A, Decimal("3000.00"), proceeds=Decimal("15000.00")),
            _row(
                "MSFT", Form8949Category.A, Decimal("-800.00"), proceeds=Decimal("5000.00"),
                adjustment_code="W", adjustment_amount=Decimal("200.00"), wash_sale=True,
            ),
            _row(
                "Mystery lot", Form8949Category.B, Decimal("10.00"),
                needs_review=True, review_reason="missing cost basis",
            ),
        ]
        text = Form8949Generator().render(rows)

        assert "FORM 8949" in text
        assert "Box A" in text
        assert "Box B" in text
        assert "$15,000.00" in text
        assert "($800.00)" in text
        assert "$20,000.00" in text  # Box A proceeds total
        assert "Part II - Long-Term" in text
        assert "(no transactions)" in text
        assert "Mystery lot: missing cost basis" in text


class TestScheduleDGenerator:
    def test_render(self):
        schedule = ScheduleD(
            tax_return_id="r1",
            short_term_proceeds=Decimal("20000.00"),
            short_term_cost_basis=Decimal("18000.00"),
            short_term_adjustments=Decimal("200.00"),
            short_term_gain_loss=Decimal("2200.00"),
            net_short_term_gain_loss=Decimal("2200.00"),
            long_term_gain_loss=Decimal("1000.00"),
            net_long_term_gain_loss=Decimal("1000.00"),
            total_gain_loss=Decimal("3200.00"),
        )
        text = ScheduleDGenerator().render(schedule)
        assert "SCHEDULE D" in text
        assert "Line 7" in text
        assert "$2,200.00" in text
        assert "Line 16 Total" in text
        assert "$3,200.00" in text


class TestForm1040Generator:
    def _return(self):
        return TaxReturn(id="r1", tax_year=2024)

    def test_refund(self):
        form = Form1040(
            tax_return_id="r1",
            wages=Decimal("60000.00"),
            total_income=Decimal("60000.00"),
            adjusted_gross_income=Decimal("60000.00"),
            standard_deduction=Decimal("14600.00"),
            taxable_income=Decimal("45400.00"),
            tax=Decimal("5216.00"),
            total_tax=Decimal("5216.00"),
            federal_withheld=Decimal("8000.00"),
            refund_or_owed=Decimal("2784.00"),
        )
        states = [
            StateTaxReturn(tax_return_id="r1", state="CA", state_tax=Decimal("2000.00")),
            StateTaxReturn(tax_return_id="r1", state="TX", has_income_tax=False),
        ]
        text = Form1040Generator().render(self._return(), form, states, ["W-2 wages look low"])

        assert "FORM 1040" in text
        assert "(2024)" in text
        assert "$45,400.00" in text
        assert "34  Refund" in text
        assert "$2,784.00" in text
        assert "TX (no state income tax)" in text
        assert "! W-2 wages look low" in text

    def test_amount_owed_and_carryforward(self):
        form = Form1040(
            tax_return_id="r1",
            capital_gains=Decimal("-3000.00"),
            capital_loss_carryforward=Decimal("7000.00"),
            total_tax=Decimal("500.00"),
            refund_or_owed=Decimal("-500.00"),
        )
        text = Form1040Generator().render(self._return(), form)

        assert "37  Amount you owe" in text
        assert "$500.00" in text
        assert "($3,000.00)" in text
        assert "Capital loss carryforward" in text
        assert "State Returns" not in text
