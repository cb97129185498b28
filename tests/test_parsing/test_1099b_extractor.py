"""Tests for Form 1099-B text extraction."""

from datetime import date
from decimal import Decimal

from taxreturn.parsing.extractors.form_1099b import Form1099BExtractor


class TestForm1099BExtractor:
    def setup_method(self):
        self.extractor = Form1099BExtractor()

    def test_header(self, b_text):
        data = self.extractor.extract(b_text)
        assert data["payer_name"] == "Example Brokerage LLC"
        assert data["payer_tin"] == "98-7654321"

    def test_entries(self, b_text):
        entries = self.extractor.extract(b_text)["entries"]
        assert len(entries) == 3

        aapl, msft, goog = entries
        assert aapl["description"] == "100 sh AAPL"
        assert aapl["date_acquired"] == date(2024, 1, 15)
        assert aapl["date_sold"] == date(2024, 6, 20)
        assert aapl["proceeds"] == Decimal("15000.00")
        assert aapl["cost_basis"] == Decimal("12000.00")
        assert aapl["gain_loss"] == Decimal("3000.00")
        assert aapl["is_short_term"] is True
        assert aapl["reported_to_irs"] is True
        assert "wash_sale" not in aapl

        assert msft["wash_sale"] is True
        assert msft["wash_sale_amount"] == Decimal("200.00")
        assert msft["gain_loss"] == Decimal("-800.00")

        assert goog["is_short_term"] is False
        assert goog["gain_loss"] == Decimal("1000.00")

    def test_broker_subtotals(self, b_text):
        data = self.extractor.extract(b_text)
        assert data["short_term_gain_loss"] == Decimal("2200.00")
        assert data["long_term_gain_loss"] == Decimal("1000.00")

    def test_confidence(self, b_text):
        data = self.extractor.extract(b_text)
        assert self.extractor.confidence(data) == 1.0
        assert self.extractor.missing_fields(data) == []

    def test_noncovered_section(self):
        text = (
            "Long-term transactions for noncovered tax lots (basis not reported to the IRS)\n"
            "XYZ Corp various 03/04/2024 900.00 400.00"
        )
        (entry,) = self.extractor.extract(text)["entries"]
        assert entry["reported_to_irs"] is False
        assert entry["is_short_term"] is False
        assert "date_acquired" not in entry

    def test_summary_layout(self):
        text = "Description: 10 sh ACME\nProceeds: $1,500.00\nCost basis: $1,000.00"
        data = self.extractor.extract(text)
        (entry,) = data["entries"]
        assert entry["description"] == "10 sh ACME"
        assert entry["proceeds"] == Decimal("1500.00")
        assert entry["cost_basis"] == Decimal("1000.00")

    def test_no_entries(self):
        data = self.extractor.extract("Payer's name: Broker")
        assert data["entries"] == []
        assert "entries" in self.extractor.missing_fields(data)
        assert self.extractor.confidence(data) == 0.5 / 3

    def test_missing_entry_fields_lower_confidence(self):
        data = {
            "payer_name": "B",
            "payer_tin": "12-3456789",
            "entries": [{"description": "X", "proceeds": Decimal("1")}],
        }
        assert self.extractor.confidence(data) == (1 + 2 * 0.4) / 3
        assert "entries[1].cost_basis" in self.extractor.missing_fields(data)

    def test_warning_for_empty_lot(self):
        assert self.extractor.get_warnings({"entries": [{"description": "X"}]})
