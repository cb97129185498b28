"""Tests for document classification."""

import logging

from taxreturn.models.enums import DocumentType
from taxreturn.parsing.classifier import classify, matching_types, normalize_text


class TestClassify:
    def test_sample_documents(self, w2_text, int_text, div_text, b_text):
        assert classify(w2_text) == DocumentType.W2
        assert classify(int_text) == DocumentType.FORM_1099INT
        assert classify(div_text) == DocumentType.FORM_1099DIV
        assert classify(b_text) == DocumentType.FORM_1099B

    def test_case_and_dash_insensitive(self):
        assert classify("FORM W\u20112 2024") == DocumentType.W2
        assert classify("form   1099\u2013div") == DocumentType.FORM_1099DIV

    def test_keyword_combination(self):
        text = "Proceeds 100.00\nCost basis 50.00\nDate sold 01/02/2024"
        assert classify(text) == DocumentType.FORM_1099B

    def test_partial_combination_does_not_match(self):
        assert classify("Cost basis 50.00") == DocumentType.UNKNOWN

    def test_unknown(self):
        assert classify("Grocery receipt\nBananas 1.99") == DocumentType.UNKNOWN
        assert classify("") == DocumentType.UNKNOWN

    def test_consolidated_statement_is_1099b(self, caplog):
        text = "Form 1099-DIV Dividends\nForm 1099-INT Interest\nForm 1099-B Proceeds"
        with caplog.at_level(logging.WARNING):
            assert classify(text) == DocumentType.FORM_1099B
        assert "several document types" in caplog.text

    def test_deterministic(self, div_text):
        assert {classify(div_text) for _ in range(5)} == {DocumentType.FORM_1099DIV}


class TestMatchingTypes:
    def test_priority_order(self):
        text = "Form W-2 and Form 1099-INT and Form 1099-B"
        assert matching_types(text) == [DocumentType.FORM_1099B, DocumentType.FORM_1099INT, DocumentType.W2]

    def test_no_duplicates(self):
        assert matching_types("Form 1099-B Proceeds from broker") == [DocumentType.FORM_1099B]


def test_normalize_text():
    assert normalize_text("  Form\tW\u20142\n\nWAGES ") == "form w-2 wages"
