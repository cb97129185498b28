"""Prompt templates for LLM-assisted field extraction."""

from taxreturn.models.enums import DocumentType

SYSTEM_PROMPT = """\
You are a precise tax document data extractor. \
You extract structured data from the text of U.S. tax forms.

Rules:
- Return ONLY valid JSON. No commentary, no markdown fences, no explanation.
- All monetary values as strings with exactly 2 decimal places (e.g., "250000.00"). Losses are negative.
- All dates in ISO format: YYYY-MM-DD.
- Identification numbers in the text have been redacted. Set SSN, EIN, TIN and account number fields to null.
- If a field is not present in the text, set it to null. Never guess a value.
- Include a "confidence" field between 0.0 and 1.0 stating how sure you are of the extraction as a whole.
"""

W2_PROMPT = """Extract the W-2 (Wage and Tax Statement) fields from the document text below.

Box 1 (wages) and Box 2 (federal income tax withheld) are separate boxes. Box 2 is always less than Box 1.

Return JSON in this exact format:
{
  "employer_name": "Company Name",
  "employer_ein": null,
  "wages": "60000.00",
  "federal_withheld": "8000.00",
  "social_security_wages": "60000.00",
  "social_security_withheld": "3720.00",
  "medicare_wages": "60000.00",
  "medicare_withheld": "870.00",
  "state": "CA",
  "state_wages": "60000.00",
  "state_withheld": "2500.00",
  "confidence": 0.9
}
"""

FORM_1099DIV_PROMPT = """Extract the Form 1099-DIV fields from the document text below.

Return JSON in this exact format:
{
  "payer_name": "Brokerage Name",
  "payer_tin": null,
  "ordinary_dividends": "1200.00",
  "qualified_dividends": "800.00",
  "total_capital_gain": "150.00",
  "federal_withheld": "0.00",
  "foreign_tax_paid": "12.00",
  "confidence": 0.9
}

"qualified_dividends" is Box 1b and is part of Box 1a, never added to it.
"""

FORM_1099INT_PROMPT = """Extract the Form 1099-INT fields from the document text below.

Return JSON in this exact format:
{
  "payer_name": "Bank Name",
  "payer_tin": null,
  "interest_income": "450.00",
  "early_withdrawal_penalty": "0.00",
  "us_bond_interest": "0.00",
  "federal_withheld": "0.00",
  "confidence": 0.9
}
"""

FORM_1099B_PROMPT = """Extract the Form 1099-B data from the document text below.

Return one entry per sale. Use is_short_term true for short-term sections, false for long-term, \
null when the text does not say. Set reported_to_irs to false only for lots whose basis is not reported to the IRS. \
wash_sale_amount is the wash sale loss disallowed (Box 1g) as a positive number.

Return JSON in this exact format:
{
  "payer_name": "Brokerage Name",
  "payer_tin": null,
  "short_term_gain_loss": "3000.00",
  "long_term_gain_loss": null,
  "entries": [
    {
      "description": "100 sh AAPL",
      "date_acquired": "2023-01-15",
      "date_sold": "2024-06-20",
      "proceeds": "18000.00",
      "cost_basis": "15000.00",
      "gain_loss": "3000.00",
      "is_short_term": true,
      "wash_sale": false,
      "wash_sale_amount": "0.00",
      "reported_to_irs": true
    }
  ],
  "confidence": 0.9
}
"""

FORM_PROMPTS: dict[DocumentType, str] = {
    DocumentType.W2: W2_PROMPT,
    DocumentType.FORM_1099DIV: FORM_1099DIV_PROMPT,
    DocumentType.FORM_1099INT: FORM_1099INT_PROMPT,
    DocumentType.FORM_1099B: FORM_1099B_PROMPT,
}


def build_user_prompt(document_type: DocumentType, text: str) -> str:
    return f"{FORM_PROMPTS[document_type]}\nDocument text:\n<document>\n{text}\n</document>\n"
