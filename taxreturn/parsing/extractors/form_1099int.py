"""Form 1099-INT (Interest Income) text extractor."""

from typing import Any

from taxreturn.parsing.base import BaseExtractor, amount_pattern
from taxreturn.parsing.extractors.form_1099div import PAYER_PATTERN, PAYER_TIN_PATTERN


class Form1099INTExtractor(BaseExtractor):
    """Extracts Form 1099-INT data from document text."""

    EXPECTED_FIELDS = (
        "payer_name",
        "payer_tin",
        "interest_income",
        "early_withdrawal_penalty",
        "us_bond_interest",
        "federal_withheld",
    )

    PATTERNS = {
        "interest_income": amount_pattern(r"Box\s*1\b|1\s+Interest\s+income|Interest\s+income\s*:"),
        "early_withdrawal_penalty": amount_pattern(r"Box\s*2\b|Early\s+withdrawal\s+penalty"),
        "us_bond_interest": amount_pattern(
            r"Box\s*3\b|Interest\s+on\s+U\.?\s?S\.?\s+Savings\s+Bonds(?:\s+and\s+Treas(?:ury|\.)\s+obligations)?"
        ),
        "federal_withheld": amount_pattern(r"Box\s*4\b|Federal\s*income\s*tax\s*withheld"),
    }

    def extract(self, text: str) -> dict[str, Any]:
        result: dict[str, Any] = {}

        payer = self._search_text(text, PAYER_PATTERN)
        if payer:
            result["payer_name"] = payer

        tin_match = PAYER_TIN_PATTERN.search(text)
        if tin_match:
            result["payer_tin"] = tin_match.group(1)

        result.update(self._search_amounts(text, self.PATTERNS))
        return result
