"""Form 1099-DIV (Dividends) text extractor."""

import re
from typing import Any

from taxreturn.parsing.base import BaseExtractor, amount_pattern

PAYER_PATTERN = re.compile(
    r"(?:Payer|Filer)(?:'?s?)?\s*name[^\n:]*(?::[ \t]*([^\n]+)|\n\s*([^\n]+))", re.IGNORECASE
)
PAYER_TIN_PATTERN = re.compile(
    r"Payer'?s?\s*(?:TIN|federal\s*identification\s*number|identification\s*number)[^\d]*?(\d{2}-\d{7})",
    re.IGNORECASE,
)


class Form1099DIVExtractor(BaseExtractor):
    """Extracts Form 1099-DIV data from document text."""

    EXPECTED_FIELDS = (
        "payer_name",
        "payer_tin",
        "ordinary_dividends",
        "qualified_dividends",
        "total_capital_gain",
    )

    PATTERNS = {
        "ordinary_dividends": amount_pattern(r"Box\s*1a\b|(?:Total\s+)?ordinary\s+dividends"),
        "qualified_dividends": amount_pattern(r"Box\s*1b\b|Qualified\s+dividends"),
        "total_capital_gain": amount_pattern(r"Box\s*2a\b|Total\s+capital\s+gain(?:\s+distr\.?|\s+distributions)?"),
        "federal_withheld": amount_pattern(r"Box\s*4\b|Federal\s*income\s*tax\s*withheld"),
        "foreign_tax_paid": amount_pattern(r"Box\s*7\b|Foreign\s+tax\s+paid"),
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

    def get_warnings(self, fields: dict[str, Any]) -> list[str]:
        ordinary = fields.get("ordinary_dividends")
        qualified = fields.get("qualified_dividends")
        if ordinary is not None and qualified is not None and qualified > ordinary:
            return [f"Qualified dividends (${qualified}) exceed ordinary dividends (${ordinary})."]
        return []
