"""W-2 text extractor."""

import re
from typing import Any

from taxreturn.parsing.base import BaseExtractor, amount_pattern


class W2Extractor(BaseExtractor):
    """Extracts W-2 box values from document text."""

    EXPECTED_FIELDS = (
        "employer_name",
        "employer_ein",
        "wages",
        "federal_withheld",
        "social_security_wages",
        "social_security_withheld",
        "medicare_wages",
        "medicare_withheld",
    )

    # Box label or bare "Box N" precedes the value on most W-2 layouts
    PATTERNS = {
        "wages": amount_pattern(r"1\s+Wages,?\s*tips|Wages,\s*tips,?\s*other\s*comp\w*|Box\s*1\b|\bwages\s*:"),
        "federal_withheld": amount_pattern(r"Federal\s*income\s*tax\s*withheld|Box\s*2\b"),
        "social_security_wages": amount_pattern(r"Social\s*security\s*wages|Box\s*3\b"),
        "social_security_withheld": amount_pattern(r"Social\s*security\s*tax\s*withheld|Box\s*4\b"),
        "medicare_wages": amount_pattern(r"Medicare\s*wages(?:\s*and\s*tips)?|Box\s*5\b"),
        "medicare_withheld": amount_pattern(r"Medicare\s*tax\s*withheld|Box\s*6\b"),
        "state_wages": amount_pattern(r"16\s+State\s*wages|State\s*wages,\s*tips|Box\s*16\b"),
        "state_withheld": amount_pattern(r"17\s+State\s*income\s*tax|Box\s*17\b"),
    }

    EMPLOYER_PATTERN = re.compile(
        r"Employer'?s?\s*name[^\n:]*(?::[ \t]*([^\n]+)|\n\s*([^\n]+))", re.IGNORECASE
    )

    EIN_PATTERN = re.compile(
        r"(?:Employer'?s?\s*(?:identification\s*number|EIN|ID\s*no))[^\d]*?(\d{2}-\d{7})",
        re.IGNORECASE,
    )

    STATE_PATTERN = re.compile(r"(?i:15\s+State|Box\s*15)[^A-Za-z\n]*\b([A-Z]{2})\b")

    def extract(self, text: str) -> dict[str, Any]:
        result: dict[str, Any] = {}

        employer = self._search_text(text, self.EMPLOYER_PATTERN)
        if employer:
            result["employer_name"] = employer

        ein_match = self.EIN_PATTERN.search(text)
        if ein_match:
            result["employer_ein"] = ein_match.group(1)

        result.update(self._search_amounts(text, self.PATTERNS))

        state_match = self.STATE_PATTERN.search(text)
        if state_match:
            result["state"] = state_match.group(1)

        return result

    def get_warnings(self, fields: dict[str, Any]) -> list[str]:
        """Plausibility checks that do not block the extraction."""
        warnings: list[str] = []
        wages = fields.get("wages")
        withheld = fields.get("federal_withheld")
        if wages and withheld is not None and wages > 0 and withheld >= wages:
            warnings.append(
                f"Box 2 (${withheld}) is not less than Box 1 (${wages}); federal withholding cannot exceed wages."
            )
        return warnings
