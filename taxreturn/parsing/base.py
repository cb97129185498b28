"""Base pattern extractor interface."""

import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from taxreturn.models.money import money, parse_currency

# A currency figure: 60,000.00 / $1,234 / (512.10) / -12.00
AMOUNT = r"(\(?-?(?:\$\s?)?\d[\d,]*(?:\.\d{1,2})?\)?)"


def amount_pattern(label: str) -> re.Pattern[str]:
    """Match ``label`` followed by the first amount after it.

    Anything that is not a digit between the label and the figure is skipped,
    so labels may run on (``1 Wages, tips, other compensation``) and the
    figure may sit on the next line.
    """
    return re.compile(rf"(?:{label})[^\d]*?{AMOUNT}", re.IGNORECASE)


class BaseExtractor(ABC):
    """Abstract base class for all form-specific text extractors.

    Subclasses declare ``EXPECTED_FIELDS``; confidence is the share of those
    fields found in the text.
    """

    EXPECTED_FIELDS: tuple[str, ...] = ()

    @abstractmethod
    def extract(self, text: str) -> dict[str, Any]:
        """Extract structured fields from raw document text.

        Keys are record field names. Missing values are omitted, never None.
        """
        ...

    def confidence(self, fields: dict[str, Any]) -> float:
        if not self.EXPECTED_FIELDS:
            return 0.0
        found = sum(1 for name in self.EXPECTED_FIELDS if fields.get(name) not in (None, ""))
        return min(found / len(self.EXPECTED_FIELDS), 1.0)

    def missing_fields(self, fields: dict[str, Any]) -> list[str]:
        return [name for name in self.EXPECTED_FIELDS if fields.get(name) in (None, "")]

    def get_warnings(self, fields: dict[str, Any]) -> list[str]:
        """Sanity warnings about extracted values. None by default."""
        return []

    def _parse_decimal(self, value: str | None) -> Decimal | None:
        """Parse a currency string into cents, handling $, commas and parens."""
        parsed = parse_currency(value)
        return money(parsed) if parsed is not None else None

    def _parse_date(self, value: str | None) -> date | None:
        """Parse the date layouts brokers print. ``Various`` yields None."""
        if not value or not value.strip():
            return None
        value = value.strip()
        for fmt in ("%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y", "%m/%d/%y"):
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                continue
        return None

    def _search_amounts(self, text: str, patterns: dict[str, re.Pattern[str]]) -> dict[str, Decimal]:
        found: dict[str, Decimal] = {}
        for field, pattern in patterns.items():
            match = pattern.search(text)
            if match:
                parsed = self._parse_decimal(match.group(1))
                if parsed is not None:
                    found[field] = parsed
        return found

    @staticmethod
    def _search_text(text: str, pattern: re.Pattern[str]) -> str | None:
        match = pattern.search(text)
        if not match:
            return None
        value = next((group for group in match.groups() if group), None)
        return value.strip() if value and value.strip() else None
