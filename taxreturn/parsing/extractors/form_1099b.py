"""Form 1099-B (Broker Proceeds) text extractor."""

import re
from typing import Any

from taxreturn.parsing.base import BaseExtractor, amount_pattern

_AMT = r"\(?-?(?:\$\s?)?\d[\d,]*(?:\.\d{1,2})?\)?"
_DATE = r"\d{1,2}/\d{1,2}/\d{2,4}|\d{4}-\d{2}-\d{2}"


class Form1099BExtractor(BaseExtractor):
    """Extracts Form 1099-B header data and per-lot entries from document text.

    Lots are read from transaction lines (description, dates, proceeds, cost
    basis, then optional wash sale and gain columns). Section headers such as
    "Short-term transactions" or "basis not reported to the IRS" apply to the
    lines that follow them.
    """

    HEADER_FIELDS = ("payer_name", "payer_tin")
    ENTRY_FIELDS = ("description", "date_acquired", "date_sold", "proceeds", "cost_basis")
    EXPECTED_FIELDS = HEADER_FIELDS + ENTRY_FIELDS

    BROKER_PATTERN = re.compile(
        r"(?:Payer|Broker|Filer)(?:'?s?)?\s*name[^\n:]*(?::[ \t]*([^\n]+)|\n\s*([^\n]+))", re.IGNORECASE
    )
    TIN_PATTERN = re.compile(
        r"(?:Payer|Broker)'?s?\s*(?:TIN|federal\s*identification\s*number|identification\s*number)"
        r"[^\d]*?(\d{2}-\d{7})",
        re.IGNORECASE,
    )
    ENTRY_PATTERN = re.compile(
        rf"^\s*(?P<description>\S.*?)\s+(?P<acquired>{_DATE}|various)\s+(?P<sold>{_DATE})\s+"
        rf"(?P<proceeds>{_AMT})\s+(?P<basis>{_AMT})"
        rf"(?:\s+(?P<third>{_AMT}))?(?:\s+(?P<fourth>{_AMT}))?\s*$",
        re.IGNORECASE,
    )
    AMOUNT_IN_LINE = re.compile(_AMT)

    # Single-sale layout: "Proceeds: $x" / "Cost basis: $y"
    SUMMARY_PATTERNS = {
        "proceeds": amount_pattern(r"Box\s*1d\b|Proceeds\s*:"),
        "cost_basis": amount_pattern(r"Box\s*1e\b|Cost\s*(?:or\s*other\s*)?basis\s*:"),
    }
    SUMMARY_DESCRIPTION = re.compile(r"(?:Box\s*1a\b|Description(?:\s*of\s*property)?)\s*:?[ \t]*([^\n]+)", re.IGNORECASE)

    def extract(self, text: str) -> dict[str, Any]:
        result: dict[str, Any] = {}

        broker = self._search_text(text, self.BROKER_PATTERN)
        if broker:
            result["payer_name"] = broker

        tin_match = self.TIN_PATTERN.search(text)
        if tin_match:
            result["payer_tin"] = tin_match.group(1)

        entries: list[dict[str, Any]] = []
        is_short_term: bool | None = None
        reported_to_irs = True
        for line in text.splitlines():
            match = self.ENTRY_PATTERN.match(line)
            if match:
                entries.append(self._entry_from_match(match, is_short_term, reported_to_irs))
                continue

            lowered = line.lower().replace("\u2013", "-")
            subtotal = self._subtotal(lowered, line)
            if subtotal is not None:
                result[subtotal[0]] = subtotal[1]
                continue
            if "short-term" in lowered or "short term" in lowered:
                is_short_term = True
            elif "long-term" in lowered or "long term" in lowered:
                is_short_term = False
            if "not reported to the irs" in lowered or "noncovered" in lowered:
                reported_to_irs = False
            elif "reported to the irs" in lowered:
                reported_to_irs = True

        if not entries:
            summary = self._search_amounts(text, self.SUMMARY_PATTERNS)
            if summary:
                entry: dict[str, Any] = dict(summary)
                description = self._search_text(text, self.SUMMARY_DESCRIPTION)
                if description:
                    entry["description"] = description
                entries.append(entry)

        result["entries"] = entries
        return result

    def _entry_from_match(
        self, match: re.Match[str], is_short_term: bool | None, reported_to_irs: bool
    ) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "description": match.group("description").strip(),
            "is_short_term": is_short_term,
            "reported_to_irs": reported_to_irs,
        }
        acquired = self._parse_date(match.group("acquired"))
        if acquired:
            entry["date_acquired"] = acquired
        sold = self._parse_date(match.group("sold"))
        if sold:
            entry["date_sold"] = sold
        for field, group in (("proceeds", "proceeds"), ("cost_basis", "basis")):
            parsed = self._parse_decimal(match.group(group))
            if parsed is not None:
                entry[field] = parsed

        # Four amount columns: wash sale then gain. Three: gain only.
        third, fourth = match.group("third"), match.group("fourth")
        wash = third if fourth else None
        gain = fourth if fourth else third
        if wash:
            wash_amount = self._parse_decimal(wash)
            if wash_amount:
                entry["wash_sale"] = True
                entry["wash_sale_amount"] = abs(wash_amount)
        if gain:
            parsed_gain = self._parse_decimal(gain)
            if parsed_gain is not None:
                entry["gain_loss"] = parsed_gain
        return entry

    def _subtotal(self, lowered: str, line: str) -> tuple[str, Any] | None:
        if "total" not in lowered:
            return None
        if "short-term" in lowered or "short term" in lowered:
            field = "short_term_gain_loss"
        elif "long-term" in lowered or "long term" in lowered:
            field = "long_term_gain_loss"
        else:
            return None
        amounts = self.AMOUNT_IN_LINE.findall(line)
        if not amounts:
            return None
        parsed = self._parse_decimal(amounts[-1])
        return (field, parsed) if parsed is not None else None

    def confidence(self, fields: dict[str, Any]) -> float:
        """Header coverage weighted once, average lot coverage weighted twice."""
        header = sum(1 for name in self.HEADER_FIELDS if fields.get(name)) / len(self.HEADER_FIELDS)
        entries = fields.get("entries") or []
        if entries:
            per_entry = [
                sum(1 for name in self.ENTRY_FIELDS if entry.get(name) not in (None, "")) / len(self.ENTRY_FIELDS)
                for entry in entries
            ]
            entry_score = sum(per_entry) / len(per_entry)
        else:
            entry_score = 0.0
        return min((header + 2 * entry_score) / 3, 1.0)

    def missing_fields(self, fields: dict[str, Any]) -> list[str]:
        missing = [name for name in self.HEADER_FIELDS if not fields.get(name)]
        entries = fields.get("entries") or []
        if not entries:
            return missing + ["entries"]
        for i, entry in enumerate(entries, start=1):
            missing.extend(
                f"entries[{i}].{name}" for name in self.ENTRY_FIELDS if entry.get(name) in (None, "")
            )
        return missing

    def get_warnings(self, fields: dict[str, Any]) -> list[str]:
        warnings = []
        for i, entry in enumerate(fields.get("entries") or [], start=1):
            if entry.get("proceeds") is None and entry.get("cost_basis") is None:
                warnings.append(f"Lot {i} has neither proceeds nor cost basis.")
        return warnings
