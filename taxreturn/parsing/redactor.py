"""Taxpayer identity redaction for document text sent to the LLM provider.

Labeled W-2 and 1099 fields that identify the taxpayer (employee or
recipient name, address, SSN/TIN, control and account numbers) are blanked
to ``[REDACTED]``. Anything still shaped like an SSN or EIN is then masked
wherever it appears. Payer and employer names, dates and dollar amounts are
left alone so the provider can still read the form.
"""

import re
from dataclasses import dataclass, field
from typing import NamedTuple

REDACTED = "[REDACTED]"


class RedactionRule(NamedTuple):
    name: str
    pattern: re.Pattern[str]
    replacement: str


def _labeled_value(name: str, label: str) -> RedactionRule:
    """Blank the single token that follows ``label`` on the same line."""
    pattern = re.compile(rf"((?:{label})[ \t]*:?[ \t]*)([^\s:][^\s]*)", re.IGNORECASE)
    return RedactionRule(name, pattern, rf"\g<1>{REDACTED}")


def _labeled_line(name: str, label: str) -> RedactionRule:
    """Blank everything after ``label`` up to the end of the line."""
    pattern = re.compile(rf"((?:{label})[ \t]*:?[ \t]*)(\S[^\n]*)", re.IGNORECASE)
    return RedactionRule(name, pattern, rf"\g<1>{REDACTED}")


@dataclass
class RedactionResult:
    text: str
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def redactions_made(self) -> list[str]:
        return [f"{name}: {count} occurrence(s) redacted" for name, count in self.counts.items()]


class Redactor:
    """Applies the labeled rules first, then the bare-number masks."""

    LABELED_RULES: tuple[RedactionRule, ...] = (
        # W-2 box a / 1099 recipient TIN
        _labeled_value("EMPLOYEE_SSN", r"Employee'?s?\s+social\s+security\s+number"),
        _labeled_value("RECIPIENT_TIN", r"Recipient'?s?\s+(?:TIN|identification\s+number)"),
        # W-2 boxes d, e and f
        _labeled_value("CONTROL_NUMBER", r"Control\s+number"),
        _labeled_line("EMPLOYEE_NAME", r"Employee'?s?\s+(?:first\s+)?name(?:\s+and\s+initial)?(?:\s+last\s+name)?"),
        _labeled_line("RECIPIENT_NAME", r"Recipient'?s?\s+name"),
        _labeled_line(
            "ADDRESS",
            r"(?:Employee|Recipient)'?s?\s+(?:street\s+)?address(?:\s+and\s+ZIP\s+code)?",
        ),
        # 1099 account number, also printed on 1099-B statements
        _labeled_value("ACCOUNT_NUMBER", r"Account\s*(?:number\b|no\b\.?|#)(?:\s*\(see\s+instructions\))?"),
    )

    NUMBER_RULES: tuple[RedactionRule, ...] = (
        RedactionRule("SSN", re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), "***-**-****"),
        RedactionRule("SSN", re.compile(r"\b\d{3} \d{2} \d{4}\b"), "*** ** ****"),
        RedactionRule(
            "MASKED_SSN",
            re.compile(r"(?:\*{3}|X{3})-(?:\*{2}|X{2})-\d{4}\b", re.IGNORECASE),
            "***-**-****",
        ),
        RedactionRule("EIN", re.compile(r"\b\d{2}-\d{7}\b"), "**-*******"),
    )

    def __init__(self, extra_rules: tuple[RedactionRule, ...] = ()):
        self.rules = self.LABELED_RULES + tuple(extra_rules) + self.NUMBER_RULES

    def redact(self, text: str) -> RedactionResult:
        counts: dict[str, int] = {}
        for rule in self.rules:
            text, hits = rule.pattern.subn(rule.replacement, text)
            if hits:
                counts[rule.name] = counts.get(rule.name, 0) + hits
        return RedactionResult(text=text, counts=counts)
