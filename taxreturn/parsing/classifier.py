"""Document type classification from extracted text."""

import logging
import re
from dataclasses import dataclass

from taxreturn.models.enums import DocumentType

logger = logging.getLogger(__name__)

_DASHES = re.compile(r"[\u2010-\u2014\u2212]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class SignatureRule:
    """Matches when every keyword occurs in the normalized text."""

    document_type: DocumentType
    keywords: tuple[str, ...]

    def matches(self, normalized: str) -> bool:
        return all(keyword in normalized for keyword in self.keywords)


# Ordered by priority. A consolidated brokerage statement carries 1099-B,
# 1099-DIV and 1099-INT sections; it is filed as a 1099-B.
SIGNATURE_RULES: list[SignatureRule] = [
    SignatureRule(DocumentType.FORM_1099B, ("form 1099-b",)),
    SignatureRule(DocumentType.FORM_1099B, ("proceeds from broker",)),
    SignatureRule(DocumentType.FORM_1099B, ("proceeds", "cost basis", "date sold")),
    SignatureRule(DocumentType.FORM_1099DIV, ("form 1099-div",)),
    SignatureRule(DocumentType.FORM_1099DIV, ("dividends and distributions",)),
    SignatureRule(DocumentType.FORM_1099DIV, ("ordinary dividends", "qualified dividends")),
    SignatureRule(DocumentType.FORM_1099INT, ("form 1099-int",)),
    SignatureRule(DocumentType.FORM_1099INT, ("interest income", "payer")),
    SignatureRule(DocumentType.W2, ("form w-2",)),
    SignatureRule(DocumentType.W2, ("wage and tax statement",)),
    SignatureRule(DocumentType.W2, ("wages, tips", "employer identification number")),
]


def normalize_text(text: str) -> str:
    """Case-fold, fold unicode dashes to '-', collapse whitespace."""
    return _WHITESPACE.sub(" ", _DASHES.sub("-", text.casefold())).strip()


def matching_types(raw_text: str) -> list[DocumentType]:
    """Every document type with at least one matching signature, in priority order."""
    normalized = normalize_text(raw_text)
    found: list[DocumentType] = []
    for rule in SIGNATURE_RULES:
        if rule.document_type not in found and rule.matches(normalized):
            found.append(rule.document_type)
    return found


def classify(raw_text: str) -> DocumentType:
    """Classify raw document text.

    Returns DocumentType.UNKNOWN when nothing matches; that is a valid
    outcome which calls for a manual type assignment.
    """
    found = matching_types(raw_text)
    if not found:
        logger.info("No document signature matched")
        return DocumentType.UNKNOWN
    if len(found) > 1:
        logger.warning(
            "Text matches several document types (%s); using %s",
            ", ".join(found),
            found[0],
        )
    logger.info("Classified document as %s", found[0])
    return found[0]
