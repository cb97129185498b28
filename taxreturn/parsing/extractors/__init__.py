"""Extractor factory for supported document types."""

from taxreturn.models.enums import DocumentType
from taxreturn.parsing.base import BaseExtractor
from taxreturn.parsing.extractors.form_1099b import Form1099BExtractor
from taxreturn.parsing.extractors.form_1099div import Form1099DIVExtractor
from taxreturn.parsing.extractors.form_1099int import Form1099INTExtractor
from taxreturn.parsing.extractors.w2 import W2Extractor

_EXTRACTOR_MAP: dict[DocumentType, type[BaseExtractor]] = {
    DocumentType.W2: W2Extractor,
    DocumentType.FORM_1099B: Form1099BExtractor,
    DocumentType.FORM_1099DIV: Form1099DIVExtractor,
    DocumentType.FORM_1099INT: Form1099INTExtractor,
}


def get_extractor(document_type: DocumentType) -> BaseExtractor:
    """Return the extractor instance for a document type.

    Raises KeyError for DocumentType.UNKNOWN.
    """
    extractor_cls = _EXTRACTOR_MAP[document_type]
    return extractor_cls()


def supported_types() -> list[DocumentType]:
    return list(_EXTRACTOR_MAP)


__all__ = [
    "get_extractor",
    "supported_types",
    "Form1099BExtractor",
    "Form1099DIVExtractor",
    "Form1099INTExtractor",
    "W2Extractor",
]
