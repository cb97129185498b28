"""Document classification and field extraction."""

from taxreturn.parsing.classifier import classify, matching_types, normalize_text
from taxreturn.parsing.field_extractor import FieldExtractor
from taxreturn.parsing.providers import ExtractionProvider, LLMExtractionProvider, PatternExtractionProvider

__all__ = [
    "ExtractionProvider",
    "FieldExtractor",
    "LLMExtractionProvider",
    "PatternExtractionProvider",
    "classify",
    "matching_types",
    "normalize_text",
]
