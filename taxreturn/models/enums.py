"""Enumerations for the tax return core."""

from enum import StrEnum

FEDERAL = "federal"


class FilingStatus(StrEnum):
    SINGLE = "single"
    MARRIED_JOINT = "married_joint"
    MARRIED_SEPARATE = "married_separate"
    HEAD_OF_HOUSEHOLD = "head_of_household"
    QUALIFYING_WIDOW = "qualifying_widow"


class DocumentType(StrEnum):
    W2 = "W-2"
    FORM_1099DIV = "1099-DIV"
    FORM_1099INT = "1099-INT"
    FORM_1099B = "1099-B"
    UNKNOWN = "Unknown"


class DocumentStatus(StrEnum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PARSED = "parsed"
    ERROR = "error"


class ParsingMethod(StrEnum):
    PATTERN = "pattern"
    LLM = "llm"
    MANUAL = "manual"


class ReturnStatus(StrEnum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETE = "complete"


class HoldingPeriod(StrEnum):
    SHORT_TERM = "SHORT_TERM"
    LONG_TERM = "LONG_TERM"


class Form8949Category(StrEnum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"


class AdjustmentCode(StrEnum):
    B = "B"
    E = "E"
    OTHER = "O"
    WASH_SALE = "W"
