"""Uploaded documents, extraction audit rows and extraction results."""

from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from taxreturn.models.enums import DocumentStatus, DocumentType, ParsingMethod


def _new_id() -> str:
    return str(uuid4())


def _check_confidence(value: float | None) -> float | None:
    if value is not None and not 0.0 <= value <= 1.0:
        raise ValueError(f"confidence must be within [0, 1], got {value}")
    return value


class Document(BaseModel):
    id: str = Field(default_factory=_new_id)
    tax_return_id: str
    file_name: str
    file_type: str = "text/plain"
    document_type: DocumentType = DocumentType.UNKNOWN
    status: DocumentStatus = DocumentStatus.UPLOADED
    parsing_method: ParsingMethod | None = None
    confidence_score: float | None = None
    raw_text_content: str | None = None
    needs_review: bool = False
    error_message: str | None = None
    uploaded_at: datetime = Field(default_factory=datetime.now)

    validate_confidence = field_validator("confidence_score")(_check_confidence)


class ParsingAttempt(BaseModel):
    """Append-only audit record: one per strategy tried for a document."""

    id: str = Field(default_factory=_new_id)
    document_id: str | None = None
    parsing_method: ParsingMethod
    confidence_score: float = 0.0
    extracted_data: dict[str, Any] | None = None
    processing_time_ms: int = 0
    error_message: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    validate_confidence = field_validator("confidence_score")(_check_confidence)


class ProviderResult(BaseModel):
    """What a single extraction strategy hands back."""

    fields: dict[str, Any] = Field(default_factory=dict)
    confidence: float = 0.0
    missing_fields: list[str] = Field(default_factory=list)

    validate_confidence = field_validator("confidence")(_check_confidence)


class ExtractionResult(BaseModel):
    document_type: DocumentType
    fields: dict[str, Any] = Field(default_factory=dict)
    confidence: float = 0.0
    method: ParsingMethod | None = None
    attempts: list[ParsingAttempt] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)
    needs_review: bool = False
    failed: bool = False

    validate_confidence = field_validator("confidence")(_check_confidence)
