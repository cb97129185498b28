"""Document ingestion: classify, extract, and store typed income records."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from taxreturn.db.base import Repository
from taxreturn.exceptions import DataValidationError, RecordNotFoundError
from taxreturn.models.documents import Document, ExtractionResult, ParsingAttempt
from taxreturn.models.enums import DocumentStatus, DocumentType
from taxreturn.models.tax_forms import Form1099B, Form1099BEntry, Form1099Div, Form1099Int, W2Data
from taxreturn.parsing.classifier import classify
from taxreturn.parsing.field_extractor import FieldExtractor

logger = logging.getLogger(__name__)

IncomeRecord = W2Data | Form1099Div | Form1099Int | Form1099B


class DocumentSubmission(BaseModel):
    file_name: str
    raw_text: str
    file_type: str = "text/plain"
    document_type: DocumentType | None = None


class IngestionResult(BaseModel):
    document: Document
    record: IncomeRecord | None = None
    entries: list[Form1099BEntry] = Field(default_factory=list)
    extraction: ExtractionResult
    attempts: list[ParsingAttempt] = Field(default_factory=list)


def _pick(model: type[BaseModel], fields: dict[str, Any], exclude: set[str]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if k in model.model_fields and k not in exclude}


_IDS = {"id", "document_id", "tax_return_id", "form_1099b_id"}


def build_records(
    document: Document, document_type: DocumentType, fields: dict[str, Any]
) -> tuple[IncomeRecord, list[Form1099BEntry]]:
    """Map extracted fields onto the typed record for ``document_type``.

    Raises DataValidationError when a value cannot be typed.
    """
    links = {"document_id": document.id, "tax_return_id": document.tax_return_id}
    models: dict[DocumentType, type[BaseModel]] = {
        DocumentType.W2: W2Data,
        DocumentType.FORM_1099DIV: Form1099Div,
        DocumentType.FORM_1099INT: Form1099Int,
        DocumentType.FORM_1099B: Form1099B,
    }
    model = models[document_type]
    try:
        record = model.model_validate({**_pick(model, fields, _IDS), **links})
        entries = []
        if isinstance(record, Form1099B):
            entries = [
                Form1099BEntry.model_validate(
                    {**_pick(Form1099BEntry, entry, _IDS), "form_1099b_id": record.id}
                )
                for entry in fields.get("entries") or []
            ]
    except ValidationError as exc:
        raise DataValidationError(document_type.value, str(exc)) from exc
    return record, entries


class DocumentService:
    """Caller-facing document operations.

    Extraction for a batch runs in parallel; every repository write happens on
    the calling thread after the extraction join.
    """

    def __init__(self, repo: Repository, extractor: FieldExtractor, max_workers: int = 4):
        self.repo = repo
        self.extractor = extractor
        self.max_workers = max_workers

    def submit(
        self,
        tax_return_id: str,
        file_name: str,
        file_type: str,
        raw_text: str,
        document_type: DocumentType | None = None,
    ) -> IngestionResult:
        self._require_return(tax_return_id)
        submission = DocumentSubmission(
            file_name=file_name, raw_text=raw_text, file_type=file_type, document_type=document_type
        )
        doc_type, extraction = self._extract(submission)
        return self._store(tax_return_id, submission, doc_type, extraction)

    def submit_batch(self, tax_return_id: str, submissions: list[DocumentSubmission]) -> list[IngestionResult]:
        """Classify and extract many documents concurrently, then store them in order."""
        self._require_return(tax_return_id)
        if not submissions:
            return []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(submissions))) as pool:
            extracted = list(pool.map(self._extract, submissions))
        return [
            self._store(tax_return_id, submission, doc_type, extraction)
            for submission, (doc_type, extraction) in zip(submissions, extracted)
        ]

    def assign_document_type(self, document_id: str, document_type: DocumentType) -> IngestionResult:
        """Set a document's type by hand and extract it again."""
        document = self.repo.get_document(document_id)
        if document is None:
            raise RecordNotFoundError("Document", document_id)
        extraction = self.extractor.extract(document_type, document.raw_text_content or "")
        self.repo.delete_document_records(document_id)
        document = document.model_copy(update={"document_type": document_type})
        logger.info("Document %s reassigned to %s", document_id, document_type)
        return self._finish(document, document_type, extraction)

    def delete_document(self, document_id: str) -> None:
        """Delete a document; its parsing attempts and income records go with it."""
        self.repo.delete_document(document_id)

    def _require_return(self, tax_return_id: str) -> None:
        if self.repo.get_tax_return(tax_return_id) is None:
            raise RecordNotFoundError("Tax return", tax_return_id)

    def _extract(self, submission: DocumentSubmission) -> tuple[DocumentType, ExtractionResult]:
        doc_type = submission.document_type or classify(submission.raw_text)
        return doc_type, self.extractor.extract(doc_type, submission.raw_text)

    def _store(
        self,
        tax_return_id: str,
        submission: DocumentSubmission,
        doc_type: DocumentType,
        extraction: ExtractionResult,
    ) -> IngestionResult:
        document = Document(
            tax_return_id=tax_return_id,
            file_name=submission.file_name,
            file_type=submission.file_type,
            document_type=doc_type,
            status=DocumentStatus.PROCESSING,
            raw_text_content=submission.raw_text,
        )
        self.repo.create_document(document)
        return self._finish(document, doc_type, extraction)

    def _finish(
        self, document: Document, doc_type: DocumentType, extraction: ExtractionResult
    ) -> IngestionResult:
        attempts = [attempt.model_copy(update={"document_id": document.id}) for attempt in extraction.attempts]
        for attempt in attempts:
            self.repo.add_parsing_attempt(attempt)

        record: IncomeRecord | None = None
        entries: list[Form1099BEntry] = []
        update: dict[str, Any] = {
            "status": DocumentStatus.PARSED,
            "parsing_method": extraction.method,
            "confidence_score": extraction.confidence,
            "needs_review": extraction.needs_review,
            "error_message": None,
        }
        if doc_type == DocumentType.UNKNOWN:
            update["needs_review"] = True
            logger.info("Document %s could not be classified; awaiting manual type", document.id)
        elif extraction.failed:
            errors = [a.error_message for a in attempts if a.error_message]
            update.update(status=DocumentStatus.ERROR, error_message="; ".join(errors) or "extraction failed")
        else:
            try:
                record, entries = build_records(document, doc_type, extraction.fields)
            except DataValidationError as exc:
                logger.warning("Document %s: %s", document.id, exc)
                update.update(status=DocumentStatus.ERROR, error_message=str(exc), needs_review=True)
            else:
                self._save_record(record, entries)

        document = document.model_copy(update=update)
        self.repo.update_document(document)
        logger.info(
            "Document %s (%s) %s, confidence %.2f",
            document.id, doc_type, document.status, document.confidence_score or 0.0,
        )
        return IngestionResult(
            document=document,
            record=record,
            entries=entries,
            extraction=extraction,
            attempts=attempts,
        )

    def _save_record(self, record: IncomeRecord, entries: list[Form1099BEntry]) -> None:
        if isinstance(record, W2Data):
            self.repo.save_w2(record)
        elif isinstance(record, Form1099Div):
            self.repo.save_1099div(record)
        elif isinstance(record, Form1099Int):
            self.repo.save_1099int(record)
        else:
            self.repo.save_1099b(record, entries)
