"""Caller-facing services."""

from taxreturn.services.documents import DocumentService, DocumentSubmission, IngestionResult

__all__ = ["DocumentService", "DocumentSubmission", "IngestionResult"]
