"""Custom exceptions for the tax return core."""


class TaxReturnError(Exception):
    """Base exception for tax return errors."""


class ConfigNotFoundError(TaxReturnError):
    """Raised when tax configuration needed for a calculation is missing.

    Never defaulted: a missing year or bracket set blocks the calculation.
    """

    def __init__(
        self,
        what: str,
        year: int | None = None,
        filing_status: str | None = None,
        jurisdiction: str | None = None,
    ):
        self.what = what
        self.year = year
        self.filing_status = filing_status
        self.jurisdiction = jurisdiction
        scope = ", ".join(
            f"{label}={value}"
            for label, value in (
                ("year", year),
                ("filing_status", filing_status),
                ("jurisdiction", jurisdiction),
            )
            if value is not None
        )
        super().__init__(f"No {what} configured" + (f" for {scope}" if scope else ""))


class InvariantViolationError(TaxReturnError):
    """Raised on programmer or configuration errors that would yield a wrong tax figure."""


class ExtractionProviderError(TaxReturnError):
    """Raised when a single extraction strategy fails."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider} extraction failed: {message}")


class DataValidationError(TaxReturnError):
    """Raised when input data fails validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error on '{field}': {message}")


class RecordNotFoundError(TaxReturnError):
    """Raised when a referenced tax return or document does not exist."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class PDFParseError(TaxReturnError):
    """Raised when raw text cannot be produced from a file."""

    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        super().__init__(f"PDF parse error for {file_path}: {message}")
