"""Raw text producers: turn an uploaded file into plain text."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import pdfplumber

from taxreturn.exceptions import DataValidationError, PDFParseError

logger = logging.getLogger(__name__)


class RawTextProducer(ABC):
    file_type: str

    @abstractmethod
    def produce(self, file_path: Path) -> str:
        ...


class PlainTextProducer(RawTextProducer):
    file_type = "text/plain"

    def produce(self, file_path: Path) -> str:
        return Path(file_path).read_text(encoding="utf-8", errors="replace")


class CSVTextProducer(PlainTextProducer):
    file_type = "text/csv"


class PDFTextProducer(RawTextProducer):
    """Text layer of a PDF via pdfplumber. Scanned PDFs with no text fail."""

    file_type = "application/pdf"

    def produce(self, file_path: Path) -> str:
        try:
            with pdfplumber.open(file_path) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise PDFParseError(str(file_path), str(exc)) from exc
        # Strip zero-width spaces some issuers embed
        text = "\n".join(pages).replace("\u200b", "")
        if not text.strip():
            raise PDFParseError(str(file_path), "no text layer found (scanned PDF)")
        logger.info("Read %d page(s) from %s", len(pages), Path(file_path).name)
        return text


_PRODUCERS: dict[str, type[RawTextProducer]] = {
    ".txt": PlainTextProducer,
    ".text": PlainTextProducer,
    ".csv": CSVTextProducer,
    ".pdf": PDFTextProducer,
}


def producer_for(file_path: Path) -> RawTextProducer:
    suffix = Path(file_path).suffix.lower()
    if suffix not in _PRODUCERS:
        raise DataValidationError(
            "file", f"unsupported file type '{suffix or Path(file_path).name}' (expected {', '.join(_PRODUCERS)})"
        )
    return _PRODUCERS[suffix]()


def read_document(file_path: Path) -> tuple[str, str]:
    """Return (raw_text, file_type) for a supported file."""
    producer = producer_for(file_path)
    return producer.produce(file_path), producer.file_type
