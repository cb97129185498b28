"""Repository interfaces, one per entity family.

The engines and services depend only on these contracts; the SQLite
implementation lives in ``taxreturn.db.repository``.
"""

from abc import ABC, abstractmethod

from taxreturn.models.documents import Document, ParsingAttempt
from taxreturn.models.enums import FilingStatus
from taxreturn.models.schedules import Form8949Row, ScheduleD
from taxreturn.models.tax_config import StandardDeduction, TaxBracket, TaxYear
from taxreturn.models.tax_forms import (
    Form1099B,
    Form1099BEntry,
    Form1099Div,
    Form1099Int,
    ManualAdjustment,
    W2Data,
)
from taxreturn.models.tax_return import Form1040, StateTaxReturn, TaxpayerProfile, TaxReturn


class TaxConfigRepository(ABC):
    @abstractmethod
    def list_tax_years(self) -> list[TaxYear]: ...

    @abstractmethod
    def get_tax_year(self, year: int) -> TaxYear | None: ...

    @abstractmethod
    def get_active_tax_year(self) -> TaxYear | None: ...

    @abstractmethod
    def get_brackets(
        self, year: int, filing_status: FilingStatus, jurisdiction: str
    ) -> list[TaxBracket]:
        """Return brackets ordered by ``min_income`` ascending (possibly empty)."""

    @abstractmethod
    def get_standard_deduction(
        self, year: int, filing_status: FilingStatus, jurisdiction: str
    ) -> StandardDeduction | None: ...

    @abstractmethod
    def replace_tax_year_config(
        self,
        tax_year: TaxYear,
        brackets: list[TaxBracket],
        deductions: list[StandardDeduction],
    ) -> None:
        """Administrative write: replace everything configured for one year."""


class TaxReturnRepository(ABC):
    @abstractmethod
    def create_tax_return(self, tax_return: TaxReturn) -> TaxReturn: ...

    @abstractmethod
    def get_tax_return(self, tax_return_id: str) -> TaxReturn | None: ...

    @abstractmethod
    def list_tax_returns(self, tax_year: int | None = None) -> list[TaxReturn]: ...

    @abstractmethod
    def update_profile(self, tax_return_id: str, profile: TaxpayerProfile) -> None: ...


class DocumentRepository(ABC):
    @abstractmethod
    def create_document(self, document: Document) -> Document: ...

    @abstractmethod
    def get_document(self, document_id: str) -> Document | None: ...

    @abstractmethod
    def update_document(self, document: Document) -> None: ...

    @abstractmethod
    def list_documents(self, tax_return_id: str) -> list[Document]: ...

    @abstractmethod
    def delete_document(self, document_id: str) -> None:
        """Delete a document and every form row extracted from it."""

    @abstractmethod
    def add_parsing_attempt(self, attempt: ParsingAttempt) -> None: ...

    @abstractmethod
    def get_parsing_attempts(self, document_id: str) -> list[ParsingAttempt]: ...


class IncomeRecordRepository(ABC):
    @abstractmethod
    def save_w2(self, record: W2Data) -> None: ...

    @abstractmethod
    def get_w2s(self, tax_return_id: str) -> list[W2Data]: ...

    @abstractmethod
    def save_1099div(self, record: Form1099Div) -> None: ...

    @abstractmethod
    def get_1099divs(self, tax_return_id: str) -> list[Form1099Div]: ...

    @abstractmethod
    def save_1099int(self, record: Form1099Int) -> None: ...

    @abstractmethod
    def get_1099ints(self, tax_return_id: str) -> list[Form1099Int]: ...

    @abstractmethod
    def save_1099b(self, form: Form1099B, entries: list[Form1099BEntry]) -> None: ...

    @abstractmethod
    def get_1099bs(self, tax_return_id: str) -> list[Form1099B]: ...

    @abstractmethod
    def get_1099b_entries(self, tax_return_id: str) -> list[Form1099BEntry]: ...

    @abstractmethod
    def delete_document_records(self, document_id: str) -> None:
        """Remove every per-form record extracted from a document."""

    @abstractmethod
    def save_manual_adjustment(self, adjustment: ManualAdjustment) -> None: ...

    @abstractmethod
    def get_manual_adjustments(self, tax_return_id: str) -> list[ManualAdjustment]: ...


class CalculationRepository(ABC):
    @abstractmethod
    def get_form8949_rows(self, tax_return_id: str) -> list[Form8949Row]: ...

    @abstractmethod
    def get_schedule_d(self, tax_return_id: str) -> ScheduleD | None: ...

    @abstractmethod
    def get_form1040(self, tax_return_id: str) -> Form1040 | None: ...

    @abstractmethod
    def get_state_returns(self, tax_return_id: str) -> list[StateTaxReturn]: ...

    @abstractmethod
    def save_capital_gains(
        self, tax_return_id: str, rows: list[Form8949Row], schedule_d: ScheduleD
    ) -> None:
        """Replace all Form 8949 rows and the Schedule D in one transaction."""

    @abstractmethod
    def save_calculation(
        self,
        tax_return: TaxReturn,
        form1040: Form1040,
        rows: list[Form8949Row],
        schedule_d: ScheduleD,
        state_returns: list[StateTaxReturn],
    ) -> None:
        """Overwrite a return's computed figures atomically."""


class Repository(
    TaxConfigRepository,
    TaxReturnRepository,
    DocumentRepository,
    IncomeRecordRepository,
    CalculationRepository,
):
    """Every entity family behind one storage backend."""
