"""Data models for the tax return core."""

from taxreturn.models.documents import Document, ExtractionResult, ParsingAttempt, ProviderResult
from taxreturn.models.enums import (
    FEDERAL,
    AdjustmentCode,
    DocumentStatus,
    DocumentType,
    FilingStatus,
    Form8949Category,
    HoldingPeriod,
    ParsingMethod,
    ReturnStatus,
)
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
from taxreturn.models.tax_return import (
    Address,
    BankAccount,
    Dependent,
    Form1040,
    StateTaxReturn,
    TaxpayerProfile,
    TaxReturn,
)

__all__ = [
    "FEDERAL",
    "Address",
    "AdjustmentCode",
    "BankAccount",
    "Dependent",
    "Document",
    "DocumentStatus",
    "DocumentType",
    "ExtractionResult",
    "FilingStatus",
    "Form1040",
    "Form1099B",
    "Form1099BEntry",
    "Form1099Div",
    "Form1099Int",
    "Form8949Category",
    "Form8949Row",
    "HoldingPeriod",
    "ManualAdjustment",
    "ParsingAttempt",
    "ParsingMethod",
    "ProviderResult",
    "ReturnStatus",
    "ScheduleD",
    "StandardDeduction",
    "StateTaxReturn",
    "TaxBracket",
    "TaxpayerProfile",
    "TaxReturn",
    "TaxYear",
    "W2Data",
]
