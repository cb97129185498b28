"""Database layer for the tax return core."""

from taxreturn.db.base import (
    CalculationRepository,
    DocumentRepository,
    IncomeRecordRepository,
    Repository,
    TaxConfigRepository,
    TaxReturnRepository,
)
from taxreturn.db.repository import SQLiteTaxRepository
from taxreturn.db.schema import connect, create_schema

__all__ = [
    "CalculationRepository",
    "DocumentRepository",
    "IncomeRecordRepository",
    "Repository",
    "SQLiteTaxRepository",
    "TaxConfigRepository",
    "TaxReturnRepository",
    "connect",
    "create_schema",
]
