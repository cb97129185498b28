"""Read-only lookup of versioned tax configuration."""

import logging
from decimal import Decimal

from taxreturn.db.base import TaxConfigRepository
from taxreturn.engines.brackets import validate_brackets
from taxreturn.exceptions import ConfigNotFoundError, InvariantViolationError
from taxreturn.models.enums import FEDERAL, FilingStatus
from taxreturn.models.tax_config import StandardDeduction, TaxBracket, TaxYear

logger = logging.getLogger(__name__)


def normalize_jurisdiction(jurisdiction: str) -> str:
    jurisdiction = jurisdiction.strip()
    return FEDERAL if jurisdiction.lower() == FEDERAL else jurisdiction.upper()


class TaxConfigStore:
    """Resolves tax years, bracket tables and standard deductions.

    Every miss raises ConfigNotFoundError. Nothing here falls back to another
    year or filing status.
    """

    def __init__(self, repo: TaxConfigRepository):
        self.repo = repo

    def get_active_year(self) -> TaxYear:
        tax_year = self.repo.get_active_tax_year()
        if tax_year is None:
            raise ConfigNotFoundError("active tax year")
        return tax_year

    def get_tax_year(self, year: int) -> TaxYear:
        tax_year = self.repo.get_tax_year(year)
        if tax_year is None:
            raise ConfigNotFoundError("tax year", year=year)
        return tax_year

    def list_tax_years(self) -> list[TaxYear]:
        return self.repo.list_tax_years()

    def get_brackets(
        self, year: int, filing_status: FilingStatus, jurisdiction: str = FEDERAL
    ) -> list[TaxBracket]:
        jurisdiction = normalize_jurisdiction(jurisdiction)
        brackets = self.repo.get_brackets(year, filing_status, jurisdiction)
        if not brackets:
            raise ConfigNotFoundError(
                "tax brackets", year=year, filing_status=filing_status, jurisdiction=jurisdiction
            )
        try:
            validate_brackets(brackets)
        except InvariantViolationError as exc:
            raise InvariantViolationError(
                f"Invalid {jurisdiction} bracket table for {year}/{filing_status}: {exc}"
            ) from exc
        return brackets

    def get_standard_deduction(
        self, year: int, filing_status: FilingStatus, jurisdiction: str = FEDERAL
    ) -> StandardDeduction:
        jurisdiction = normalize_jurisdiction(jurisdiction)
        deduction = self.repo.get_standard_deduction(year, filing_status, jurisdiction)
        if deduction is None:
            raise ConfigNotFoundError(
                "standard deduction", year=year, filing_status=filing_status, jurisdiction=jurisdiction
            )
        return deduction

    def is_income_tax_free(self, year: int, state: str) -> bool:
        return state.strip().upper() in self.get_tax_year(year).no_income_tax_states

    def get_capital_loss_limit(self, year: int, filing_status: FilingStatus) -> Decimal:
        limits = self.get_tax_year(year).capital_loss_limits
        if filing_status not in limits:
            raise ConfigNotFoundError("capital loss limit", year=year, filing_status=filing_status)
        return limits[filing_status]
