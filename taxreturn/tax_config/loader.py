"""Import of JSON tax table files into the configuration repository.

This is the administrative write path. A table file holds one year:
its deadlines, income-tax-free states, capital loss limits, and per
jurisdiction bracket and standard deduction tables.
"""

import json
import logging
from datetime import date
from decimal import Decimal
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from taxreturn.db.base import TaxConfigRepository
from taxreturn.engines.brackets import validate_brackets
from taxreturn.exceptions import DataValidationError, InvariantViolationError
from taxreturn.models.enums import FilingStatus
from taxreturn.models.money import Money, Rate
from taxreturn.models.tax_config import StandardDeduction, TaxBracket, TaxYear

logger = logging.getLogger(__name__)


class BracketRow(BaseModel):
    min: Money
    max: Money | None = None
    rate: Rate


class DeductionRow(BaseModel):
    amount: Money
    additional_blind_amount: Money = Decimal("0.00")
    additional_disabled_amount: Money = Decimal("0.00")


class TaxTableFile(BaseModel):
    year: int
    is_active: bool = False
    federal_deadline: date
    state_deadlines: dict[str, date | None] = Field(default_factory=dict)
    no_income_tax_states: list[str] = Field(default_factory=list)
    capital_loss_limits: dict[FilingStatus, Money] = Field(default_factory=dict)
    social_security_wage_base: Money | None = None
    social_security_tax_rate: Rate | None = None
    brackets: dict[str, dict[FilingStatus, list[BracketRow]]] = Field(default_factory=dict)
    standard_deductions: dict[str, dict[FilingStatus, DeductionRow]] = Field(default_factory=dict)

    def to_config(self) -> tuple[TaxYear, list[TaxBracket], list[StandardDeduction]]:
        tax_year = TaxYear(
            year=self.year,
            is_active=self.is_active,
            federal_deadline=self.federal_deadline,
            state_deadlines=self.state_deadlines,
            no_income_tax_states=self.no_income_tax_states,
            capital_loss_limits=self.capital_loss_limits,
            social_security_wage_base=self.social_security_wage_base,
            social_security_tax_rate=self.social_security_tax_rate,
        )
        brackets: list[TaxBracket] = []
        for jurisdiction, by_status in self.brackets.items():
            for filing_status, rows in by_status.items():
                table = [
                    TaxBracket(
                        year=self.year,
                        jurisdiction=jurisdiction,
                        filing_status=filing_status,
                        min_income=row.min,
                        max_income=row.max,
                        rate=row.rate,
                    )
                    for row in sorted(rows, key=lambda r: r.min)
                ]
                try:
                    validate_brackets(table)
                except InvariantViolationError as exc:
                    raise DataValidationError(
                        f"brackets.{jurisdiction}.{filing_status}", str(exc)
                    ) from exc
                brackets.extend(table)
        deductions = [
            StandardDeduction(
                year=self.year,
                jurisdiction=jurisdiction,
                filing_status=filing_status,
                amount=row.amount,
                additional_blind_amount=row.additional_blind_amount,
                additional_disabled_amount=row.additional_disabled_amount,
            )
            for jurisdiction, by_status in self.standard_deductions.items()
            for filing_status, row in by_status.items()
        ]
        return tax_year, brackets, deductions


def load_tax_table_file(path: Path) -> TaxTableFile:
    """Parse and validate a tax table file."""
    try:
        raw = json.loads(Path(path).read_text())
        return TaxTableFile.model_validate(raw)
    except json.JSONDecodeError as exc:
        raise DataValidationError(str(path), f"invalid JSON: {exc}") from exc
    except ValidationError as exc:
        raise DataValidationError(str(path), str(exc)) from exc


def bundled_table_paths() -> list[Path]:
    """Tax table files shipped with the package, oldest year first."""
    tables = resources.files("taxreturn.tax_config") / "tables"
    return sorted(Path(str(p)) for p in tables.iterdir() if p.name.endswith(".json"))


def import_tax_tables(repo: TaxConfigRepository, path: Path) -> TaxYear:
    """Load ``path`` and replace that year's configuration in ``repo``."""
    table = load_tax_table_file(path)
    tax_year, brackets, deductions = table.to_config()
    repo.replace_tax_year_config(tax_year, brackets, deductions)
    logger.info("Imported tax table %s for year %s", Path(path).name, tax_year.year)
    return tax_year
