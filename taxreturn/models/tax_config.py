"""Versioned tax configuration models: years, brackets and standard deductions."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from taxreturn.models.enums import FEDERAL, FilingStatus
from taxreturn.models.money import Money, Rate


def _normalize_jurisdiction(value: str) -> str:
    value = value.strip()
    if value.lower() == FEDERAL:
        return FEDERAL
    return value.upper()


class TaxYear(BaseModel):
    year: int
    is_active: bool = False
    federal_deadline: date
    state_deadlines: dict[str, date | None] = Field(default_factory=dict)
    no_income_tax_states: list[str] = Field(default_factory=list)
    capital_loss_limits: dict[FilingStatus, Money] = Field(default_factory=dict)
    social_security_wage_base: Money | None = None
    social_security_tax_rate: Rate | None = None

    @field_validator("no_income_tax_states")
    @classmethod
    def _upper_states(cls, value: list[str]) -> list[str]:
        return sorted({s.strip().upper() for s in value})


class TaxBracket(BaseModel):
    """One rate band. ``max_income`` of None is the unbounded top band."""

    year: int
    jurisdiction: str = FEDERAL
    filing_status: FilingStatus
    min_income: Money
    max_income: Money | None = None
    rate: Rate

    @field_validator("jurisdiction")
    @classmethod
    def _jurisdiction(cls, value: str) -> str:
        return _normalize_jurisdiction(value)


class StandardDeduction(BaseModel):
    year: int
    jurisdiction: str = FEDERAL
    filing_status: FilingStatus
    amount: Money
    additional_blind_amount: Money = Decimal("0.00")
    additional_disabled_amount: Money = Decimal("0.00")

    @field_validator("jurisdiction")
    @classmethod
    def _jurisdiction(cls, value: str) -> str:
        return _normalize_jurisdiction(value)
