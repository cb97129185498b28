"""Tax return aggregate, Form 1040 snapshot, state returns and taxpayer profile."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from taxreturn.models.enums import FilingStatus, ReturnStatus
from taxreturn.models.money import Money, Rate

_ZERO = Decimal("0.00")


class Address(BaseModel):
    street: str
    city: str
    state: str
    zip_code: str
    apartment: str | None = None

    @field_validator("state")
    @classmethod
    def _state_code(cls, value: str) -> str:
        value = value.strip().upper()
        if len(value) != 2:
            raise ValueError(f"state must be a 2-letter code, got {value!r}")
        return value


class Dependent(BaseModel):
    first_name: str
    last_name: str
    relationship: str
    date_of_birth: date | None = None
    months_lived_with_taxpayer: int = Field(default=12, ge=0, le=12)


class BankAccount(BaseModel):
    routing_number: str = Field(pattern=r"^\d{9}$")
    account_number: str = Field(min_length=4, max_length=17)
    account_type: Literal["checking", "savings"] = "checking"


class TaxpayerProfile(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: date | None = None
    is_blind: bool = False
    is_disabled: bool = False
    spouse_is_blind: bool = False
    spouse_is_disabled: bool = False
    address: Address | None = None
    dependents: list[Dependent] = Field(default_factory=list)
    bank_account: BankAccount | None = None

    @property
    def state_of_residence(self) -> str | None:
        return self.address.state if self.address else None


class TaxReturn(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    tax_year: int
    filing_status: FilingStatus = FilingStatus.SINGLE
    status: ReturnStatus = ReturnStatus.DRAFT
    profile: TaxpayerProfile = Field(default_factory=TaxpayerProfile)
    total_income: Money = _ZERO
    adjusted_gross_income: Money = _ZERO
    deductions: Money = _ZERO
    taxable_income: Money = _ZERO
    total_tax: Money = _ZERO
    total_withheld: Money = _ZERO
    refund_or_owed: Money = _ZERO
    calculated_at: datetime | None = None


class Form1040(BaseModel):
    tax_return_id: str
    wages: Money = _ZERO
    interest_income: Money = _ZERO
    dividend_income: Money = _ZERO
    qualified_dividends: Money = _ZERO
    capital_gains: Money = _ZERO
    capital_loss_carryforward: Money = _ZERO
    total_income: Money = _ZERO
    adjustments: Money = _ZERO
    adjusted_gross_income: Money = _ZERO
    standard_deduction: Money = _ZERO
    taxable_income: Money = _ZERO
    tax: Money = _ZERO
    credits: Money = _ZERO
    total_tax: Money = _ZERO
    federal_withheld: Money = _ZERO
    refund_or_owed: Money = _ZERO


class StateTaxReturn(BaseModel):
    tax_return_id: str
    state: str
    state_income: Money = _ZERO
    state_deduction: Money = _ZERO
    state_taxable_income: Money = _ZERO
    state_tax: Money = _ZERO
    state_withheld: Money = _ZERO
    state_refund_or_owed: Money = _ZERO
    effective_rate: Rate = Decimal("0")
    marginal_rate: Rate = Decimal("0")
    has_income_tax: bool = True
