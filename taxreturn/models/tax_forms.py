"""Per-form income records (W-2, 1099-DIV, 1099-INT, 1099-B)."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from taxreturn.models.enums import AdjustmentCode
from taxreturn.models.money import Money

_ZERO = Decimal("0.00")


def _new_id() -> str:
    return str(uuid4())


class W2Data(BaseModel):
    id: str = Field(default_factory=_new_id)
    document_id: str | None = None
    tax_return_id: str
    employer_name: str | None = None
    employer_ein: str | None = None
    wages: Money = _ZERO  # Box 1
    federal_withheld: Money = _ZERO  # Box 2
    social_security_wages: Money | None = None  # Box 3
    social_security_withheld: Money | None = None  # Box 4
    medicare_wages: Money | None = None  # Box 5
    medicare_withheld: Money | None = None  # Box 6
    state: str | None = None  # Box 15
    state_wages: Money | None = None  # Box 16
    state_withheld: Money | None = None  # Box 17

    @field_validator("state")
    @classmethod
    def _upper_state(cls, value: str | None) -> str | None:
        return value.strip().upper() if value else None


class Form1099Div(BaseModel):
    id: str = Field(default_factory=_new_id)
    document_id: str | None = None
    tax_return_id: str
    payer_name: str | None = None
    payer_tin: str | None = None
    ordinary_dividends: Money = _ZERO  # Box 1a
    qualified_dividends: Money = _ZERO  # Box 1b
    total_capital_gain: Money = _ZERO  # Box 2a
    federal_withheld: Money = _ZERO  # Box 4
    foreign_tax_paid: Money = _ZERO  # Box 7


class Form1099Int(BaseModel):
    id: str = Field(default_factory=_new_id)
    document_id: str | None = None
    tax_return_id: str
    payer_name: str | None = None
    payer_tin: str | None = None
    interest_income: Money = _ZERO  # Box 1
    early_withdrawal_penalty: Money = _ZERO  # Box 2
    us_bond_interest: Money = _ZERO  # Box 3
    federal_withheld: Money = _ZERO  # Box 4


class Form1099B(BaseModel):
    """Broker statement header. Lots live in Form1099BEntry rows."""

    id: str = Field(default_factory=_new_id)
    document_id: str | None = None
    tax_return_id: str
    payer_name: str | None = None
    payer_tin: str | None = None
    # Broker-printed subtotals, kept only for cross-checking Schedule D
    short_term_gain_loss: Money | None = None
    long_term_gain_loss: Money | None = None


class Form1099BEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    form_1099b_id: str
    description: str = ""
    date_acquired: date | None = None
    date_sold: date | None = None
    proceeds: Money | None = None
    cost_basis: Money | None = None
    gain_loss: Money | None = None
    is_short_term: bool | None = None
    wash_sale: bool = False
    wash_sale_amount: Money = _ZERO
    reported_to_irs: bool = True


class ManualAdjustment(BaseModel):
    """A user-entered correction.

    With ``entry_id`` set it adjusts that 1099-B lot; without it, it is a
    standalone disposition the broker never reported (Form 8949 box C/F).
    """

    id: str = Field(default_factory=_new_id)
    tax_return_id: str
    entry_id: str | None = None
    adjustment_code: AdjustmentCode = AdjustmentCode.OTHER
    adjustment_amount: Money = _ZERO
    description: str = ""
    date_acquired: date | None = None
    date_sold: date | None = None
    proceeds: Money | None = None
    cost_basis: Money | None = None
    is_short_term: bool | None = None
