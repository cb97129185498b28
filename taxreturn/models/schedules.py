"""Form 8949 rows and the Schedule D summary derived from them."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, Field

from taxreturn.models.enums import Form8949Category
from taxreturn.models.money import Money

_ZERO = Decimal("0.00")


class Form8949Row(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    tax_return_id: str
    entry_id: str | None = None
    manual_adjustment_id: str | None = None
    description: str = ""
    date_acquired: date | None = None
    date_sold: date | None = None
    proceeds: Money = _ZERO
    cost_basis: Money = _ZERO
    adjustment_code: str = ""
    adjustment_amount: Money = _ZERO
    gain_or_loss: Money = _ZERO
    is_short_term: bool = True
    wash_sale: bool = False
    category: Form8949Category = Form8949Category.A
    excluded: bool = False
    needs_review: bool = False
    review_reason: str | None = None


class ScheduleD(BaseModel):
    tax_return_id: str
    short_term_proceeds: Money = _ZERO
    short_term_cost_basis: Money = _ZERO
    short_term_adjustments: Money = _ZERO
    short_term_gain_loss: Money = _ZERO
    long_term_proceeds: Money = _ZERO
    long_term_cost_basis: Money = _ZERO
    long_term_adjustments: Money = _ZERO
    long_term_gain_loss: Money = _ZERO
    net_short_term_gain_loss: Money = _ZERO
    net_long_term_gain_loss: Money = _ZERO
    total_gain_loss: Money = _ZERO

    @classmethod
    def from_rows(cls, tax_return_id: str, rows: list[Form8949Row]) -> "ScheduleD":
        """Sum included rows per term bucket. Excluded rows never count."""
        totals = {
            True: [_ZERO, _ZERO, _ZERO, _ZERO],
            False: [_ZERO, _ZERO, _ZERO, _ZERO],
        }
        for row in rows:
            if row.excluded:
                continue
            bucket = totals[row.is_short_term]
            bucket[0] += row.proceeds
            bucket[1] += row.cost_basis
            bucket[2] += row.adjustment_amount
            bucket[3] += row.gain_or_loss

        st_proceeds, st_basis, st_adj, st_gain = totals[True]
        lt_proceeds, lt_basis, lt_adj, lt_gain = totals[False]
        return cls(
            tax_return_id=tax_return_id,
            short_term_proceeds=st_proceeds,
            short_term_cost_basis=st_basis,
            short_term_adjustments=st_adj,
            short_term_gain_loss=st_gain,
            long_term_proceeds=lt_proceeds,
            long_term_cost_basis=lt_basis,
            long_term_adjustments=lt_adj,
            long_term_gain_loss=lt_gain,
            net_short_term_gain_loss=st_gain,
            net_long_term_gain_loss=lt_gain,
            total_gain_loss=st_gain + lt_gain,
        )
