"""Capital gains aggregation: 1099-B lots to Form 8949 rows and Schedule D.

Schedule D is a materialized view of the Form 8949 rows. It is rebuilt from
the rows on every run and never edited in place.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal

from taxreturn.db.base import Repository
from taxreturn.models.enums import AdjustmentCode, Form8949Category, HoldingPeriod
from taxreturn.models.money import ZERO, money
from taxreturn.models.schedules import Form8949Row, ScheduleD
from taxreturn.models.tax_forms import Form1099BEntry, ManualAdjustment

logger = logging.getLogger(__name__)


def holding_period(acquired: date, sold: date) -> HoldingPeriod:
    """Long-term when held more than one year.

    The holding period starts the day after acquisition.
    """
    holding_start = acquired + timedelta(days=1)
    try:
        one_year_later = holding_start.replace(year=holding_start.year + 1)
    except ValueError:
        # Held from Feb 29: one year later is Mar 1
        one_year_later = date(holding_start.year + 1, 3, 1)
    if sold >= one_year_later:
        return HoldingPeriod.LONG_TERM
    return HoldingPeriod.SHORT_TERM


def form_8949_category(
    is_short_term: bool, basis_reported: bool, form_1099b_received: bool = True
) -> Form8949Category:
    """Form 8949 checkbox (A-F)."""
    if is_short_term:
        if not form_1099b_received:
            return Form8949Category.C
        return Form8949Category.A if basis_reported else Form8949Category.B
    if not form_1099b_received:
        return Form8949Category.F
    return Form8949Category.D if basis_reported else Form8949Category.E


def _join_codes(codes: set[str]) -> str:
    return "".join(sorted(codes))


class CapitalGainsAggregator:
    """Builds Form 8949 rows from 1099-B entries and manual adjustments."""

    def __init__(self, repo: Repository | None = None):
        self.repo = repo

    def aggregate(
        self,
        tax_return_id: str,
        entries: list[Form1099BEntry],
        manual_adjustments: list[ManualAdjustment] | None = None,
    ) -> tuple[list[Form8949Row], ScheduleD]:
        manual_adjustments = manual_adjustments or []
        by_entry: dict[str, list[ManualAdjustment]] = {}
        standalone: list[ManualAdjustment] = []
        for adjustment in manual_adjustments:
            if adjustment.entry_id:
                by_entry.setdefault(adjustment.entry_id, []).append(adjustment)
            else:
                standalone.append(adjustment)

        known_ids = {entry.id for entry in entries}
        for entry_id in by_entry:
            if entry_id not in known_ids:
                logger.warning("Manual adjustment references unknown 1099-B entry %s", entry_id)

        rows = [
            self._entry_row(tax_return_id, entry, by_entry.get(entry.id, []))
            for entry in entries
        ]
        rows.extend(self._manual_row(tax_return_id, adj) for adj in standalone)

        schedule_d = ScheduleD.from_rows(tax_return_id, rows)
        flagged = sum(1 for row in rows if row.needs_review)
        if flagged:
            logger.warning("%d of %d Form 8949 rows need review for return %s", flagged, len(rows), tax_return_id)
        return rows, schedule_d

    def aggregate_return(self, tax_return_id: str) -> tuple[list[Form8949Row], ScheduleD]:
        """Aggregate the stored 1099-B entries for a return and persist the result."""
        if self.repo is None:
            raise ValueError("CapitalGainsAggregator needs a repository to aggregate a stored return")
        rows, schedule_d = self.aggregate(
            tax_return_id,
            self.repo.get_1099b_entries(tax_return_id),
            self.repo.get_manual_adjustments(tax_return_id),
        )
        self.repo.save_capital_gains(tax_return_id, rows, schedule_d)
        return rows, schedule_d

    def _entry_row(
        self, tax_return_id: str, entry: Form1099BEntry, adjustments: list[ManualAdjustment]
    ) -> Form8949Row:
        reasons: list[str] = []
        excluded = False
        if entry.proceeds is None and entry.cost_basis is None:
            excluded = True
            reasons.append("missing proceeds and cost basis")
        elif entry.proceeds is None:
            reasons.append("missing proceeds, treated as 0")
        elif entry.cost_basis is None:
            reasons.append("missing cost basis, treated as 0")

        proceeds = entry.proceeds if entry.proceeds is not None else ZERO
        cost_basis = entry.cost_basis if entry.cost_basis is not None else ZERO

        codes: set[str] = set()
        adjustment_amount = ZERO
        if entry.wash_sale and entry.wash_sale_amount:
            # Disallowed loss is added back
            adjustment_amount += abs(entry.wash_sale_amount)
            codes.add(AdjustmentCode.WASH_SALE.value)
        for adjustment in adjustments:
            adjustment_amount += adjustment.adjustment_amount
            codes.add(adjustment.adjustment_code.value)

        is_short_term = entry.is_short_term
        if is_short_term is None:
            if entry.date_acquired and entry.date_sold:
                is_short_term = holding_period(entry.date_acquired, entry.date_sold) == HoldingPeriod.SHORT_TERM
            else:
                is_short_term = True
                reasons.append("holding period unknown, reported as short-term")

        gain = money(proceeds - cost_basis + adjustment_amount)
        if entry.gain_loss is not None and not excluded and entry.gain_loss not in (money(proceeds - cost_basis), gain):
            logger.info(
                "Broker gain %s for '%s' differs from computed %s", entry.gain_loss, entry.description, gain
            )

        return Form8949Row(
            tax_return_id=tax_return_id,
            entry_id=entry.id,
            description=entry.description,
            date_acquired=entry.date_acquired,
            date_sold=entry.date_sold,
            proceeds=proceeds,
            cost_basis=cost_basis,
            adjustment_code=_join_codes(codes),
            adjustment_amount=adjustment_amount,
            gain_or_loss=ZERO if excluded else gain,
            is_short_term=is_short_term,
            wash_sale=entry.wash_sale,
            category=form_8949_category(is_short_term, entry.reported_to_irs),
            excluded=excluded,
            needs_review=bool(reasons),
            review_reason="; ".join(reasons) or None,
        )

    def _manual_row(self, tax_return_id: str, adjustment: ManualAdjustment) -> Form8949Row:
        """A disposition entered by hand, with no 1099-B behind it."""
        reasons: list[str] = []
        excluded = adjustment.proceeds is None and adjustment.cost_basis is None
        if excluded:
            reasons.append("missing proceeds and cost basis")
        proceeds = adjustment.proceeds if adjustment.proceeds is not None else ZERO
        cost_basis = adjustment.cost_basis if adjustment.cost_basis is not None else ZERO

        is_short_term = adjustment.is_short_term
        if is_short_term is None:
            if adjustment.date_acquired and adjustment.date_sold:
                is_short_term = (
                    holding_period(adjustment.date_acquired, adjustment.date_sold) == HoldingPeriod.SHORT_TERM
                )
            else:
                is_short_term = True
                reasons.append("holding period unknown, reported as short-term")

        amount: Decimal = adjustment.adjustment_amount
        return Form8949Row(
            tax_return_id=tax_return_id,
            manual_adjustment_id=adjustment.id,
            description=adjustment.description,
            date_acquired=adjustment.date_acquired,
            date_sold=adjustment.date_sold,
            proceeds=proceeds,
            cost_basis=cost_basis,
            adjustment_code=adjustment.adjustment_code.value if amount else "",
            adjustment_amount=amount,
            gain_or_loss=ZERO if excluded else money(proceeds - cost_basis + amount),
            is_short_term=is_short_term,
            category=form_8949_category(is_short_term, basis_reported=False, form_1099b_received=False),
            excluded=excluded,
            needs_review=bool(reasons),
            review_reason="; ".join(reasons) or None,
        )
