"""Return-level calculation.

Pulls every income record stored for a return, refreshes Schedule D,
applies the standard deduction and bracket table for the return's year and
filing status, and writes the TaxReturn summary, Form 1040 snapshot and
per-state returns in a single repository transaction.

Calculation is idempotent: every run overwrites the previous snapshot.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from taxreturn.db.base import Repository
from taxreturn.engines.brackets import compute_tax, effective_rate, marginal_rate
from taxreturn.engines.capital_gains import CapitalGainsAggregator
from taxreturn.exceptions import RecordNotFoundError
from taxreturn.models.enums import FilingStatus, ReturnStatus
from taxreturn.models.money import ZERO, money
from taxreturn.models.schedules import Form8949Row, ScheduleD
from taxreturn.models.tax_config import StandardDeduction, TaxYear
from taxreturn.models.tax_forms import W2Data
from taxreturn.models.tax_return import Form1040, StateTaxReturn, TaxpayerProfile, TaxReturn
from taxreturn.tax_config.store import TaxConfigStore

logger = logging.getLogger(__name__)


class CalculationResult(BaseModel):
    tax_return: TaxReturn
    form1040: Form1040
    schedule_d: ScheduleD
    form8949_rows: list[Form8949Row] = Field(default_factory=list)
    state_returns: list[StateTaxReturn] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def deduction_amount(
    deduction: StandardDeduction, profile: TaxpayerProfile, filing_status: FilingStatus
) -> Decimal:
    """Standard deduction plus the per-person blind and disabled additions."""
    blind = int(profile.is_blind)
    disabled = int(profile.is_disabled)
    if filing_status == FilingStatus.MARRIED_JOINT:
        blind += int(profile.spouse_is_blind)
        disabled += int(profile.spouse_is_disabled)
    return (
        deduction.amount
        + deduction.additional_blind_amount * blind
        + deduction.additional_disabled_amount * disabled
    )


class ReturnAggregator:
    """Computes and persists the federal and state figures for a tax return."""

    def __init__(self, repo: Repository, config: TaxConfigStore):
        self.repo = repo
        self.config = config
        self.capital_gains = CapitalGainsAggregator(repo)
        # tax_return_id -> (lock, number of callers using it)
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _return_lock(self, tax_return_id: str):
        """Serialize calculations of one return; the entry is dropped once unused."""
        with self._locks_guard:
            lock, users = self._locks.get(tax_return_id, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[tax_return_id] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                lock, users = self._locks[tax_return_id]
                if users == 1:
                    del self._locks[tax_return_id]
                else:
                    self._locks[tax_return_id] = (lock, users - 1)

    def calculate(
        self,
        tax_return_id: str,
        filing_status: FilingStatus | None = None,
        states: list[str] | None = None,
    ) -> CalculationResult:
        """Recompute a return.

        Raises RecordNotFoundError for an unknown return and
        ConfigNotFoundError when the year has no tables for the filing status
        or for a state with an income tax. Nothing is written on failure.
        """
        with self._return_lock(tax_return_id):
            return self._calculate(tax_return_id, filing_status, states)

    def _calculate(
        self, tax_return_id: str, filing_status: FilingStatus | None, states: list[str] | None
    ) -> CalculationResult:
        tax_return = self.repo.get_tax_return(tax_return_id)
        if tax_return is None:
            raise RecordNotFoundError("tax return", tax_return_id)
        filing_status = filing_status or tax_return.filing_status
        year = tax_return.tax_year
        warnings: list[str] = []

        # Configuration first so a gap blocks the calculation before any work
        tax_year = self.config.get_tax_year(year)
        brackets = self.config.get_brackets(year, filing_status)
        deduction = self.config.get_standard_deduction(year, filing_status)
        loss_limit = self.config.get_capital_loss_limit(year, filing_status)

        w2s = self.repo.get_w2s(tax_return_id)
        ints = self.repo.get_1099ints(tax_return_id)
        divs = self.repo.get_1099divs(tax_return_id)
        if not w2s:
            warnings.append("No W-2 data found. Using $0 wages.")
        warnings.extend(self._check_social_security(w2s, tax_year))

        wages = sum((w2.wages for w2 in w2s), ZERO)
        interest = sum((form.interest_income for form in ints), ZERO)
        dividends = sum((form.ordinary_dividends for form in divs), ZERO)
        qualified = sum((form.qualified_dividends for form in divs), ZERO)
        federal_withheld = (
            sum((w2.federal_withheld for w2 in w2s), ZERO)
            + sum((form.federal_withheld for form in ints), ZERO)
            + sum((form.federal_withheld for form in divs), ZERO)
        )

        rows, schedule_d = self.capital_gains.aggregate(
            tax_return_id,
            self.repo.get_1099b_entries(tax_return_id),
            self.repo.get_manual_adjustments(tax_return_id),
        )
        warnings.extend(self._cross_check(tax_return_id, schedule_d))
        flagged = [row for row in rows if row.needs_review]
        if flagged:
            warnings.append(f"{len(flagged)} Form 8949 row(s) need review.")

        capital_gains, carryforward = self._limit_capital_loss(schedule_d.total_gain_loss, loss_limit)
        if carryforward:
            warnings.append(
                f"Capital loss of ${abs(schedule_d.total_gain_loss):,.2f} exceeds the "
                f"${loss_limit:,.2f} annual limit. "
                f"${carryforward:,.2f} carries forward to next year."
            )

        total_income = wages + interest + dividends + capital_gains
        agi = total_income
        deduction_used = deduction_amount(deduction, tax_return.profile, filing_status)
        taxable_income = max(agi - deduction_used, ZERO)
        tax = compute_tax(taxable_income, brackets)
        refund_or_owed = federal_withheld - tax

        form1040 = Form1040(
            tax_return_id=tax_return_id,
            wages=wages,
            interest_income=interest,
            dividend_income=dividends,
            qualified_dividends=qualified,
            capital_gains=capital_gains,
            capital_loss_carryforward=carryforward,
            total_income=total_income,
            adjusted_gross_income=agi,
            standard_deduction=deduction_used,
            taxable_income=taxable_income,
            tax=tax,
            total_tax=tax,
            federal_withheld=federal_withheld,
            refund_or_owed=refund_or_owed,
        )

        state_returns = [
            self._state_return(tax_return_id, year, filing_status, state, total_income, w2s)
            for state in self._states_for(tax_return, w2s, states)
        ]

        updated = tax_return.model_copy(
            update={
                "filing_status": filing_status,
                "status": ReturnStatus.REVIEW if flagged else ReturnStatus.IN_PROGRESS,
                "total_income": money(total_income),
                "adjusted_gross_income": money(agi),
                "deductions": money(deduction_used),
                "taxable_income": money(taxable_income),
                "total_tax": tax,
                "total_withheld": money(federal_withheld),
                "refund_or_owed": money(refund_or_owed),
                "calculated_at": datetime.now(),
            }
        )
        self.repo.save_calculation(updated, form1040, rows, schedule_d, state_returns)
        logger.info(
            "Calculated return %s (%s %s): taxable %s, tax %s, refund/owed %s",
            tax_return_id,
            year,
            filing_status,
            form1040.taxable_income,
            form1040.tax,
            form1040.refund_or_owed,
        )
        return CalculationResult(
            tax_return=updated,
            form1040=form1040,
            schedule_d=schedule_d,
            form8949_rows=rows,
            state_returns=state_returns,
            warnings=warnings,
        )

    @staticmethod
    def _check_social_security(w2s: list[W2Data], tax_year: TaxYear) -> list[str]:
        """Flag W-2s whose Box 4 exceeds the year's maximum social security tax."""
        if tax_year.social_security_wage_base is None or tax_year.social_security_tax_rate is None:
            return []
        maximum = money(tax_year.social_security_wage_base * tax_year.social_security_tax_rate)
        return [
            f"W-2 from {w2.employer_name or 'unknown employer'}: Box 4 (${w2.social_security_withheld:,.2f}) "
            f"exceeds the {tax_year.year} maximum social security tax of ${maximum:,.2f}."
            for w2 in w2s
            if w2.social_security_withheld is not None and w2.social_security_withheld > maximum
        ]

    @staticmethod
    def _limit_capital_loss(net_capital: Decimal, loss_limit: Decimal) -> tuple[Decimal, Decimal]:
        """Return (amount counted in income, loss carried forward)."""
        if net_capital >= ZERO:
            return net_capital, ZERO
        allowed = max(net_capital, -loss_limit)
        return allowed, allowed - net_capital

    def _cross_check(self, tax_return_id: str, schedule_d: ScheduleD) -> list[str]:
        """Compare broker-printed 1099-B subtotals with Schedule D.

        Broker subtotals are never used as the reported figure.
        """
        warnings = []
        forms = self.repo.get_1099bs(tax_return_id)
        pairs = (
            ("short-term", [f.short_term_gain_loss for f in forms], schedule_d.net_short_term_gain_loss),
            ("long-term", [f.long_term_gain_loss for f in forms], schedule_d.net_long_term_gain_loss),
        )
        for label, reported, computed in pairs:
            reported = [value for value in reported if value is not None]
            if not reported:
                continue
            broker_total = sum(reported, ZERO)
            if broker_total != computed:
                message = (
                    f"1099-B {label} subtotal ${broker_total:,.2f} does not match "
                    f"Schedule D ${computed:,.2f}; Schedule D is used."
                )
                logger.warning("%s (return %s)", message, tax_return_id)
                warnings.append(message)
        return warnings

    @staticmethod
    def _states_for(tax_return: TaxReturn, w2s, states: list[str] | None) -> list[str]:
        if states is not None:
            return sorted({state.strip().upper() for state in states if state.strip()})
        found = {w2.state for w2 in w2s if w2.state}
        residence = tax_return.profile.state_of_residence
        if residence:
            found.add(residence)
        return sorted(found)

    def _state_return(
        self,
        tax_return_id: str,
        year: int,
        filing_status: FilingStatus,
        state: str,
        state_income: Decimal,
        w2s,
    ) -> StateTaxReturn:
        withheld = sum(
            (w2.state_withheld or ZERO for w2 in w2s if w2.state == state),
            ZERO,
        )
        if self.config.is_income_tax_free(year, state):
            return StateTaxReturn(
                tax_return_id=tax_return_id,
                state=state,
                state_income=state_income,
                state_withheld=withheld,
                state_refund_or_owed=withheld,
                has_income_tax=False,
            )

        brackets = self.config.get_brackets(year, filing_status, state)
        deduction = self.config.get_standard_deduction(year, filing_status, state).amount
        taxable = max(state_income - deduction, ZERO)
        tax = compute_tax(taxable, brackets)
        return StateTaxReturn(
            tax_return_id=tax_return_id,
            state=state,
            state_income=state_income,
            state_deduction=deduction,
            state_taxable_income=taxable,
            state_tax=tax,
            state_withheld=withheld,
            state_refund_or_owed=withheld - tax,
            effective_rate=effective_rate(tax, state_income),
            marginal_rate=marginal_rate(taxable, brackets),
        )

