"""Progressive bracket evaluation.

Pure functions over bracket tables resolved by TaxConfigStore. No tax-year
data lives here. Arithmetic is exact Decimal; the only rounding is the final
half-up to cents in ``compute_tax``.
"""

from decimal import Decimal

from taxreturn.exceptions import InvariantViolationError
from taxreturn.models.money import ZERO, money, rate
from taxreturn.models.tax_config import TaxBracket


def validate_brackets(brackets: list[TaxBracket]) -> None:
    """Raise InvariantViolationError unless the table is a valid progressive schedule.

    A valid table starts at 0, is ordered by ``min_income``, has each band
    start exactly where the previous one ends, and ends with an unbounded band.
    """
    if not brackets:
        raise InvariantViolationError("Bracket table is empty")
    if brackets[0].min_income != ZERO:
        raise InvariantViolationError(
            f"First bracket must start at 0, starts at {brackets[0].min_income}"
        )
    for lower, upper in zip(brackets, brackets[1:]):
        if lower.max_income is None:
            raise InvariantViolationError(
                f"Unbounded bracket at {lower.min_income} is not the last bracket"
            )
        if upper.min_income != lower.max_income:
            raise InvariantViolationError(
                f"Brackets are not contiguous: {lower.min_income}-{lower.max_income} "
                f"followed by {upper.min_income}-{upper.max_income}"
            )
    for bracket in brackets:
        if bracket.max_income is not None and bracket.max_income <= bracket.min_income:
            raise InvariantViolationError(
                f"Bracket {bracket.min_income}-{bracket.max_income} is empty or inverted"
            )
        if bracket.rate < ZERO:
            raise InvariantViolationError(f"Negative rate {bracket.rate}")
    if brackets[-1].max_income is not None:
        raise InvariantViolationError(
            f"Top bracket must be unbounded, ends at {brackets[-1].max_income}"
        )


def _unrounded_tax(taxable_income: Decimal, brackets: list[TaxBracket]) -> Decimal:
    tax = ZERO
    for bracket in brackets:
        upper = taxable_income if bracket.max_income is None else min(taxable_income, bracket.max_income)
        taxable_in_bracket = max(upper - bracket.min_income, ZERO)
        tax += taxable_in_bracket * bracket.rate
        if bracket.max_income is None or taxable_income <= bracket.max_income:
            break
    return tax


def compute_tax(taxable_income: Decimal, brackets: list[TaxBracket]) -> Decimal:
    """Tax owed on ``taxable_income`` under a progressive bracket table.

    Income exactly at a band's upper edge is taxed entirely within that band.
    Negative income is a caller bug and raises InvariantViolationError; clamp
    before calling.
    """
    if taxable_income < ZERO:
        raise InvariantViolationError(
            f"Taxable income must be non-negative, got {taxable_income}"
        )
    validate_brackets(brackets)
    return money(_unrounded_tax(taxable_income, brackets))


def marginal_rate(taxable_income: Decimal, brackets: list[TaxBracket]) -> Decimal:
    """Rate applied to the last dollar of ``taxable_income``."""
    validate_brackets(brackets)
    for bracket in brackets:
        if bracket.max_income is None or taxable_income <= bracket.max_income:
            return bracket.rate
    return brackets[-1].rate


def effective_rate(tax: Decimal, income: Decimal) -> Decimal:
    if income <= ZERO:
        return rate(ZERO)
    return rate(tax / income)
