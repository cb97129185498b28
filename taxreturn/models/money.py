"""Fixed-precision monetary helpers.

Amounts are persisted with 2 decimal places, rates with 4. Values are parsed
from strings or ints into Decimal; floats are rejected so binary rounding
never leaks into a tax figure.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BeforeValidator

CENT = Decimal("0.01")
RATE_PLACES = Decimal("0.0001")
ZERO = Decimal("0")


def money(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def rate(value: Decimal) -> Decimal:
    return value.quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def parse_currency(value: Any) -> Decimal | None:
    """Parse currency-formatted text into an exact Decimal.

    Handles ``$12,345.67``, ``(1,234.56)`` and ``-12.00``. Blank or
    unparseable input returns None.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # Only reached for model-provided JSON numbers; go through repr, not the binary value
        return Decimal(repr(value))
    text = str(value).strip()
    if not text:
        return None
    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1].strip()
    text = text.replace("$", "").replace(",", "").replace(" ", "")
    if text.startswith("-"):
        negative = not negative
        text = text[1:]
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return -parsed if negative else parsed


def _to_money(value: Any) -> Any:
    if isinstance(value, float):
        raise ValueError("monetary values must be given as str, int or Decimal, not float")
    parsed = parse_currency(value)
    if parsed is None:
        if value is None:
            return None
        raise ValueError(f"not a monetary amount: {value!r}")
    return money(parsed)


def _to_rate(value: Any) -> Any:
    if isinstance(value, float):
        raise ValueError("rates must be given as str, int or Decimal, not float")
    parsed = parse_currency(value)
    if parsed is None:
        raise ValueError(f"not a rate: {value!r}")
    return rate(parsed)


Money = Annotated[Decimal, BeforeValidator(_to_money)]
Rate = Annotated[Decimal, BeforeValidator(_to_rate)]
