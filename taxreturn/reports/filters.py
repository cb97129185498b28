"""Jinja2 filters shared by the report templates."""

from decimal import Decimal


def usd(value: Decimal | None) -> str:
    """Format an amount as ``$1,234.56``; negatives as ``($1,234.56)``."""
    if value is None:
        return "-"
    if value < 0:
        return f"(${-value:,.2f})"
    return f"${value:,.2f}"


def pct(value: Decimal | None) -> str:
    if value is None:
        return "-"
    return f"{value * 100:.2f}%"


FILTERS = {"usd": usd, "pct": pct}
