"""Chilean display formats for amounts and periods."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

MONTH_NAMES = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)


def format_clp(amount: Decimal | int) -> str:
    """Format pesos as ``$1.234.567`` (dot thousands, no decimals)."""
    value = Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.0f}".replace(",", ".")
    return f"{sign}${digits}"


def format_period(year: int, month: int) -> str:
    """Format a period as ``Agosto 2025``."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    return f"{MONTH_NAMES[month - 1]} {year}"
