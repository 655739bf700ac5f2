"""Tests for display formatting."""

from decimal import Decimal

import pytest

from chile_payroll.formatting import format_clp, format_period


@pytest.mark.parametrize(
    "amount,expected",
    [
        (Decimal("1234567"), "$1.234.567"),
        (Decimal("999"), "$999"),
        (Decimal("0"), "$0"),
        (Decimal("-1000"), "-$1.000"),
        (Decimal("1500.5"), "$1.501"),
        (529000, "$529.000"),
    ],
)
def test_format_clp(amount, expected):
    assert format_clp(amount) == expected


def test_format_period():
    assert format_period(2025, 8) == "Agosto 2025"
    assert format_period(2024, 1) == "Enero 2024"
    assert format_period(2024, 12) == "Diciembre 2024"


@pytest.mark.parametrize("month", [0, 13])
def test_format_period_invalid_month(month):
    with pytest.raises(ValueError):
        format_period(2025, month)
