"""Utility functions for the loan engine.

This module provides helpers for parsing user input into Python data types,
for month arithmetic on calendar dates and for rounding working-precision
amounts to currency precision at the presentation boundary.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")

# Balances below half a cent are treated as fully repaid.
RESIDUAL_TOLERANCE = Decimal("0.005")


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` or ``YYYY-MM`` string into a ``date``.

    A year-month string resolves to the first day of that month.

    Raises
    ------
    ValueError
        If the string is not a valid date.
    """
    try:
        parts = value.strip().split("-")
        if len(parts) not in (2, 3):
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        day = int(parts[2]) if len(parts) == 3 else 1
        return date(year, month, day)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = str(value).replace(",", "").strip()
        result = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def to_decimal(value) -> Decimal:
    """Coerce ints, floats, strings and Decimals to ``Decimal``.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value}")
    if isinstance(value, int):
        return Decimal(value)
    return decimal_from_str(str(value))


def to_money(value: Decimal) -> Decimal:
    """Round a working-precision amount to currency precision."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
