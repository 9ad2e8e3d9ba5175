"""Utility functions for date ranges, time parsing and display formatting."""

from __future__ import annotations

from calendar import monthrange
from datetime import date, time
from decimal import ROUND_HALF_UP, Decimal

from models import DateRange, currency_symbol

TWO_PLACES = Decimal("0.01")
ONE_PLACE = Decimal("0.1")


def get_month_range(year: int, month: int) -> DateRange:
    """First and last day of a calendar month."""
    return DateRange(date(year, month, 1), date(year, month, monthrange(year, month)[1]))


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move (year, month) by delta months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def parse_time(val: str | None) -> time | None:
    """Parse HH:MM to a time, or None if blank or invalid."""
    if not val:
        return None
    val = val.strip()
    if not val:
        return None
    try:
        parts = val.split(":")
        return time(int(parts[0]), int(parts[1]))
    except (ValueError, IndexError):
        return None


def format_time(t: time | None) -> str | None:
    if not t:
        return None
    return t.strftime("%H:%M")


def round2(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    return str(round2(value))


def format_money(value: Decimal, currency: str) -> str:
    """Amount with its currency symbol, e.g. '$150.00'."""
    return f"{currency_symbol(currency)}{format_amount(value)}"


def format_hours(value: Decimal) -> str:
    """Hours to one decimal place for display."""
    return str(value.quantize(ONE_PLACE, rounding=ROUND_HALF_UP))


def format_long_date(d: date) -> str:
    return d.strftime("%b %d, %Y")
