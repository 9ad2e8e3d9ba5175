from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, time
from decimal import Decimal
from typing import NamedTuple


@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str
    name: str


CURRENCIES = [
    Currency("USD", "$", "US Dollar"),
    Currency("EUR", "€", "Euro"),
    Currency("GBP", "£", "British Pound"),
    Currency("JPY", "¥", "Japanese Yen"),
    Currency("CAD", "C$", "Canadian Dollar"),
    Currency("AUD", "A$", "Australian Dollar"),
    Currency("SGD", "S$", "Singapore Dollar"),
]

_CURRENCIES_BY_CODE = {c.code: c for c in CURRENCIES}


def get_currency(code: str) -> Currency:
    """Look up currency metadata. Raises KeyError for an unknown code."""
    return _CURRENCIES_BY_CODE[code]


def currency_symbol(code: str) -> str:
    """Display symbol for a currency code, or the code itself if unknown."""
    currency = _CURRENCIES_BY_CODE.get(code)
    return currency.symbol if currency else code


class DateRange(NamedTuple):
    """Closed date range, both ends inclusive."""

    start: date
    end: date

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end


@dataclass
class TimeEntry:
    user_id: str
    date: date
    start_time: time
    end_time: time | None = None
    break_time: int = 0
    hourly_rate: Decimal = Decimal("0")
    currency: str = "USD"
    id: int | None = None

    @property
    def day_of_week(self) -> str:
        return self.date.strftime("%a")

    @property
    def is_in_progress(self) -> bool:
        """An entry without an end time is still being worked."""
        return self.end_time is None


@dataclass
class Template:
    user_id: str
    name: str
    start_time: time | None = None
    end_time: time | None = None
    break_time: int = 0
    hourly_rate: Decimal = Decimal("0")
    currency: str = "USD"
    created_at: date | None = None
    id: int | None = None

    def to_entry(self, d: date, user_id: str | None = None) -> TimeEntry:
        """Create a new (unsaved) entry on date d from this template."""
        if self.start_time is None:
            raise ValueError(f"Template '{self.name}' has no start time")
        return TimeEntry(
            user_id=user_id or self.user_id,
            date=d,
            start_time=self.start_time,
            end_time=self.end_time,
            break_time=self.break_time,
            hourly_rate=self.hourly_rate,
            currency=self.currency,
        )


@dataclass
class Config:
    hourly_rate: Decimal = Decimal("0")
    currency: str = "USD"
    break_time: int = 0


def check_pay_fields(break_time: int, hourly_rate: Decimal) -> None:
    """Raise ValueError unless break and rate are both zero or more."""
    if break_time < 0:
        raise ValueError("Break cannot be negative")
    if not hourly_rate.is_finite() or hourly_rate < 0:
        raise ValueError("Hourly rate must be zero or more")


def with_id(record, record_id: int):
    """Copy of a dataclass record with its storage id set."""
    return replace(record, id=record_id)
