"""Billable hours and pay for a single time entry."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Final

from models import TimeEntry
from utils import format_amount, format_hours


class _InProgress:
    """Result for an entry that has no end time yet."""

    def __repr__(self) -> str:
        return "IN_PROGRESS"

    def __bool__(self) -> bool:
        return False


IN_PROGRESS: Final = _InProgress()


@dataclass(frozen=True)
class EntryPay:
    billable_minutes: int
    hours: Decimal
    pay: Decimal

    @property
    def display_hours(self) -> str:
        return format_hours(self.hours)

    @property
    def display_pay(self) -> str:
        return format_amount(self.pay)


ZERO_PAY: Final = EntryPay(billable_minutes=0, hours=Decimal("0"), pay=Decimal("0"))


def to_minutes(value: str | time) -> int:
    """Minutes since midnight for an HH:MM string or a time."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    hours, minutes = value.strip().split(":")[:2]
    return int(hours) * 60 + int(minutes)


def calculate_pay(
    start_time: str | time,
    end_time: str | time | None,
    break_time: int,
    hourly_rate: Decimal | int | str,
) -> EntryPay | _InProgress:
    """Billable hours and pay for a same-day work span.

    Returns IN_PROGRESS when there is no end time. A span that is empty
    after the break (including an end before the start) bills nothing.
    """
    if end_time is None or end_time == "":
        return IN_PROGRESS

    raw_minutes = to_minutes(end_time) - to_minutes(start_time)
    billable_minutes = raw_minutes - break_time
    if billable_minutes <= 0:
        return ZERO_PAY

    hours = Decimal(billable_minutes) / Decimal(60)
    return EntryPay(
        billable_minutes=billable_minutes,
        hours=hours,
        pay=hours * Decimal(str(hourly_rate)),
    )


def compute_entry_pay(entry: TimeEntry) -> EntryPay | _InProgress:
    return calculate_pay(entry.start_time, entry.end_time, entry.break_time, entry.hourly_rate)
