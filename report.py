"""Earnings reports over a date range of time entries."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from calculator import EntryPay, compute_entry_pay
from models import DateRange, TimeEntry, currency_symbol
from utils import format_long_date, format_money, format_time, round2


class CurrencyMismatchError(ValueError):
    """Raised when a report that must be single-currency spans several."""

    def __init__(self, currencies: tuple[str, ...]):
        super().__init__(f"Entries use more than one currency: {', '.join(currencies)}")
        self.currencies = currencies


@dataclass(frozen=True)
class DailyTotal:
    date: date
    hours: Decimal
    pay: Decimal


@dataclass(frozen=True)
class ReportLine:
    entry: TimeEntry
    pay: EntryPay


@dataclass(frozen=True)
class TimesheetReport:
    start_date: date
    end_date: date
    lines: tuple[ReportLine, ...]
    total_hours: Decimal
    total_pay: Decimal
    currency: str
    currencies: tuple[str, ...] = ()
    daily: tuple[DailyTotal, ...] = field(default=())

    @property
    def entries(self) -> list[TimeEntry]:
        return [line.entry for line in self.lines]

    @property
    def average_hourly_rate(self) -> Decimal:
        if not self.total_hours:
            return Decimal("0")
        return self.total_pay / self.total_hours

    @property
    def rounded_total_hours(self) -> Decimal:
        return round2(self.total_hours)

    @property
    def rounded_total_pay(self) -> Decimal:
        return round2(self.total_pay)

    @property
    def is_mixed_currency(self) -> bool:
        return len(self.currencies) > 1


def plurality_currency(codes: Iterable[str]) -> str:
    """Most frequent code; ties go to the one seen first."""
    counts = Counter(codes)
    best, best_count = "", 0
    for code, count in counts.items():
        if count > best_count:
            best, best_count = code, count
    return best


def daily_totals(lines: Iterable[ReportLine]) -> tuple[DailyTotal, ...]:
    """Hours and pay per date, ascending by date."""
    hours: dict[date, Decimal] = {}
    pay: dict[date, Decimal] = {}
    for line in lines:
        d = line.entry.date
        hours[d] = hours.get(d, Decimal("0")) + line.pay.hours
        pay[d] = pay.get(d, Decimal("0")) + line.pay.pay
    return tuple(DailyTotal(d, hours[d], pay[d]) for d in sorted(hours))


def aggregate_report(
    entries: Iterable[TimeEntry],
    date_range: DateRange,
    require_single_currency: bool = False,
) -> TimesheetReport | None:
    """Summarise completed entries within date_range.

    Entries without an end time are left out. Returns None when nothing
    qualifies. Totals are plain sums across entries with no currency
    conversion; pass require_single_currency=True to reject a mix.
    """
    lines = []
    for entry in entries:
        if not date_range.contains(entry.date):
            continue
        result = compute_entry_pay(entry)
        if isinstance(result, EntryPay):
            lines.append(ReportLine(entry, result))

    if not lines:
        return None

    codes = [line.entry.currency for line in lines]
    currencies = tuple(dict.fromkeys(codes))
    if require_single_currency and len(currencies) > 1:
        raise CurrencyMismatchError(currencies)

    return TimesheetReport(
        start_date=date_range.start,
        end_date=date_range.end,
        lines=tuple(lines),
        total_hours=sum((line.pay.hours for line in lines), Decimal("0")),
        total_pay=sum((line.pay.pay for line in lines), Decimal("0")),
        currency=plurality_currency(codes),
        currencies=currencies,
        daily=daily_totals(lines),
    )


def format_report_line(line: ReportLine) -> str:
    entry = line.entry
    return (
        f"{format_long_date(entry.date)} - Work from {format_time(entry.start_time)} "
        f"to {format_time(entry.end_time)} - {format_money(line.pay.pay, entry.currency)}"
    )


def format_report_text(report: TimesheetReport) -> str:
    lines = [format_report_line(line) for line in report.lines]
    lines.append(f"Total Pay: {currency_symbol(report.currency)}{report.rounded_total_pay}")
    return "\n".join(lines)
