#!/usr/bin/env python3
"""Import time entries from an Excel workbook.

The first sheet needs a header row naming the columns Date, Start, End,
Break, Rate and Currency (any order, case-insensitive). Break, Rate and
Currency may be omitted and fall back to the saved defaults.
"""

import logging
import sys
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from pathlib import Path

from openpyxl import load_workbook

import storage
from models import Config, TimeEntry, check_pay_fields, get_currency
from utils import parse_time

logger = logging.getLogger(__name__)

COLUMNS = ("date", "start", "end", "break", "rate", "currency")


def parse_date_value(val) -> date | None:
    """Parse a date cell: a datetime, a date, or 'YYYY-MM-DD[ ...]' text."""
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if not val:
        return None
    try:
        return date.fromisoformat(str(val).split(" ")[0])
    except ValueError:
        return None


def parse_time_value(val) -> time | None:
    """Parse a time cell: a time, a datetime, or 'HH:MM[:SS]' text."""
    if isinstance(val, datetime):
        return val.time().replace(second=0, microsecond=0)
    if isinstance(val, time):
        return val.replace(second=0, microsecond=0)
    if val is None:
        return None
    return parse_time(str(val))


def _header_map(header_row) -> dict[str, int]:
    positions = {}
    for idx, cell in enumerate(header_row):
        name = str(cell).strip().lower() if cell is not None else ""
        if name in COLUMNS:
            positions[name] = idx
    missing = {"date", "start"} - positions.keys()
    if missing:
        raise ValueError(f"Workbook is missing columns: {', '.join(sorted(missing))}")
    return positions


def import_rows(rows, user_id: str, defaults: Config) -> list[TimeEntry]:
    """Build entries from worksheet rows (header first). Bad rows are skipped."""
    rows = iter(rows)
    try:
        positions = _header_map(next(rows))
    except StopIteration:
        return []

    def cell(row, name):
        idx = positions.get(name)
        return row[idx] if idx is not None and idx < len(row) else None

    entries = []
    for row_num, row in enumerate(rows, start=2):
        entry_date = parse_date_value(cell(row, "date"))
        start_time = parse_time_value(cell(row, "start"))
        if not entry_date or not start_time:
            logger.warning("Skipping row %d: needs a date and a start time", row_num)
            continue

        try:
            end_val = cell(row, "end")
            end_time = parse_time_value(end_val)
            if end_time is None and str(end_val or "").strip():
                raise ValueError(f"End time must be HH:MM, got {end_val!r}")
            break_val = cell(row, "break")
            rate_val = cell(row, "rate")
            break_time = int(break_val) if break_val not in (None, "") else defaults.break_time
            hourly_rate = Decimal(str(rate_val)) if rate_val not in (None, "") else defaults.hourly_rate
            check_pay_fields(break_time, hourly_rate)
            currency = str(cell(row, "currency") or defaults.currency).strip().upper()
            get_currency(currency)
            entry = TimeEntry(
                user_id=user_id,
                date=entry_date,
                start_time=start_time,
                end_time=end_time,
                break_time=break_time,
                hourly_rate=hourly_rate,
                currency=currency,
            )
        except (ValueError, InvalidOperation, KeyError) as e:
            logger.warning("Skipping row %d: %s", row_num, e)
            continue
        entries.append(entry)

    return entries


def import_from_workbook(path: Path, user_id: str | None = None) -> list[TimeEntry]:
    """Import all entries from the first sheet of a workbook."""
    storage.init_db()
    user_id = user_id or storage.get_user_id()

    wb = load_workbook(path, data_only=True, read_only=True)
    try:
        rows = wb.worksheets[0].iter_rows(values_only=True)
        entries = import_rows(rows, user_id, storage.get_config())
    finally:
        wb.close()

    created = [storage.create_entry(entry) for entry in entries]
    logger.info("Imported %d entries from %s", len(created), path)
    return created


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: import_data.py <workbook.xlsx>")
        sys.exit(1)
    imported = import_from_workbook(Path(sys.argv[1]))
    print(f"Total: {len(imported)} entries imported")
