"""Tests for import_data.py - Excel import."""

from datetime import date, datetime, time
from decimal import Decimal

import pytest
from openpyxl import Workbook

from import_data import import_from_workbook, import_rows, parse_date_value, parse_time_value
from models import Config

DEFAULTS = Config(hourly_rate=Decimal("30"), currency="EUR", break_time=15)


class TestParseDateValue:
    """Tests for parse_date_value."""

    def test_datetime(self):
        assert parse_date_value(datetime(2026, 1, 5, 0, 0)) == date(2026, 1, 5)

    def test_date(self):
        assert parse_date_value(date(2026, 1, 5)) == date(2026, 1, 5)

    def test_text(self):
        assert parse_date_value("2026-01-05") == date(2026, 1, 5)
        assert parse_date_value("2026-01-05 00:00:00") == date(2026, 1, 5)

    def test_invalid(self):
        assert parse_date_value("05/01/2026") is None
        assert parse_date_value(None) is None


class TestParseTimeValue:
    """Tests for parse_time_value."""

    def test_time_drops_seconds(self):
        assert parse_time_value(time(9, 15, 42)) == time(9, 15)

    def test_datetime(self):
        assert parse_time_value(datetime(1899, 12, 30, 17, 30)) == time(17, 30)

    def test_text(self):
        assert parse_time_value("08:45") == time(8, 45)

    def test_empty(self):
        assert parse_time_value(None) is None
        assert parse_time_value("soon") is None


class TestImportRows:
    """Tests for import_rows."""

    def test_full_rows(self):
        rows = [
            ("Date", "Start", "End", "Break", "Rate", "Currency"),
            (date(2026, 1, 5), time(9, 0), time(17, 0), 30, 20, "usd"),
        ]

        entries = import_rows(rows, "tester", DEFAULTS)

        assert len(entries) == 1
        entry = entries[0]
        assert entry.date == date(2026, 1, 5)
        assert entry.end_time == time(17, 0)
        assert entry.break_time == 30
        assert entry.hourly_rate == Decimal("20")
        assert entry.currency == "USD"
        assert entry.id is None

    def test_columns_in_any_order(self):
        rows = [
            ("start", "DATE"),
            ("10:00", "2026-01-06"),
        ]

        entries = import_rows(rows, "tester", DEFAULTS)

        assert entries[0].date == date(2026, 1, 6)
        assert entries[0].start_time == time(10, 0)

    def test_missing_columns_use_defaults(self):
        rows = [("Date", "Start", "End"), ("2026-01-05", "09:00", None)]

        entry = import_rows(rows, "tester", DEFAULTS)[0]

        assert entry.end_time is None
        assert entry.break_time == 15
        assert entry.hourly_rate == Decimal("30")
        assert entry.currency == "EUR"

    def test_bad_rows_skipped(self):
        rows = [
            ("Date", "Start", "Rate", "Currency"),
            ("not a date", "09:00", 20, "USD"),
            ("2026-01-05", None, 20, "USD"),
            ("2026-01-05", "09:00", "lots", "USD"),
            ("2026-01-05", "09:00", 20, "XYZ"),
            ("2026-01-06", "09:00", 20, "USD"),
        ]

        entries = import_rows(rows, "tester", DEFAULTS)

        assert [e.date for e in entries] == [date(2026, 1, 6)]

    def test_rows_breaking_entry_rules_skipped(self):
        rows = [
            ("Date", "Start", "End", "Break", "Rate", "Currency"),
            ("2026-01-05", "09:00", "10:00", -60, 20, "USD"),
            ("2026-01-05", "09:00", "10:00", 0, -20, "USD"),
            ("2026-01-05", "09:00", "10:00", 0, "NaN", "USD"),
            ("2026-01-05", "09:00", "5pm", 0, 20, "USD"),
            ("2026-01-06", "09:00", "  ", 0, 20, "USD"),
            ("2026-01-07", "09:00", "10:00", 0, 0, "USD"),
        ]

        entries = import_rows(rows, "tester", DEFAULTS)

        assert [(e.date, e.end_time) for e in entries] == [
            (date(2026, 1, 6), None),
            (date(2026, 1, 7), time(10, 0)),
        ]

    def test_short_rows(self):
        rows = [("Date", "Start", "End"), ("2026-01-05", "09:00")]

        assert import_rows(rows, "tester", DEFAULTS)[0].end_time is None

    def test_empty_sheet(self):
        assert import_rows([], "tester", DEFAULTS) == []

    def test_missing_required_header(self):
        with pytest.raises(ValueError, match="missing columns: start"):
            import_rows([("Date", "End")], "tester", DEFAULTS)


class TestImportFromWorkbook:
    """Tests for import_from_workbook."""

    def test_imports_into_database(self, temp_database, tmp_path):
        path = tmp_path / "entries.xlsx"
        wb = Workbook()
        ws = wb.active
        ws.append(["Date", "Start", "End", "Break", "Rate", "Currency"])
        ws.append([date(2026, 1, 5), "09:00", "17:00", 30, 20, "USD"])
        ws.append([date(2026, 1, 6), "13:00", None, 0, 20, "USD"])
        wb.save(path)

        created = import_from_workbook(path, "tester")

        assert len(created) == 2
        assert all(e.id is not None for e in created)
        stored = temp_database.get_entries_range("tester", date(2026, 1, 1), date(2026, 1, 31))
        assert [(e.date, e.end_time) for e in stored] == [
            (date(2026, 1, 5), time(17, 0)),
            (date(2026, 1, 6), None),
        ]

    def test_defaults_from_config(self, temp_database, tmp_path):
        temp_database.save_config(DEFAULTS)
        path = tmp_path / "entries.xlsx"
        wb = Workbook()
        wb.active.append(["Date", "Start"])
        wb.active.append(["2026-01-05", "09:00"])
        wb.save(path)

        created = import_from_workbook(path, "tester")

        assert created[0].currency == "EUR"
        assert created[0].hourly_rate == Decimal("30")
