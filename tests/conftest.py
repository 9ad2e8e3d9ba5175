"""Shared fixtures for tests."""

from __future__ import annotations

import os
import tempfile
from datetime import date, time
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest

# Set up test database and user before importing storage
_test_db_fd, _test_db_path = tempfile.mkstemp(suffix=".db")
os.environ["TIMESHEET_DB"] = _test_db_path
os.environ["TIMESHEET_USER"] = "tester"


@pytest.fixture(scope="session", autouse=True)
def setup_test_db() -> Generator[Path, None, None]:
    """Set up a test database for the entire test session."""
    import storage

    storage.DB_PATH = Path(_test_db_path)
    storage.init_db()

    yield Path(_test_db_path)

    os.close(_test_db_fd)
    os.unlink(_test_db_path)


@pytest.fixture
def temp_database(tmp_path, monkeypatch):
    """Point storage at a fresh database for one test."""
    import storage

    monkeypatch.setattr(storage, "DB_PATH", tmp_path / "test_timesheet.db")
    storage.init_db()
    yield storage


@pytest.fixture
def sample_time_entry():
    """A finished 09:00-17:00 entry with a 30 minute break at 20/hr."""
    from models import TimeEntry

    return TimeEntry(
        user_id="tester",
        date=date(2026, 1, 27),
        start_time=time(9, 0),
        end_time=time(17, 0),
        break_time=30,
        hourly_rate=Decimal("20"),
        currency="USD",
    )


@pytest.fixture
def sample_ongoing_entry():
    """An entry with no end time yet."""
    from models import TimeEntry

    return TimeEntry(
        user_id="tester",
        date=date(2026, 1, 28),
        start_time=time(9, 0),
        hourly_rate=Decimal("20"),
    )


@pytest.fixture
def sample_template():
    """A standard day template."""
    from models import Template

    return Template(
        user_id="tester",
        name="Standard day",
        start_time=time(9, 0),
        end_time=time(17, 30),
        break_time=30,
        hourly_rate=Decimal("25"),
        currency="GBP",
    )


@pytest.fixture
def sample_config():
    """A sample Config for testing."""
    from models import Config

    return Config(
        hourly_rate=Decimal("97"),
        currency="GBP",
        break_time=45,
    )


def make_entry(d: date, start: str, end: str | None, break_time: int = 0,
               rate: str = "20", currency: str = "USD", user_id: str = "tester"):
    """Build a TimeEntry from HH:MM strings."""
    from models import TimeEntry
    from utils import parse_time

    return TimeEntry(
        user_id=user_id,
        date=d,
        start_time=parse_time(start),
        end_time=parse_time(end) if end else None,
        break_time=break_time,
        hourly_rate=Decimal(rate),
        currency=currency,
    )


@pytest.fixture(name="make_entry")
def make_entry_fixture():
    """Factory for TimeEntry objects built from HH:MM strings."""
    return make_entry
