"""Tests for models.py - entry, template, currency and config dataclasses."""

from datetime import date, time
from decimal import Decimal

import pytest

from models import (
    CURRENCIES,
    Config,
    DateRange,
    Template,
    TimeEntry,
    check_pay_fields,
    currency_symbol,
    get_currency,
    with_id,
)


class TestCurrencies:
    """Tests for currency metadata lookups."""

    def test_fixed_set_of_codes(self):
        codes = [c.code for c in CURRENCIES]
        assert codes == ["USD", "EUR", "GBP", "JPY", "CAD", "AUD", "SGD"]

    def test_get_currency(self):
        gbp = get_currency("GBP")
        assert gbp.symbol == "£"
        assert gbp.name == "British Pound"

    def test_get_unknown_currency_raises(self):
        with pytest.raises(KeyError):
            get_currency("XYZ")

    def test_symbol_lookup(self):
        assert currency_symbol("USD") == "$"
        assert currency_symbol("CAD") == "C$"

    def test_symbol_falls_back_to_code(self):
        assert currency_symbol("XYZ") == "XYZ"


class TestDateRange:
    """Tests for DateRange."""

    def test_contains_is_inclusive(self):
        r = DateRange(date(2026, 1, 1), date(2026, 1, 31))
        assert r.contains(date(2026, 1, 1))
        assert r.contains(date(2026, 1, 31))
        assert r.contains(date(2026, 1, 15))

    def test_contains_outside(self):
        r = DateRange(date(2026, 1, 1), date(2026, 1, 31))
        assert not r.contains(date(2025, 12, 31))
        assert not r.contains(date(2026, 2, 1))


class TestTimeEntry:
    """Tests for TimeEntry dataclass."""

    def test_defaults(self):
        entry = TimeEntry(user_id="u", date=date(2026, 1, 15), start_time=time(9, 0))
        assert entry.end_time is None
        assert entry.break_time == 0
        assert entry.hourly_rate == Decimal("0")
        assert entry.currency == "USD"
        assert entry.id is None

    def test_in_progress_without_end_time(self, sample_ongoing_entry):
        assert sample_ongoing_entry.is_in_progress

    def test_not_in_progress_with_end_time(self, sample_time_entry):
        assert not sample_time_entry.is_in_progress

    def test_day_of_week(self, sample_time_entry):
        assert sample_time_entry.day_of_week == "Tue"

    def test_with_id_copies(self, sample_time_entry):
        saved = with_id(sample_time_entry, 42)
        assert saved.id == 42
        assert sample_time_entry.id is None
        assert saved.date == sample_time_entry.date


class TestTemplate:
    """Tests for Template dataclass."""

    def test_to_entry(self, sample_template):
        entry = sample_template.to_entry(date(2026, 2, 3))

        assert entry.id is None
        assert entry.user_id == "tester"
        assert entry.date == date(2026, 2, 3)
        assert entry.start_time == time(9, 0)
        assert entry.end_time == time(17, 30)
        assert entry.break_time == 30
        assert entry.hourly_rate == Decimal("25")
        assert entry.currency == "GBP"

    def test_to_entry_for_other_user(self, sample_template):
        entry = sample_template.to_entry(date(2026, 2, 3), user_id="someone")
        assert entry.user_id == "someone"

    def test_to_entry_without_end_time_is_ongoing(self):
        template = Template(user_id="u", name="Open shift", start_time=time(8, 0))
        assert template.to_entry(date(2026, 2, 3)).is_in_progress

    def test_to_entry_without_start_time_raises(self):
        template = Template(user_id="u", name="Rate only", hourly_rate=Decimal("30"))
        with pytest.raises(ValueError, match="no start time"):
            template.to_entry(date(2026, 2, 3))


class TestConfig:
    """Tests for Config dataclass."""

    def test_default_values(self):
        config = Config()
        assert config.hourly_rate == Decimal("0")
        assert config.currency == "USD"
        assert config.break_time == 0

    def test_custom_values(self, sample_config):
        assert sample_config.hourly_rate == Decimal("97")
        assert sample_config.currency == "GBP"
        assert sample_config.break_time == 45


class TestCheckPayFields:
    """Tests for check_pay_fields."""

    def test_zero_is_allowed(self):
        check_pay_fields(0, Decimal("0"))

    def test_negative_break(self):
        with pytest.raises(ValueError, match="Break cannot be negative"):
            check_pay_fields(-1, Decimal("20"))

    def test_negative_rate(self):
        with pytest.raises(ValueError, match="zero or more"):
            check_pay_fields(0, Decimal("-0.01"))

    def test_rate_must_be_finite(self):
        with pytest.raises(ValueError, match="zero or more"):
            check_pay_fields(0, Decimal("Infinity"))
