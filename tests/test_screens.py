"""Tests for the screens module."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from models import Config, DateRange, Template
from screens import (
    ApplyTemplateScreen,
    ConfirmScreen,
    EditEntryScreen,
    EditTemplateScreen,
    ReportRangeScreen,
    TemplateManagementScreen,
    parse_date,
    parse_entry_fields,
)


class TestParseEntryFields:
    """Tests for form validation."""

    def test_valid_fields(self):
        fields = parse_entry_fields("09:00", "17:00", "30", "20.5", "usd")

        assert fields.start_time == time(9, 0)
        assert fields.end_time == time(17, 0)
        assert fields.break_time == 30
        assert fields.hourly_rate == Decimal("20.5")
        assert fields.currency == "USD"

    def test_blank_optional_fields(self):
        fields = parse_entry_fields("09:00", "", "", "", "EUR")

        assert fields.end_time is None
        assert fields.break_time == 0
        assert fields.hourly_rate == Decimal("0")

    def test_start_required(self):
        with pytest.raises(ValueError, match="Start time is required"):
            parse_entry_fields("", "17:00", "0", "20", "USD")

    def test_start_optional_for_templates(self):
        fields = parse_entry_fields("", "", "0", "20", "USD", require_start=False)
        assert fields.start_time is None

    def test_bad_start(self):
        with pytest.raises(ValueError, match="Start time must be HH:MM"):
            parse_entry_fields("9am", "", "0", "20", "USD")

    def test_bad_end(self):
        with pytest.raises(ValueError, match="End time must be HH:MM"):
            parse_entry_fields("09:00", "5pm", "0", "20", "USD")

    def test_bad_break(self):
        with pytest.raises(ValueError, match="whole minutes"):
            parse_entry_fields("09:00", "", "half", "20", "USD")

    def test_negative_break(self):
        with pytest.raises(ValueError, match="negative"):
            parse_entry_fields("09:00", "", "-5", "20", "USD")

    def test_bad_rate(self):
        with pytest.raises(ValueError, match="Invalid hourly rate"):
            parse_entry_fields("09:00", "", "0", "lots", "USD")

    def test_negative_rate(self):
        with pytest.raises(ValueError, match="zero or more"):
            parse_entry_fields("09:00", "", "0", "-1", "USD")

    def test_unknown_currency(self):
        with pytest.raises(ValueError, match="Currency must be one of"):
            parse_entry_fields("09:00", "", "0", "20", "XYZ")


class TestParseDate:
    """Tests for parse_date."""

    def test_valid(self):
        assert parse_date(" 2026-01-27 ") == date(2026, 1, 27)

    def test_invalid(self):
        assert parse_date("27/01/2026") is None
        assert parse_date("") is None


class TestConfirmScreen:
    """Tests for the ConfirmScreen."""

    def test_init_with_message(self):
        screen = ConfirmScreen("Are you sure?")
        assert screen.message == "Are you sure?"


class TestEditEntryScreen:
    """Tests for the EditEntryScreen."""

    def test_edit_existing_entry(self, sample_time_entry):
        screen = EditEntryScreen(sample_time_entry)

        assert screen.entry == sample_time_entry
        assert screen.user_id == "tester"
        assert screen._initial() == (
            date(2026, 1, 27), time(9, 0), time(17, 0), 30, Decimal("20"), "USD",
        )

    def test_new_entry_uses_defaults(self, sample_config):
        screen = EditEntryScreen(user_id="tester", defaults=sample_config, entry_date=date(2026, 3, 2))

        assert screen.entry is None
        assert screen._initial() == (date(2026, 3, 2), None, None, 45, Decimal("97"), "GBP")

    def test_new_entry_defaults_to_today(self):
        screen = EditEntryScreen(user_id="tester")
        assert screen.entry_date == date.today()
        assert screen.defaults == Config()

    def test_prefill_from_template(self, sample_template, sample_config):
        screen = EditEntryScreen(
            user_id="tester",
            defaults=sample_config,
            template=sample_template,
            entry_date=date(2026, 3, 2),
        )

        assert screen._initial() == (
            date(2026, 3, 2), time(9, 0), time(17, 30), 30, Decimal("25"), "GBP",
        )

    def test_field_order(self):
        assert EditEntryScreen.FIELD_ORDER == ["date", "start", "end", "break", "rate", "currency"]


class TestEditTemplateScreen:
    """Tests for the EditTemplateScreen."""

    def test_new_template(self, sample_config):
        screen = EditTemplateScreen(user_id="tester", defaults=sample_config)

        assert screen.template is None
        assert screen.user_id == "tester"

    def test_edit_template(self, sample_template):
        screen = EditTemplateScreen(sample_template)

        assert screen.template == sample_template
        assert screen.user_id == "tester"


class TestApplyTemplateScreen:
    """Tests for the ApplyTemplateScreen."""

    def test_default_date_is_today(self, sample_template):
        screen = ApplyTemplateScreen(sample_template)
        assert screen.default_date == date.today()

    def test_given_date(self, sample_template):
        screen = ApplyTemplateScreen(sample_template, date(2026, 5, 1))
        assert screen.default_date == date(2026, 5, 1)


class TestReportRangeScreen:
    """Tests for the ReportRangeScreen."""

    def test_init(self):
        r = DateRange(date(2026, 1, 1), date(2026, 1, 31))
        assert ReportRangeScreen(r).date_range == r


class TestTemplateManagementScreen:
    """Tests for the TemplateManagementScreen."""

    def test_init(self):
        screen = TemplateManagementScreen("tester")

        assert screen.user_id == "tester"
        assert screen.templates == {}

    def test_bindings(self):
        keys = {b.key for b in TemplateManagementScreen.BINDINGS}
        assert {"n", "e", "a", "p", "d", "escape"} <= keys

    def test_template_without_start_cannot_apply(self):
        template = Template(user_id="tester", name="Rate only")
        with pytest.raises(ValueError):
            template.to_entry(date(2026, 1, 1))

    def test_apply_date_creates_entry(self, sample_template):
        screen = TemplateManagementScreen("tester")
        app = MagicMock()
        app.save_entry.return_value = True

        with patch.object(TemplateManagementScreen, "app", new=property(lambda self: app)):
            screen._on_apply_date(sample_template, date(2026, 2, 3))

        entry = app.save_entry.call_args[0][0]
        assert entry.id is None
        assert entry.user_id == "tester"
        assert entry.date == date(2026, 2, 3)
        assert (entry.start_time, entry.end_time) == (time(9, 0), time(17, 30))
        assert entry.hourly_rate == Decimal("25")
        assert entry.currency == "GBP"
        app.notify.assert_called_once_with("Time entry created from template")

    def test_apply_cancelled(self, sample_template):
        screen = TemplateManagementScreen("tester")
        app = MagicMock()

        with patch.object(TemplateManagementScreen, "app", new=property(lambda self: app)):
            screen._on_apply_date(sample_template, None)

        app.save_entry.assert_not_called()

    def test_failed_apply_does_not_confirm(self, sample_template):
        screen = TemplateManagementScreen("tester")
        app = MagicMock()
        app.save_entry.return_value = False

        with patch.object(TemplateManagementScreen, "app", new=property(lambda self: app)):
            screen._on_apply_date(sample_template, date(2026, 2, 3))

        app.notify.assert_not_called()
