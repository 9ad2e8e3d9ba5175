#!/usr/bin/env python3
"""Timesheet TUI application."""

from __future__ import annotations

import logging
import os
import sqlite3
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Static, Footer, DataTable
from textual.coordinate import Coordinate
from rich.text import Text

import storage
from cache import CREATE, DELETE, UPDATE, EntryQuery, QueryCache, TemplateQuery
from calculator import EntryPay, compute_entry_pay
from export_data import default_export_path, export_report
from models import Config, DateRange, Template, TimeEntry, currency_symbol
from report import TimesheetReport, aggregate_report, format_report_text
from screens import (
    ConfirmScreen,
    EditEntryScreen,
    ReportRangeScreen,
    TemplateManagementScreen,
)
from utils import format_amount, format_hours, format_time, get_month_range, round2, shift_month
from widgets import EntriesSummary, PeriodHeader, ReportSummary, hours_bar

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (sqlite3.Error, LookupError)


class TimesheetDataTable(DataTable):
    """DataTable that hands left/right to the app for period navigation."""

    def on_key(self, event) -> None:
        if event.key == "left" and hasattr(self.app, "action_prev_period"):
            self.app.action_prev_period()  # type: ignore[attr-defined]
            self.scroll_x = 0
            event.prevent_default()
            event.stop()
        elif event.key == "right" and hasattr(self.app, "action_next_period"):
            self.app.action_next_period()  # type: ignore[attr-defined]
            self.scroll_x = 0
            event.prevent_default()
            event.stop()


class TimesheetApp(App):
    """Main timesheet application."""

    CSS = """
    Screen {
        background: $surface;
    }

    #period-header {
        height: auto;
        background: $primary;
        color: $text;
        padding: 0 1;
        text-style: bold;
    }

    #entries-table, #daily-table {
        height: 1fr;
        margin: 1 2;
    }

    #entries-summary {
        height: auto;
        padding: 0 2 1 2;
        color: $text;
    }

    #report-summary {
        height: auto;
        padding: 1 2;
        color: $text;
    }

    #report-text {
        height: auto;
        max-height: 12;
        padding: 0 2 1 2;
        color: $text-muted;
    }

    .hidden {
        display: none;
    }

    DataTable {
        height: 100%;
    }

    DataTable > .datatable--cursor {
        background: $secondary;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("n", "new_entry", "New"),
        Binding("e", "edit_entry", "Edit"),
        Binding("d", "delete_entry", "Delete"),
        Binding("f", "finish_entry", "Finish"),
        Binding("t", "goto_today", "Today"),
        Binding("K", "manage_templates", "Templates"),
        Binding("r", "report_view", "Report"),
        Binding("p", "choose_range", "Period"),
        Binding("x", "export_report", "Export"),
        Binding("c", "copy_report", "Copy"),
        Binding("escape", "entries_view", "Back"),
        Binding("question_mark", "toggle_help", "?", show=False),
    ]

    ENTRY_ACTIONS = ("new_entry", "edit_entry", "delete_entry", "finish_entry", "manage_templates")
    REPORT_ACTIONS = ("choose_range", "export_report", "copy_report", "entries_view")

    def __init__(self):
        super().__init__()
        storage.init_db()
        self.user_id = storage.get_user_id()

        # View mode: "entries" or "report"
        self.view_mode = "entries"

        today = date.today()
        self.current_year = today.year
        self.current_month = today.month

        # Report period; None follows the viewed month
        self.report_range: DateRange | None = None

        self.entries_cache: QueryCache[TimeEntry] = QueryCache(
            lambda q: storage.get_entries_range(q.user_id, q.date_from, q.date_to)
        )
        self.templates_cache: QueryCache[Template] = QueryCache(
            lambda q: storage.get_templates(q.user_id)
        )
        self.export_dir = Path(os.environ.get("TIMESHEET_EXPORT_DIR", Path.cwd()))

        self._help_panel_visible = False

    # --- Data access ---

    @property
    def month_range(self) -> DateRange:
        return get_month_range(self.current_year, self.current_month)

    @property
    def active_range(self) -> DateRange:
        if self.view_mode == "report" and self.report_range:
            return self.report_range
        return self.month_range

    def get_entries(self, date_range: DateRange) -> tuple[TimeEntry, ...]:
        return self.entries_cache.get(EntryQuery(self.user_id, date_range.start, date_range.end))

    def get_templates(self) -> tuple[Template, ...]:
        return self.templates_cache.get(TemplateQuery(self.user_id))

    def get_entry_defaults(self) -> Config:
        return storage.get_entry_defaults(self.user_id)

    def build_report(self, date_range: DateRange) -> TimesheetReport | None:
        return aggregate_report(self.get_entries(date_range), date_range)

    def save_entry(self, entry: TimeEntry) -> bool:
        """Create or update an entry. Notifies and returns False on failure."""
        if entry.id is None:
            kind, commit = CREATE, lambda: storage.create_entry(entry)
        else:
            kind, commit = UPDATE, lambda: storage.update_entry(entry)
        try:
            self.entries_cache.mutate(kind, entry, commit)
        except STORAGE_ERRORS as e:
            logger.error("Could not save entry: %s", e)
            self.notify(f"Could not save entry: {e}", severity="error")
            return False
        self._refresh_display()
        return True

    def delete_entry(self, entry: TimeEntry) -> bool:
        try:
            self.entries_cache.mutate(DELETE, entry, lambda: storage.delete_entry(entry.id, entry.user_id))
        except STORAGE_ERRORS as e:
            logger.error("Could not delete entry %s: %s", entry.id, e)
            self.notify(f"Could not delete entry: {e}", severity="error")
            return False
        self._refresh_display()
        return True

    def save_template(self, template: Template) -> bool:
        if template.id is None:
            kind, commit = CREATE, lambda: storage.create_template(template)
        else:
            kind, commit = UPDATE, lambda: storage.update_template(template)
        try:
            self.templates_cache.mutate(kind, template, commit)
        except STORAGE_ERRORS as e:
            logger.error("Could not save template: %s", e)
            self.notify(f"Could not save template: {e}", severity="error")
            return False
        self.notify(f"Template '{template.name}' saved")
        return True

    def delete_template(self, template: Template) -> bool:
        try:
            self.templates_cache.mutate(
                DELETE, template, lambda: storage.delete_template(template.id, template.user_id)
            )
        except STORAGE_ERRORS as e:
            logger.error("Could not delete template %s: %s", template.id, e)
            self.notify(f"Could not delete template: {e}", severity="error")
            return False
        return True

    # --- Layout ---

    def compose(self) -> ComposeResult:
        yield PeriodHeader(self.current_year, self.current_month, id="period-header")
        # Entries view
        yield Container(TimesheetDataTable(id="entries-table"), id="entries-table-container")
        yield EntriesSummary(id="entries-summary")
        # Report view (hidden by default)
        yield ReportSummary(id="report-summary", classes="hidden")
        yield Container(TimesheetDataTable(id="daily-table"), id="daily-table-container", classes="hidden")
        yield Static(id="report-text", classes="hidden")
        yield Footer()

    def on_mount(self):
        self._setup_entries_table()
        self._setup_daily_table()
        self._update_bindings_for_mode(self.view_mode)
        self._refresh_display()
        self.query_one("#entries-table", DataTable).focus()

    def _setup_entries_table(self):
        table = self.query_one("#entries-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Day", width=4)
        table.add_column("Date", width=8)
        table.add_column("Start", width=7)
        table.add_column("End", width=8)
        table.add_column("Break", width=6)
        table.add_column("Rate", width=12)
        table.add_column("Hours", width=7)
        table.add_column("Pay", width=12)

    def _setup_daily_table(self):
        table = self.query_one("#daily-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Date", width=12)
        table.add_column("Hours", width=38)
        table.add_column("Pay", width=12)

    # --- Display ---

    def _refresh_display(self):
        if self.view_mode == "entries":
            self._refresh_entries_display()
        elif self.view_mode == "report":
            self._refresh_report_display()

    def _refresh_entries_display(self):
        date_range = self.month_range
        header = self.query_one("#period-header", PeriodHeader)
        header.year = self.current_year
        header.month = self.current_month
        header.update_display(date_range.start.strftime("%B %Y").upper(), date_range)

        entries = self.get_entries(date_range)

        table = self.query_one("#entries-table", DataTable)
        table.clear()
        for entry in entries:
            result = compute_entry_pay(entry)
            if isinstance(result, EntryPay):
                hours_str = f"{format_hours(result.hours)}h"
                pay_str = f"{currency_symbol(entry.currency)}{format_amount(result.pay)}"
                style = "" if result.billable_minutes else "dim"
            else:
                hours_str, pay_str, style = "-", "-", "italic"

            table.add_row(
                Text(entry.day_of_week, style=style),
                Text(entry.date.strftime("%b %d"), style=style),
                Text(format_time(entry.start_time) or "", style=style),
                Text(format_time(entry.end_time) or "ongoing", style=style),
                Text(f"{entry.break_time}m" if entry.break_time else "-", style=style),
                Text(f"{currency_symbol(entry.currency)}{entry.hourly_rate}/hr", style=style),
                Text(hours_str, style=style),
                Text(pay_str, style=style),
                key=str(entry.id),
            )

        ongoing = sum(1 for e in entries if e.is_in_progress)
        summary = self.query_one("#entries-summary", EntriesSummary)
        summary.update_display(aggregate_report(entries, date_range), ongoing)

    def _refresh_report_display(self):
        date_range = self.active_range
        header = self.query_one("#period-header", PeriodHeader)
        header.update_display("REPORT", date_range)

        report = self.build_report(date_range)
        self.query_one("#report-summary", ReportSummary).update_display(report, date_range)

        table = self.query_one("#daily-table", DataTable)
        table.clear()
        text = self.query_one("#report-text", Static)
        if report is None:
            text.update("")
            return

        symbol = currency_symbol(report.currency)
        max_hours = max((day.hours for day in report.daily), default=Decimal("0"))
        for day in report.daily:
            table.add_row(
                day.date.strftime("%a %b %d"),
                hours_bar(day.hours, max_hours),
                f"{symbol}{round2(day.pay)}",
                key=day.date.isoformat(),
            )
        text.update(format_report_text(report))

    def _set_view_mode(self, mode: str):
        """Switch between view modes and toggle widget visibility."""
        self.view_mode = mode

        entries_widgets = ["#entries-table-container", "#entries-summary"]
        report_widgets = ["#report-summary", "#daily-table-container", "#report-text"]

        for widget_id in entries_widgets:
            widget = self.query_one(widget_id)
            if mode == "entries":
                widget.remove_class("hidden")
            else:
                widget.add_class("hidden")

        for widget_id in report_widgets:
            widget = self.query_one(widget_id)
            if mode == "report":
                widget.remove_class("hidden")
            else:
                widget.add_class("hidden")

        self._update_bindings_for_mode(mode)
        self._refresh_display()

        if mode == "entries":
            self.query_one("#entries-table", DataTable).focus()
        else:
            self.query_one("#daily-table", DataTable).focus()

    def _update_bindings_for_mode(self, mode: str):
        """Update footer bindings based on view mode."""
        self.refresh_bindings()

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Check if an action is available based on current view mode."""
        if action in self.ENTRY_ACTIONS:
            return True if self.view_mode == "entries" else None
        if action in self.REPORT_ACTIONS:
            return True if self.view_mode == "report" else None
        if action == "report_view":
            return self.view_mode != "report"
        return True

    # --- Navigation ---

    def action_prev_period(self):
        self._shift_period(-1)

    def action_next_period(self):
        self._shift_period(1)

    def _shift_period(self, delta: int):
        self.current_year, self.current_month = shift_month(self.current_year, self.current_month, delta)
        # A custom report period gives way to month stepping
        self.report_range = None
        self._refresh_display()

    def action_goto_today(self):
        today = date.today()
        self.current_year = today.year
        self.current_month = today.month
        self.report_range = None

        if self.view_mode != "entries":
            self._set_view_mode("entries")
        else:
            self._refresh_display()
        self._select_date(today)

    def _select_date(self, target: date):
        """Move cursor to the first entry on or after a date."""
        table = self.query_one("#entries-table", DataTable)
        for row_idx, entry in enumerate(self.get_entries(self.month_range)):
            if entry.date >= target:
                table.move_cursor(row=row_idx)
                break

    def action_entries_view(self):
        self._set_view_mode("entries")

    def action_report_view(self):
        self._set_view_mode("report")

    def action_toggle_help(self):
        """Toggle display of keyboard shortcuts panel."""
        if self._help_panel_visible:
            self.action_hide_help_panel()
        else:
            self.action_show_help_panel()
        self._help_panel_visible = not self._help_panel_visible

    # --- Entries ---

    def _get_selected_entry(self) -> TimeEntry | None:
        """Get the entry under the cursor in the entries table."""
        table = self.query_one("#entries-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        if not row_key:
            return None
        for entry in self.get_entries(self.month_range):
            if str(entry.id) == row_key.value:
                return entry
        return None

    def _default_entry_date(self) -> date:
        today = date.today()
        if self.month_range.contains(today):
            return today
        return self.month_range.start

    def action_new_entry(self, template: Template | None = None):
        self.push_screen(
            EditEntryScreen(
                user_id=self.user_id,
                defaults=self.get_entry_defaults(),
                template=template,
                entry_date=self._default_entry_date(),
            ),
            self._on_edit_complete,
        )

    def action_edit_entry(self):
        entry = self._get_selected_entry()
        if not entry:
            self.notify("No entry selected", severity="warning")
            return
        self.push_screen(EditEntryScreen(entry), self._on_edit_complete)

    def _on_edit_complete(self, result: TimeEntry | None) -> None:
        if result and self.save_entry(result):
            self.notify(f"Saved {result.date.strftime('%b %d')}")

    def action_delete_entry(self):
        entry = self._get_selected_entry()
        if not entry:
            self.notify("No entry selected", severity="warning")
            return
        self.push_screen(
            ConfirmScreen(f"Delete entry for {entry.date.strftime('%b %d')} at {format_time(entry.start_time)}?"),
            lambda confirmed: self._on_delete_confirmed(confirmed, entry),
        )

    def _on_delete_confirmed(self, confirmed: bool | None, entry: TimeEntry) -> None:
        if confirmed and self.delete_entry(entry):
            self.notify(f"Deleted entry for {entry.date.strftime('%b %d')}")

    def action_finish_entry(self):
        """Set the end time of an ongoing entry to now."""
        entry = self._get_selected_entry()
        if not entry or not entry.is_in_progress:
            self.notify("Select an ongoing entry to finish", severity="warning")
            return
        now = datetime.now().time().replace(second=0, microsecond=0)
        finished = TimeEntry(
            id=entry.id,
            user_id=entry.user_id,
            date=entry.date,
            start_time=entry.start_time,
            end_time=now,
            break_time=entry.break_time,
            hourly_rate=entry.hourly_rate,
            currency=entry.currency,
        )
        if self.save_entry(finished):
            self.notify(f"Finished at {format_time(now)}")

    def action_manage_templates(self):
        self.push_screen(TemplateManagementScreen(self.user_id), self._on_template_chosen)

    def _on_template_chosen(self, template: Template | None) -> None:
        """Prefill a new entry from the chosen template."""
        if template:
            self.action_new_entry(template)

    # --- Report ---

    def action_choose_range(self):
        self.push_screen(ReportRangeScreen(self.active_range), self._on_range_chosen)

    def _on_range_chosen(self, result: DateRange | None) -> None:
        if result:
            self.report_range = result
            self._refresh_display()

    def action_export_report(self):
        date_range = self.active_range
        report = self.build_report(date_range)
        if report is None:
            self.notify("Nothing to export", severity="warning")
            return
        path = default_export_path(report, self.export_dir)
        try:
            export_report(report, path)
        except OSError as e:
            logger.error("Export to %s failed: %s", path, e)
            self.notify(f"Export failed: {e}", severity="error")
            return
        self.notify(f"Exported to {path}")

    def action_copy_report(self):
        report = self.build_report(self.active_range)
        if report is None:
            self.notify("Nothing to copy", severity="warning")
            return
        self.copy_to_clipboard(format_report_text(report))
        self.notify("Report copied to clipboard")


def setup_logging() -> Path:
    """Log to a file; the terminal belongs to the UI."""
    log_path = Path(os.environ.get("TIMESHEET_LOG", storage.DB_PATH.parent / "timesheet.log"))
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_path,
        level=os.environ.get("TIMESHEET_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return log_path


def main():
    import sys
    if len(sys.argv) > 1 and sys.argv[1] == "--db-info":
        db_path = storage.DB_PATH
        print(f"Database: {db_path}")
        print(f"User: {storage.get_user_id()}")
        if db_path.exists():
            mtime = datetime.fromtimestamp(db_path.stat().st_mtime)
            size = db_path.stat().st_size
            print(f"Modified: {mtime.strftime('%Y-%m-%d %H:%M:%S')}")
            print(f"Size: {size:,} bytes")
        else:
            print("Status: Does not exist (will be created on first run)")
        return

    setup_logging()
    app = TimesheetApp()
    app.run()


if __name__ == "__main__":
    main()
