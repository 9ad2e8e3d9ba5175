"""Modal screens for the timesheet application."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal, InvalidOperation

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.coordinate import Coordinate
from textual.widgets import Button, DataTable, Input, Label
from textual.screen import ModalScreen

from models import (
    CURRENCIES,
    Config,
    DateRange,
    Template,
    TimeEntry,
    check_pay_fields,
    currency_symbol,
    get_currency,
)
from utils import format_time, parse_time

CURRENCY_CODES = "/".join(c.code for c in CURRENCIES)


@dataclass
class EntryFields:
    start_time: time | None
    end_time: time | None
    break_time: int
    hourly_rate: Decimal
    currency: str


def parse_entry_fields(
    start: str,
    end: str,
    break_minutes: str,
    rate: str,
    currency: str,
    require_start: bool = True,
) -> EntryFields:
    """Validate raw form values. Raises ValueError with a user-facing message."""
    start_time = parse_time(start)
    if start.strip() and not start_time:
        raise ValueError("Start time must be HH:MM")
    if require_start and not start_time:
        raise ValueError("Start time is required")

    end_time = parse_time(end)
    if end.strip() and not end_time:
        raise ValueError("End time must be HH:MM")

    try:
        break_time = int(break_minutes.strip() or "0")
    except ValueError:
        raise ValueError("Break must be whole minutes") from None

    try:
        hourly_rate = Decimal(rate.strip() or "0")
    except InvalidOperation:
        raise ValueError("Invalid hourly rate") from None
    check_pay_fields(break_time, hourly_rate)

    code = currency.strip().upper()
    try:
        get_currency(code)
    except KeyError:
        raise ValueError(f"Currency must be one of {CURRENCY_CODES}") from None

    return EntryFields(start_time, end_time, break_time, hourly_rate, code)


def parse_date(val: str) -> date | None:
    try:
        return date.fromisoformat(val.strip())
    except ValueError:
        return None


DIALOG_CSS = """
    .dialog {
        width: 70;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    .dialog-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    .field-group {
        width: 1fr;
        height: auto;
        margin: 0 1 0 0;
    }

    .field-label {
        height: 1;
        margin-bottom: 0;
        color: $text-muted;
    }

    .field-row {
        width: 100%;
        height: auto;
        margin-bottom: 1;
    }

    .field-row Input {
        width: 100%;
    }

    .dialog-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    .dialog-buttons Button {
        width: auto;
        min-width: 12;
        margin: 0 2;
    }
"""


class ConfirmScreen(ModalScreen[bool]):
    """Simple confirmation dialog."""

    CSS = """
    ConfirmScreen {
        align: center middle;
    }

    #confirm-dialog {
        width: 50;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $warning;
    }

    #confirm-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
    }

    #confirm-buttons Button {
        width: 1fr;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("y", "confirm", "Yes"),
        Binding("n", "cancel", "No"),
    ]

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(self.message)
            with Horizontal(id="confirm-buttons"):
                yield Button("Yes (Y)", variant="warning", id="yes")
                yield Button("No (N)", variant="default", id="no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class _EntryFormScreen(ModalScreen):
    """Shared layout for the entry and template forms.

    Enter moves through FIELD_ORDER and saves on the last field.
    """

    CSS = DIALOG_CSS

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    FIELD_ORDER: list[str] = []

    def _time_fields(self, start: time | None, end: time | None, break_time: int) -> ComposeResult:
        with Horizontal(classes="field-row"):
            with Vertical(classes="field-group"):
                yield Label("Start (HH:MM)", classes="field-label")
                yield Input(value=format_time(start) or "", placeholder="09:00", id="start")
            with Vertical(classes="field-group"):
                yield Label("End (HH:MM)", classes="field-label")
                yield Input(value=format_time(end) or "", placeholder="17:00", id="end")
            with Vertical(classes="field-group"):
                yield Label("Break (m)", classes="field-label")
                yield Input(value=str(break_time) if break_time else "", placeholder="0", id="break")

    def _rate_fields(self, hourly_rate: Decimal, currency: str) -> ComposeResult:
        with Horizontal(classes="field-row"):
            with Vertical(classes="field-group"):
                yield Label("Rate (/hr)", classes="field-label")
                yield Input(value=str(hourly_rate) if hourly_rate else "", placeholder="0", id="rate")
            with Vertical(classes="field-group"):
                yield Label(f"Currency ({CURRENCY_CODES})", classes="field-label")
                yield Input(value=currency, placeholder="USD", id="currency", max_length=3)

    def _buttons(self) -> ComposeResult:
        with Horizontal(classes="dialog-buttons"):
            yield Button("Save", variant="primary", id="save")
            yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        """Focus the first field on mount."""
        self.query_one(f"#{self.FIELD_ORDER[0]}", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Move to next field on Enter, or save if on last field."""
        current_id = event.input.id
        if current_id in self.FIELD_ORDER:
            current_idx = self.FIELD_ORDER.index(current_id)
            if current_idx < len(self.FIELD_ORDER) - 1:
                next_id = self.FIELD_ORDER[current_idx + 1]
                self.query_one(f"#{next_id}", Input).focus()
            else:
                self._save()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Auto-uppercase the currency field."""
        if event.input.id == "currency":
            val = event.value.upper()
            if val != event.value:
                event.input.value = val

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "save":
            self._save()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _value(self, field_id: str) -> str:
        return self.query_one(f"#{field_id}", Input).value

    def _read_fields(self, require_start: bool) -> EntryFields | None:
        try:
            return parse_entry_fields(
                self._value("start"),
                self._value("end"),
                self._value("break"),
                self._value("rate"),
                self._value("currency"),
                require_start=require_start,
            )
        except ValueError as e:
            self.app.notify(str(e), severity="error")
            return None

    def _save(self) -> None:
        """Validate the form and dismiss with the record. Subclasses must override."""
        raise NotImplementedError


class EditEntryScreen(_EntryFormScreen):
    """Modal screen for creating or editing a time entry.

    Dismisses with the new or updated TimeEntry, or None if cancelled.
    """

    CSS = DIALOG_CSS + """
    EditEntryScreen {
        align: center middle;
    }
    """

    FIELD_ORDER = ["date", "start", "end", "break", "rate", "currency"]

    def __init__(
        self,
        entry: TimeEntry | None = None,
        user_id: str = "",
        defaults: Config | None = None,
        template: Template | None = None,
        entry_date: date | None = None,
    ):
        super().__init__()
        self.entry = entry
        self.user_id = entry.user_id if entry else user_id
        self.defaults = defaults or Config()
        self.template = template
        self.entry_date = entry_date or date.today()

    def _initial(self) -> tuple:
        if self.entry:
            e = self.entry
            return e.date, e.start_time, e.end_time, e.break_time, e.hourly_rate, e.currency
        if self.template:
            t = self.template
            return self.entry_date, t.start_time, t.end_time, t.break_time, t.hourly_rate, t.currency
        d = self.defaults
        return self.entry_date, None, None, d.break_time, d.hourly_rate, d.currency

    def compose(self) -> ComposeResult:
        entry_date, start, end, break_time, rate, currency = self._initial()
        if self.entry:
            title = f"Edit {self.entry.day_of_week} {self.entry.date.strftime('%b %d, %Y')}"
        elif self.template:
            title = f"New Entry from '{self.template.name}'"
        else:
            title = "New Entry"

        with Vertical(classes="dialog"):
            yield Label(title, classes="dialog-title")
            with Horizontal(classes="field-row"):
                with Vertical(classes="field-group"):
                    yield Label("Date (YYYY-MM-DD)", classes="field-label")
                    yield Input(value=entry_date.isoformat(), placeholder="2026-01-27", id="date")
            yield from self._time_fields(start, end, break_time)
            yield from self._rate_fields(rate, currency)
            yield from self._buttons()

    def _save(self) -> None:
        entry_date = parse_date(self._value("date"))
        if not entry_date:
            self.app.notify("Date must be YYYY-MM-DD", severity="error")
            return

        fields = self._read_fields(require_start=True)
        if not fields:
            return

        self.dismiss(
            TimeEntry(
                id=self.entry.id if self.entry else None,
                user_id=self.user_id,
                date=entry_date,
                start_time=fields.start_time,
                end_time=fields.end_time,
                break_time=fields.break_time,
                hourly_rate=fields.hourly_rate,
                currency=fields.currency,
            )
        )


class EditTemplateScreen(_EntryFormScreen):
    """Modal screen for creating or editing a template."""

    CSS = DIALOG_CSS + """
    EditTemplateScreen {
        align: center middle;
    }
    """

    FIELD_ORDER = ["name", "start", "end", "break", "rate", "currency"]

    def __init__(self, template: Template | None = None, user_id: str = "", defaults: Config | None = None):
        super().__init__()
        self.template = template  # None means creating new
        self.user_id = template.user_id if template else user_id
        self.defaults = defaults or Config()

    def compose(self) -> ComposeResult:
        t = self.template
        title = "Edit Template" if t else "New Template"
        with Vertical(classes="dialog"):
            yield Label(title, classes="dialog-title")
            with Horizontal(classes="field-row"):
                with Vertical(classes="field-group"):
                    yield Label("Name", classes="field-label")
                    yield Input(value=t.name if t else "", placeholder="Standard day", id="name")
            if t:
                yield from self._time_fields(t.start_time, t.end_time, t.break_time)
                yield from self._rate_fields(t.hourly_rate, t.currency)
            else:
                yield from self._time_fields(None, None, self.defaults.break_time)
                yield from self._rate_fields(self.defaults.hourly_rate, self.defaults.currency)
            yield from self._buttons()

    def _save(self) -> None:
        name = self._value("name").strip()
        if not name:
            self.app.notify("Name is required", severity="error")
            return

        fields = self._read_fields(require_start=False)
        if not fields:
            return

        self.dismiss(
            Template(
                id=self.template.id if self.template else None,
                user_id=self.user_id,
                name=name,
                start_time=fields.start_time,
                end_time=fields.end_time,
                break_time=fields.break_time,
                hourly_rate=fields.hourly_rate,
                currency=fields.currency,
                created_at=self.template.created_at if self.template else None,
            )
        )


class ApplyTemplateScreen(ModalScreen[date | None]):
    """Ask for the date a template should be applied to."""

    CSS = DIALOG_CSS + """
    ApplyTemplateScreen {
        align: center middle;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, template: Template, default_date: date | None = None):
        super().__init__()
        self.template = template
        self.default_date = default_date or date.today()

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label(f"Apply Template: {self.template.name}", classes="dialog-title")
            with Vertical(classes="field-group"):
                yield Label("Date (YYYY-MM-DD)", classes="field-label")
                yield Input(value=self.default_date.isoformat(), id="apply-date")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Create Entry", variant="primary", id="save")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        self.query_one("#apply-date", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._save()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "save":
            self._save()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _save(self) -> None:
        d = parse_date(self.query_one("#apply-date", Input).value)
        if not d:
            self.app.notify("Date must be YYYY-MM-DD", severity="error")
            return
        self.dismiss(d)


class ReportRangeScreen(ModalScreen[DateRange | None]):
    """Choose the date range for the report view."""

    CSS = DIALOG_CSS + """
    ReportRangeScreen {
        align: center middle;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, date_range: DateRange):
        super().__init__()
        self.date_range = date_range

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label("Report Period", classes="dialog-title")
            with Horizontal(classes="field-row"):
                with Vertical(classes="field-group"):
                    yield Label("From (YYYY-MM-DD)", classes="field-label")
                    yield Input(value=self.date_range.start.isoformat(), id="range-from")
                with Vertical(classes="field-group"):
                    yield Label("To (YYYY-MM-DD)", classes="field-label")
                    yield Input(value=self.date_range.end.isoformat(), id="range-to")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Apply", variant="primary", id="save")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        self.query_one("#range-from", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "range-from":
            self.query_one("#range-to", Input).focus()
        else:
            self._save()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "save":
            self._save()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _save(self) -> None:
        start = parse_date(self.query_one("#range-from", Input).value)
        end = parse_date(self.query_one("#range-to", Input).value)
        if not start or not end:
            self.app.notify("Dates must be YYYY-MM-DD", severity="error")
            return
        if end < start:
            self.app.notify("End date is before start date", severity="error")
            return
        self.dismiss(DateRange(start, end))


class TemplateManagementScreen(ModalScreen[Template | None]):
    """Modal screen for managing templates.

    Dismisses with a template when the user picks one to prefill a new
    entry, otherwise with None.
    """

    CSS = """
    TemplateManagementScreen {
        align: center middle;
    }

    #templates-dialog {
        width: 90;
        height: 24;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #templates-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #templates-table {
        height: 1fr;
    }

    #templates-footer {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #templates-footer Button {
        width: auto;
        min-width: 10;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("n", "new_template", "New"),
        Binding("e", "edit_template", "Edit"),
        Binding("a", "apply_template", "Apply"),
        Binding("p", "prefill_entry", "Prefill"),
        Binding("d", "delete_template", "Delete"),
    ]

    def __init__(self, user_id: str):
        super().__init__()
        self.user_id = user_id
        self.templates: dict[str, Template] = {}

    def compose(self) -> ComposeResult:
        with Vertical(id="templates-dialog"):
            yield Label("Templates", id="templates-title")
            yield DataTable(id="templates-table")
            with Horizontal(id="templates-footer"):
                yield Button("New [n]", id="btn-new")
                yield Button("Edit [e]", id="btn-edit")
                yield Button("Apply [a]", id="btn-apply")
                yield Button("Prefill [p]", id="btn-prefill")
                yield Button("Delete [d]", id="btn-delete")
                yield Button("Close [Esc]", id="btn-close")

    def on_mount(self) -> None:
        """Set up the table and load data."""
        table = self.query_one("#templates-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Name", width=24)
        table.add_column("Time", width=14)
        table.add_column("Break", width=7)
        table.add_column("Rate", width=14)
        self._refresh_table()
        table.focus()

    def _refresh_table(self) -> None:
        table = self.query_one("#templates-table", DataTable)
        table.clear()
        templates = self.app.get_templates()  # type: ignore[attr-defined]
        self.templates = {str(t.id): t for t in templates}

        for template in templates:
            start = format_time(template.start_time) or "Not set"
            end = format_time(template.end_time) or "Not set"
            table.add_row(
                template.name[:24],
                f"{start}-{end}" if template.start_time or template.end_time else "Not set",
                f"{template.break_time}m" if template.break_time else "-",
                f"{currency_symbol(template.currency)} {template.hourly_rate}/hr",
                key=str(template.id),
            )

    def _get_selected_template(self) -> Template | None:
        table = self.query_one("#templates-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        return self.templates.get(str(row_key.value)) if row_key else None

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Enter on a row prefills a new entry."""
        if event.control.id == "templates-table":
            self.action_prefill_entry()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "btn-new":
            self.action_new_template()
        elif button_id == "btn-edit":
            self.action_edit_template()
        elif button_id == "btn-apply":
            self.action_apply_template()
        elif button_id == "btn-prefill":
            self.action_prefill_entry()
        elif button_id == "btn-delete":
            self.action_delete_template()
        elif button_id == "btn-close":
            self.action_close()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_new_template(self) -> None:
        defaults = self.app.get_entry_defaults()  # type: ignore[attr-defined]
        self.app.push_screen(
            EditTemplateScreen(user_id=self.user_id, defaults=defaults),
            self._on_template_edited,
        )

    def action_edit_template(self) -> None:
        template = self._get_selected_template()
        if not template:
            self.app.notify("No template selected", severity="warning")
            return
        self.app.push_screen(EditTemplateScreen(template), self._on_template_edited)

    def _on_template_edited(self, result: Template | None) -> None:
        if result and self.app.save_template(result):  # type: ignore[attr-defined]
            self._refresh_table()

    def action_apply_template(self) -> None:
        template = self._get_selected_template()
        if not template:
            self.app.notify("No template selected", severity="warning")
            return
        if template.start_time is None:
            self.app.notify(f"Template '{template.name}' has no start time", severity="error")
            return
        self.app.push_screen(
            ApplyTemplateScreen(template),
            lambda d: self._on_apply_date(template, d),
        )

    def _on_apply_date(self, template: Template, d: date | None) -> None:
        if d is None:
            return
        entry = template.to_entry(d, user_id=self.user_id)
        if self.app.save_entry(entry):  # type: ignore[attr-defined]
            self.app.notify("Time entry created from template")

    def action_prefill_entry(self) -> None:
        template = self._get_selected_template()
        if not template:
            self.app.notify("No template selected", severity="warning")
            return
        self.dismiss(template)

    def action_delete_template(self) -> None:
        template = self._get_selected_template()
        if not template:
            self.app.notify("No template selected", severity="warning")
            return
        self.app.push_screen(
            ConfirmScreen(f"Delete template '{template.name}'?"),
            lambda confirmed: self._on_delete_confirmed(confirmed, template),
        )

    def _on_delete_confirmed(self, confirmed: bool | None, template: Template) -> None:
        if confirmed and self.app.delete_template(template):  # type: ignore[attr-defined]
            self.app.notify(f"Template '{template.name}' deleted")
            self._refresh_table()
