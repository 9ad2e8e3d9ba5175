"""Custom widgets for the timesheet application."""

from __future__ import annotations

from decimal import Decimal

from textual.widgets import Static
from rich.text import Text

from models import DateRange, currency_symbol
from report import TimesheetReport
from utils import format_hours, format_long_date, round2

BAR_CHAR = "█"


class PeriodHeader(Static):
    """Shows the period title on the left and month navigation on the right."""

    TARGET_END_COL = 74

    def __init__(self, year: int, month: int, **kwargs):
        super().__init__(**kwargs)
        self.year = year
        self.month = month
        self.left_arrow_pos = 0
        self.right_arrow_pos = 0

    def update_display(self, title: str, date_range: DateRange):
        nav = f"◄ {date_range.start.strftime('%b %d')} - {date_range.end.strftime('%b %d')} ►"
        nav_start = self.TARGET_END_COL - len(nav)

        # Store positions for click detection
        self.left_arrow_pos = nav_start
        self.right_arrow_pos = nav_start + len(nav) - 1

        text = Text()
        text.append(title, style="bold")
        spacing = nav_start - len(title)
        text.append(" " * spacing if spacing > 0 else "  ")
        text.append(nav, style="bold")

        self.update(text)

    def on_click(self, event) -> None:
        """Handle clicks on the arrows for month navigation."""
        click_col = event.x

        if self.left_arrow_pos <= click_col < self.left_arrow_pos + 2:
            self.app.action_prev_period()  # type: ignore[attr-defined]
        elif self.right_arrow_pos <= click_col < self.right_arrow_pos + 2:
            self.app.action_next_period()  # type: ignore[attr-defined]


class EntriesSummary(Static):
    """Totals line under the entries table."""

    def update_display(self, report: TimesheetReport | None, ongoing: int):
        text = Text()
        if report is None:
            text.append("No completed entries", style="dim")
        else:
            symbol = currency_symbol(report.currency)
            text.append(f"Hours  {report.rounded_total_hours:>8}h    ")
            text.append(f"Pay  {symbol}{report.rounded_total_pay:>10,}", style="bold")
        if ongoing:
            text.append(f"    ({ongoing} ongoing)", style="dim")
        self.update(text)


class ReportSummary(Static):
    """Report statistics: totals, average rate and currency."""

    def update_display(self, report: TimesheetReport | None, date_range: DateRange):
        text = Text()
        period = f"{format_long_date(date_range.start)} - {format_long_date(date_range.end)}"
        text.append(f"Report  {period}\n", style="bold")

        if report is None:
            text.append("No completed entries in this period", style="dim")
            self.update(text)
            return

        symbol = currency_symbol(report.currency)
        text.append(f"      Entries  {len(report.lines):>10}\n")
        text.append(f"  Total hours  {report.rounded_total_hours:>10}h\n")
        text.append(f"    Total pay  {symbol}{report.rounded_total_pay:,}\n", style="bold")
        text.append(f"  Average rate {symbol}{round2(report.average_hourly_rate)}/hr\n")
        text.append(f"     Currency  {report.currency}")

        if report.is_mixed_currency:
            text.append(
                f"\nMixed currencies ({', '.join(report.currencies)}): totals are not converted",
                style="bold red",
            )

        self.update(text)


def hours_bar(hours: Decimal, max_hours: Decimal, width: int = 30) -> Text:
    """Horizontal bar for a day's hours, scaled to the busiest day."""
    if max_hours <= 0 or hours <= 0:
        return Text(format_hours(hours) + "h", style="dim")
    length = max(1, int(width * hours / max_hours))
    text = Text(BAR_CHAR * length, style="green")
    text.append(f" {format_hours(hours)}h")
    return text
