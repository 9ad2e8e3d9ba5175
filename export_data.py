"""Export timesheet reports to Excel workbooks."""

from __future__ import annotations

import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

from report import TimesheetReport
from utils import format_time, round2

logger = logging.getLogger(__name__)

ENTRY_HEADERS = ["Date", "Start", "End", "Break", "Rate", "Currency", "Hours", "Pay"]
DAILY_HEADERS = ["Date", "Hours", "Pay"]

BOLD = Font(bold=True)


def default_export_path(report: TimesheetReport, directory: Path) -> Path:
    return directory / f"timesheet_{report.start_date.isoformat()}_{report.end_date.isoformat()}.xlsx"


def build_workbook(report: TimesheetReport) -> Workbook:
    """Workbook with an Entries sheet (plus totals) and a Daily sheet."""
    wb = Workbook()

    ws = wb.active
    ws.title = "Entries"
    ws.append(ENTRY_HEADERS)
    for line in report.lines:
        entry = line.entry
        ws.append([
            entry.date,
            format_time(entry.start_time),
            format_time(entry.end_time),
            entry.break_time,
            float(entry.hourly_rate),
            entry.currency,
            float(round2(line.pay.hours)),
            float(round2(line.pay.pay)),
        ])
    ws.append([])
    ws.append(["Total", None, None, None, None, report.currency,
               float(report.rounded_total_hours), float(report.rounded_total_pay)])
    ws.append(["Average rate", None, None, None, float(round2(report.average_hourly_rate)), report.currency])
    for cell in ws[1]:
        cell.font = BOLD
    for row in ws.iter_rows(min_row=ws.max_row - 1, max_row=ws.max_row):
        row[0].font = BOLD

    daily = wb.create_sheet("Daily")
    daily.append(DAILY_HEADERS)
    for day in report.daily:
        daily.append([day.date, float(round2(day.hours)), float(round2(day.pay))])
    for cell in daily[1]:
        cell.font = BOLD

    return wb


def export_report(report: TimesheetReport, path: Path) -> Path:
    """Write the report workbook to path. Returns the path written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    build_workbook(report).save(path)
    logger.info("Exported report %s - %s to %s", report.start_date, report.end_date, path)
    return path
