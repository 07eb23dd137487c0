from __future__ import annotations

import csv
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from io import BytesIO, StringIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from timetrack.models import MonthlyReport, TimeEntry, User
from timetrack.services.durations import entry_minutes, format_signed_duration, is_day_off
from timetrack.services.metrics import entry_payment, total_payment_for_entries

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"

SHEET_TITLE = "Výkaz práce"
MONTH_NAMES = [
    "Leden",
    "Únor",
    "Březen",
    "Duben",
    "Květen",
    "Červen",
    "Červenec",
    "Srpen",
    "Září",
    "Říjen",
    "Listopad",
    "Prosinec",
]
BASE_HEADERS = ["Datum", "Název akce", "Od", "Do", "Hodiny"]
SALARY_HEADERS = ["Sazba", "Částka"]
DAY_OFF_LABEL = "Volno"

HEADER_FILL = PatternFill(fill_type="solid", fgColor="0B4F73")
META_LABEL_FILL = PatternFill(fill_type="solid", fgColor="EAF4F9")
ZEBRA_FILL = PatternFill(fill_type="solid", fgColor="F7FBFE")
DAY_OFF_FILL = PatternFill(fill_type="solid", fgColor="FFF3CD")
SUMMARY_FILL = PatternFill(fill_type="solid", fgColor="E9F1F7")

HEADER_FONT = Font(bold=True, color="FFFFFF")
BOLD_FONT = Font(bold=True, color="0F172A")
TITLE_FONT = Font(bold=True, color="0B4F73", size=14)

THIN_SIDE = Side(style="thin", color="D5E2EC")
THIN_BORDER = Border(left=THIN_SIDE, right=THIN_SIDE, top=THIN_SIDE, bottom=THIN_SIDE)


@dataclass(frozen=True)
class ExportOptions:
    include_profile: bool = True
    include_notes: bool = True
    include_salary: bool = True


def month_title(report: MonthlyReport) -> str:
    return f"{MONTH_NAMES[report.month - 1]} {report.year}"


def _format_date(value: date) -> str:
    return value.strftime("%d.%m.%Y")


def _headers(options: ExportOptions) -> list[str]:
    if options.include_salary:
        return BASE_HEADERS + SALARY_HEADERS
    return list(BASE_HEADERS)


def _entry_row(entry: TimeEntry, options: ExportOptions, currency: str) -> list[str]:
    notes = (entry.notes or "") if options.include_notes else ""
    if is_day_off(entry.start_time, entry.end_time) and not notes:
        notes = DAY_OFF_LABEL
    hours = f"{entry_minutes(entry.start_time, entry.end_time) / 60:.2f}"
    row = [_format_date(entry.date), notes, entry.start_time, entry.end_time, hours]
    if options.include_salary:
        row.append(f"{entry.hourly_rate} {currency}")
        row.append(f"{entry_payment(entry)} {currency}")
    return row


def _profile_rows(user: User) -> list[list[str]]:
    return [
        ["Jméno:", user.full_name or ""],
        ["Pozice:", user.position or ""],
        ["Kontakt:", user.email or ""],
    ]


def _summary_rows(
    entries: Sequence[TimeEntry],
    report: MonthlyReport,
    options: ExportOptions,
    currency: str,
) -> list[list[str]]:
    rows = [["Celkem odpracováno:", format_signed_duration(report.worked_minutes)]]
    if options.include_salary:
        rows.append(["Celková částka:", f"{total_payment_for_entries(entries)} {currency}"])
    rows.extend(
        [
            ["Počet pracovních dnů:", str(report.work_days)],
            ["Přesčas:", format_signed_duration(report.overtime_minutes)],
            ["Dovolená (dny):", str(report.vacation_days)],
        ]
    )
    return rows


def _style_header(ws: Worksheet, row: int) -> None:
    for cell in ws[row]:
        if cell.value is None:
            continue
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = THIN_BORDER


def _auto_width(ws: Worksheet) -> None:
    for column_cells in ws.iter_cols(min_row=1, max_row=ws.max_row, min_col=1, max_col=ws.max_column):
        max_len = 0
        col_letter = get_column_letter(column_cells[0].column)
        for cell in column_cells:
            if cell.coordinate in ws.merged_cells:
                continue
            value = "" if cell.value is None else str(cell.value)
            max_len = max(max_len, len(value))
        ws.column_dimensions[col_letter].width = min(max_len + 2, 45)


def _style_label_rows(ws: Worksheet, *, start_row: int, end_row: int, fill: PatternFill) -> None:
    for row_idx in range(start_row, end_row + 1):
        label_cell = ws.cell(row=row_idx, column=1)
        value_cell = ws.cell(row=row_idx, column=2)
        label_cell.font = BOLD_FONT
        label_cell.fill = fill
        label_cell.border = THIN_BORDER
        value_cell.border = THIN_BORDER
        value_cell.alignment = Alignment(horizontal="left", vertical="center")


def build_report_xlsx_bytes(
    user: User,
    entries: Sequence[TimeEntry],
    report: MonthlyReport,
    options: ExportOptions,
    *,
    currency: str,
) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    headers = _headers(options)

    ws.append([SHEET_TITLE])
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(headers))
    ws.cell(row=1, column=1).font = TITLE_FONT
    ws.append([month_title(report)])
    ws.append([])

    if options.include_profile:
        profile_rows = _profile_rows(user)
        for row in profile_rows:
            ws.append(row)
        _style_label_rows(ws, start_row=ws.max_row - len(profile_rows) + 1, end_row=ws.max_row, fill=META_LABEL_FILL)
        ws.append([])

    ws.append(headers)
    header_row = ws.max_row
    _style_header(ws, header_row)
    for index, entry in enumerate(entries):
        ws.append(_entry_row(entry, options, currency))
        fill = DAY_OFF_FILL if entry.is_day_off else (ZEBRA_FILL if index % 2 else None)
        for cell in ws[ws.max_row]:
            cell.border = THIN_BORDER
            if fill is not None:
                cell.fill = fill
    ws.freeze_panes = f"A{header_row + 1}"

    ws.append([])
    ws.append(["Souhrn:"])
    ws.cell(row=ws.max_row, column=1).font = BOLD_FONT
    summary_start = ws.max_row + 1
    for row in _summary_rows(entries, report, options, currency):
        ws.append(row)
    _style_label_rows(ws, start_row=summary_start, end_row=ws.max_row, fill=SUMMARY_FILL)

    ws.append([])
    ws.append([f"Datum: {_format_date(date.today())}"])
    ws.append(["Podpis:"])
    _auto_width(ws)

    stream = BytesIO()
    wb.save(stream)
    return stream.getvalue()


def build_report_csv_text(
    user: User,
    entries: Sequence[TimeEntry],
    report: MonthlyReport,
    options: ExportOptions,
    *,
    currency: str,
) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([SHEET_TITLE, month_title(report)])
    writer.writerow(_headers(options))
    for entry in entries:
        writer.writerow(_entry_row(entry, options, currency))

    writer.writerow([])
    writer.writerow(["Souhrn:"])
    writer.writerows(_summary_rows(entries, report, options, currency))

    if options.include_profile:
        writer.writerow([])
        writer.writerows(_profile_rows(user))
    return buffer.getvalue()
