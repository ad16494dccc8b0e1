"""
Report builder – results CSV, processing log (CSV + HTML) and e-mail body.
"""
from __future__ import annotations

import csv
import html
import io
from datetime import date
from typing import Any, Iterable, Optional

from app.schemas import BatchReport, BatchRequest, BillingRecord, ProcessingLogEntry

RESULT_COLUMNS = [
    "meter_number",
    "total_kwh",
    "start_date",
    "end_date",
    "total_charges",
    "adjustments",
    "warnings",
    "filename",
]
LOG_COLUMNS = ["filename", "status", "error"]

_TABLE_STYLE = "border-collapse: collapse; font-family: Arial, sans-serif;"
_TH_STYLE = "background-color: #f2f2f2; padding: 8px; text-align: left;"
_TD_STYLE = "padding: 8px; border: 1px solid #ddd;"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_csv(columns: list[str], rows: Iterable[dict[str, Any]]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=columns, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({c: _cell(row.get(c)) for c in columns})
    return buf.getvalue()


def _record_row(record: BillingRecord) -> dict[str, Any]:
    return {
        "meter_number": record.meter_number,
        "total_kwh": record.total_kwh,
        "start_date": record.start_date,
        "end_date": record.end_date,
        "total_charges": record.total_charges,
        "adjustments": record.adjustments,
        "warnings": record.warning,
        "filename": record.filename,
    }


def _log_row(entry: ProcessingLogEntry) -> dict[str, Any]:
    return {"filename": entry.filename, "status": entry.status, "error": entry.error}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def render_html_table(columns: list[str], rows: Iterable[dict[str, Any]]) -> str:
    """Simple bordered table with a shaded header row, for inline e-mail use."""
    parts = [f'<table border="1" cellpadding="8" cellspacing="0" style="{_TABLE_STYLE}">']
    parts.append("<thead><tr>")
    parts.extend(f'<th style="{_TH_STYLE}">{html.escape(c)}</th>' for c in columns)
    parts.append("</tr></thead><tbody>")
    for row in rows:
        parts.append("<tr>")
        parts.extend(
            f'<td style="{_TD_STYLE}">{html.escape(_cell(row.get(c)))}</td>' for c in columns
        )
        parts.append("</tr>")
    parts.append("</tbody></table>")
    return "".join(parts)


def build_report(
    records: list[BillingRecord], log_entries: list[ProcessingLogEntry]
) -> BatchReport:
    log_rows = [_log_row(e) for e in log_entries]
    return BatchReport(
        csv_body=_to_csv(RESULT_COLUMNS, (_record_row(r) for r in records)),
        log_csv=_to_csv(LOG_COLUMNS, log_rows),
        log_html=render_html_table(LOG_COLUMNS, log_rows),
    )


def attachment_filename(customer: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{customer}_bill_analysis_{today.isoformat()}.csv"


def email_subject(request: BatchRequest) -> str:
    return f"Bill Analysis for {request.customer}, site {request.location_id}"


def render_email_body(
    request: BatchRequest, report: BatchReport, record_count: int, file_count: int
) -> str:
    esc = html.escape
    return (
        "Hi there,<br><br>"
        "Please find attached the extracted bill data from your uploaded files for:<br>"
        f"Customer: {esc(request.customer)}<br>"
        f"Site ID: {esc(request.location_id)}<br>"
        f"Address: {esc(request.location_address or '')}<br><br>"
        f"Processed {record_count} records from {file_count} files.<br><br>"
        f"Log:<br>{report.log_html}<br>"
        "-- <br>"
        "This message was generated automatically by the bill-processing system."
    )
