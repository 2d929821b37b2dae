from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from openpyxl import Workbook

from worktime.services.report_aggregator import EntryRecord, WorkerRecord, compute_duration_hours

if TYPE_CHECKING:
    from worktime.services.report_service import FullReport

EXPORT_HEADERS = (
    "Worker ID",
    "Worker Name",
    "Date",
    "Start Time",
    "End Time",
    "Manual Hours",
    "Total Hours",
    "Description",
    "Status",
    "Proof Count",
    "Client Notes",
)

WORKER_SUMMARY_HEADERS = (
    "Worker Name",
    "Email",
    "Total Hours",
    "Approved Hours",
    "Pending Hours",
    "Rejected Hours",
    "Entries Count",
)

UNKNOWN_WORKER_NAME = "Unknown"


def export_filename(start: date, end: date) -> str:
    return f"time-report-{start.isoformat()}-to-{end.isoformat()}"


def format_hours(hours: float) -> str:
    return f"{hours or 0:.2f}"


def export_rows(entries: Iterable[EntryRecord], workers: Iterable[WorkerRecord]) -> list[list[Any]]:
    names = {w.contractor_id: w.name for w in workers}
    rows = []
    for entry in entries:
        rows.append(
            [
                entry.worker_id,
                names.get(entry.worker_id, UNKNOWN_WORKER_NAME),
                "" if entry.date is None else entry.date.isoformat(),
                "" if entry.start_time is None else entry.start_time.isoformat(),
                "" if entry.end_time is None else entry.end_time.isoformat(),
                "" if entry.manual_hours is None else entry.manual_hours,
                compute_duration_hours(entry),
                entry.description,
                entry.status,
                entry.proof_count,
                entry.client_notes or "",
            ]
        )
    return rows


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Header row as-is, every data cell quoted."""
    buf = io.StringIO()
    buf.write(",".join(headers) + "\n")

    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if cell is None else str(cell) for cell in row])

    # no trailing newline after the last record
    return buf.getvalue()[:-1]


def to_xlsx(report: "FullReport", generated_at: datetime | None = None) -> bytes:
    summary = report.summary
    generated_at = generated_at or datetime.utcnow()

    wb = Workbook()

    ws = wb.active
    ws.title = "Summary"
    for row in (
        ["Time Tracking - Detailed Report"],
        ["Period:", f"{summary.period_start.isoformat()} - {summary.period_end.isoformat()}"],
        ["Generated:", generated_at.isoformat(timespec="seconds")],
        [],
        ["Summary Statistics"],
        ["Total Workers:", summary.total_workers],
        ["Total Hours:", format_hours(summary.total_hours)],
        ["Average Hours per Worker:", format_hours(summary.average_hours_per_worker)],
        ["Most Active Worker:", summary.most_active_worker],
        ["Approved Hours:", format_hours(summary.total_approved)],
        ["Pending Hours:", format_hours(summary.total_pending)],
        ["Rejected Hours:", format_hours(summary.total_rejected)],
    ):
        ws.append(row)

    ws = wb.create_sheet("Worker Summary")
    ws.append(list(WORKER_SUMMARY_HEADERS))
    for detail in report.worker_reports:
        r = detail.report
        ws.append(
            [
                r.worker_name,
                r.worker_email,
                format_hours(r.total_hours),
                format_hours(r.approved_hours),
                format_hours(r.pending_hours),
                format_hours(r.rejected_hours),
                r.entries_count,
            ]
        )

    ws = wb.create_sheet("Time Entries")
    ws.append(list(report.export_headers))
    for row in report.export_rows:
        ws.append(list(row))

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def to_text(report: "FullReport") -> str:
    summary = report.summary
    lines = [
        "Time Tracking Report",
        f"Period: {summary.period_start.isoformat()} to {summary.period_end.isoformat()}",
        "",
        "Summary:",
        f"- Total Hours: {summary.total_hours:.2f}",
        f"- Total Workers: {summary.total_workers}",
        f"- Total Entries: {summary.total_entries}",
        f"- Average Hours per Worker: {summary.average_hours_per_worker:.2f}",
        f"- Approval Rate: {summary.approval_rate:.1f}%",
        "",
        "Worker Details:",
    ]
    for detail in report.worker_reports:
        r = detail.report
        lines.append(f"{r.worker_name}: {r.total_hours:.2f} hours ({r.entries_count} entries)")
    return "\n".join(lines)
