from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from worktime.models.proof_of_work import ProofOfWork
from worktime.models.time_entry import TimeEntry
from worktime.models.worker import Worker
from worktime.services import export_service
from worktime.services.report_aggregator import (
    STATUS_APPROVED,
    ChartDataPoint,
    EntryRecord,
    ReportFilter,
    ReportSummary,
    ReportVariant,
    WorkerRecord,
    WorkerReport,
    aggregate_by_worker,
    bucket_by_date,
    bucket_by_week,
    filter_entries,
    hours_per_worker,
    parse_date,
    recent_buckets,
    status_distribution,
    summarize,
    unknown_worker_ids,
    week_start,
)

logger = logging.getLogger(__name__)

PERIODS = ("thisWeek", "lastWeek", "thisMonth", "lastMonth", "custom")
DAILY_CHART_DAYS = 7


@dataclass(frozen=True)
class DashboardReport:
    period_start: date
    period_end: date
    workers: list[WorkerReport]
    summary: ReportSummary


@dataclass(frozen=True)
class FullReportSummary:
    total_workers: int
    total_hours: float
    total_approved: float
    total_pending: float
    total_rejected: float
    average_hours_per_worker: float
    most_active_worker: str
    total_entries: int
    approval_rate: float
    period_start: date
    period_end: date


@dataclass(frozen=True)
class WorkerReportDetail:
    report: WorkerReport
    average_hours_per_day: float


@dataclass(frozen=True)
class ChartData:
    hours_per_worker: list[ChartDataPoint]
    status_distribution: list[ChartDataPoint]
    daily_hours: list[ChartDataPoint]
    weekly_hours: list[ChartDataPoint]


@dataclass(frozen=True)
class FullReport:
    summary: FullReportSummary
    worker_reports: list[WorkerReportDetail]
    chart_data: ChartData
    export_filename: str
    export_headers: list[str]
    export_rows: list[list[Any]]
    warnings: list[str] = field(default_factory=list)


# ---------- Persistence reads ----------

def entry_record(row: TimeEntry, proof_count: Optional[int] = None) -> EntryRecord:
    if proof_count is None:
        proof_count = len(row.proof_of_work)
    return EntryRecord(
        id=row.id,
        worker_id=row.worker_id,
        date=row.date,
        status=row.status,
        start_time=row.start_time,
        end_time=row.end_time,
        manual_hours=row.manual_hours,
        description=row.description or "",
        client_notes=row.client_notes,
        proof_count=proof_count,
    )


def worker_record(row: Worker) -> WorkerRecord:
    return WorkerRecord(contractor_id=row.contractor_id, name=row.name, email=row.email or "")


def load_entries(client_id: int, *, db: Session) -> list[EntryRecord]:
    proof_counts = dict(
        db.query(ProofOfWork.entry_id, func.count(ProofOfWork.id))
        .join(TimeEntry, TimeEntry.id == ProofOfWork.entry_id)
        .filter(TimeEntry.client_id == int(client_id))
        .group_by(ProofOfWork.entry_id)
        .all()
    )

    rows = (
        db.query(TimeEntry)
        .filter(TimeEntry.client_id == int(client_id))
        .order_by(TimeEntry.created_at.asc(), TimeEntry.id.asc())
        .all()
    )
    return [entry_record(r, int(proof_counts.get(r.id, 0))) for r in rows]


def load_workers(client_id: int, *, db: Session) -> list[WorkerRecord]:
    rows = (
        db.query(Worker)
        .filter(Worker.client_id == int(client_id))
        .order_by(Worker.created_at.asc(), Worker.contractor_id.asc())
        .all()
    )
    return [worker_record(r) for r in rows]


# ---------- Periods ----------

def resolve_period(
    period: str,
    today: Optional[date] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> tuple[date, date]:
    today = today or date.today()

    if period == "thisWeek":
        start = week_start(today)
        return start, start + timedelta(days=6)
    if period == "lastWeek":
        start = week_start(today) - timedelta(days=7)
        return start, start + timedelta(days=6)
    if period == "thisMonth":
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=1), today.replace(day=last_day)
    if period == "lastMonth":
        end = today.replace(day=1) - timedelta(days=1)
        return end.replace(day=1), end
    if period == "custom":
        return custom_start or date(today.year, 1, 1), custom_end or today

    raise ValueError(f"Unknown report period: {period}")


# ---------- Reports ----------

def dashboard_report(client_id: int, period_start: date, period_end: date, *, db: Session) -> DashboardReport:
    workers = load_workers(client_id, db=db)
    entries = filter_entries(
        load_entries(client_id, db=db),
        ReportFilter(date_start=period_start, date_end=period_end),
    )

    reports = aggregate_by_worker(entries, workers, ReportVariant.DASHBOARD)
    return DashboardReport(
        period_start=period_start,
        period_end=period_end,
        workers=reports,
        summary=summarize(reports),
    )


def _period_days(start: date, end: date) -> int:
    return (end - start).days + 1


def build_full_report(
    entries: list[EntryRecord],
    workers: list[WorkerRecord],
    report_filter: ReportFilter,
) -> FullReport:
    """Full report over already-loaded records; pure."""
    period_start = parse_date(report_filter.date_start)
    period_end = parse_date(report_filter.date_end)
    if period_start is None or period_end is None:
        raise ValueError("Report period needs a start and end date")

    filtered = filter_entries(entries, report_filter)
    if report_filter.worker_ids:
        workers = [w for w in workers if w.contractor_id in report_filter.worker_ids]

    reports = aggregate_by_worker(filtered, workers, ReportVariant.FULL)
    base = summarize(reports)

    approved_count = sum(1 for e in filtered if e.status == STATUS_APPROVED)
    summary = FullReportSummary(
        total_workers=base.total_workers,
        total_hours=base.total_hours,
        total_approved=base.total_approved,
        total_pending=base.total_pending,
        total_rejected=base.total_rejected,
        average_hours_per_worker=base.average_hours_per_worker,
        most_active_worker=base.most_active_worker,
        total_entries=len(filtered),
        approval_rate=(approved_count / len(filtered)) * 100 if filtered else 0.0,
        period_start=period_start,
        period_end=period_end,
    )

    days = _period_days(period_start, period_end)
    details = [
        WorkerReportDetail(
            report=r,
            average_hours_per_day=r.total_hours / days if days > 0 else 0.0,
        )
        for r in reports
    ]

    charts = ChartData(
        hours_per_worker=hours_per_worker(filtered, workers),
        status_distribution=status_distribution(filtered),
        daily_hours=recent_buckets(bucket_by_date(filtered), DAILY_CHART_DAYS),
        weekly_hours=bucket_by_week(filtered),
    )

    warnings = [f"Entry references unknown worker: {wid}" for wid in unknown_worker_ids(filtered, workers)]

    return FullReport(
        summary=summary,
        worker_reports=details,
        chart_data=charts,
        export_filename=export_service.export_filename(period_start, period_end),
        export_headers=list(export_service.EXPORT_HEADERS),
        export_rows=export_service.export_rows(filtered, workers),
        warnings=warnings,
    )


def full_report(client_id: int, report_filter: ReportFilter, *, db: Session) -> FullReport:
    report = build_full_report(
        load_entries(client_id, db=db),
        load_workers(client_id, db=db),
        report_filter,
    )

    if report.warnings:
        logger.warning(
            "Report contains entries for unknown workers",
            extra={"client_id": int(client_id), "warnings": report.warnings},
        )
    return report


def quick_weekly_report(client_id: int, today: Optional[date] = None, *, db: Session) -> FullReport:
    start, end = resolve_period("thisWeek", today)
    return full_report(client_id, ReportFilter(date_start=start, date_end=end), db=db)


def quick_monthly_report(client_id: int, today: Optional[date] = None, *, db: Session) -> FullReport:
    start, end = resolve_period("thisMonth", today)
    return full_report(client_id, ReportFilter(date_start=start, date_end=end), db=db)
