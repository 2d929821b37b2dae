from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

STATUS_DRAFT = "draft"
STATUS_SUBMITTED = "submitted"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

PENDING_STATUSES = frozenset({STATUS_DRAFT, STATUS_SUBMITTED})
ALL_STATUSES = (STATUS_DRAFT, STATUS_SUBMITTED, STATUS_APPROVED, STATUS_REJECTED)

LABEL_PENDING_REVIEW = "Pending Review"
LABEL_UP_TO_DATE = "Up to Date"
LABEL_NO_ACTIVITY = "No Activity"

NO_ACTIVE_WORKER = "None"

# clock times carry no day; both ends are pinned to the same reference day
_REFERENCE_DAY = date(2000, 1, 1)


# ---------- Duration source ----------

@dataclass(frozen=True)
class Manual:
    hours: float


@dataclass(frozen=True)
class ClockRange:
    start: time
    end: time


@dataclass(frozen=True)
class Unset:
    pass


DurationSource = Union[Manual, ClockRange, Unset]


# ---------- Inputs ----------

@dataclass(frozen=True)
class EntryRecord:
    id: str
    worker_id: str
    date: Optional[date]
    status: str
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    manual_hours: Optional[float] = None
    description: str = ""
    client_notes: Optional[str] = None
    proof_count: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EntryRecord":
        """
        Lenient constructor for loosely-typed mappings, snake_case or camelCase.

        Unparseable dates/times/numbers become None rather than raising.
        """
        proofs = data.get("proof_of_work") or data.get("proofOfWork") or []
        return cls(
            id=str(data.get("id") or ""),
            worker_id=str(data.get("worker_id") or data.get("workerId") or ""),
            date=parse_date(data.get("date")),
            status=str(data.get("status") or STATUS_DRAFT),
            start_time=parse_time(data.get("start_time", data.get("startTime"))),
            end_time=parse_time(data.get("end_time", data.get("endTime"))),
            manual_hours=_parse_hours(data.get("manual_hours", data.get("manualHours"))),
            description=str(data.get("description") or ""),
            client_notes=data.get("client_notes", data.get("clientNotes")),
            proof_count=len(proofs) if isinstance(proofs, (list, tuple)) else 0,
        )


@dataclass(frozen=True)
class WorkerRecord:
    contractor_id: str
    name: str
    email: str = ""


@dataclass(frozen=True)
class ReportFilter:
    date_start: Any
    date_end: Any
    worker_ids: frozenset = field(default_factory=frozenset)
    statuses: frozenset = field(default_factory=frozenset)


class ReportVariant(Enum):
    # idle workers dropped, input worker order kept
    DASHBOARD = "dashboard"
    # every worker in scope, sorted by total hours descending
    FULL = "full"


# ---------- Outputs ----------

@dataclass(frozen=True)
class WorkerReport:
    worker_id: str
    worker_name: str
    worker_email: str
    approved_hours: float
    pending_hours: float
    rejected_hours: float
    total_hours: float
    entries_count: int
    proof_count: int
    last_activity: Optional[date]
    status: str


@dataclass(frozen=True)
class ReportSummary:
    total_workers: int
    total_hours: float
    total_approved: float
    total_pending: float
    total_rejected: float
    average_hours_per_worker: float
    most_active_worker: str


@dataclass(frozen=True)
class ChartDataPoint:
    label: str
    value: float


# ---------- Parsing helpers ----------

def parse_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def parse_time(value: Any) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError:
        return None


def _parse_hours(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ---------- Operations ----------

def duration_source(entry: EntryRecord) -> DurationSource:
    if entry.manual_hours is not None:
        return Manual(hours=entry.manual_hours)
    if entry.start_time is not None and entry.end_time is not None:
        return ClockRange(start=entry.start_time, end=entry.end_time)
    return Unset()


def compute_duration_hours(entry: EntryRecord) -> float:
    """
    Manual hours win over clock times. Clock ranges are measured on a single
    reference day, so a session that crosses midnight comes out negative.
    """
    source = duration_source(entry)
    if isinstance(source, Manual):
        return source.hours
    if isinstance(source, ClockRange):
        start = datetime.combine(_REFERENCE_DAY, source.start)
        end = datetime.combine(_REFERENCE_DAY, source.end)
        return (end - start).total_seconds() / 3600
    return 0.0


def filter_entries(entries: Iterable[EntryRecord], report_filter: ReportFilter) -> list[EntryRecord]:
    start = parse_date(report_filter.date_start)
    end = parse_date(report_filter.date_end)
    if start is None or end is None:
        return []

    worker_ids = report_filter.worker_ids or frozenset()
    statuses = report_filter.statuses or frozenset()

    kept = []
    for entry in entries:
        if entry.date is None or entry.date < start or entry.date > end:
            continue
        if worker_ids and entry.worker_id not in worker_ids:
            continue
        if statuses and entry.status not in statuses:
            continue
        kept.append(entry)
    return kept


def status_label(approved_hours: float, pending_hours: float) -> str:
    if pending_hours > 0:
        return LABEL_PENDING_REVIEW
    if approved_hours > 0:
        return LABEL_UP_TO_DATE
    return LABEL_NO_ACTIVITY


def _worker_report(worker: WorkerRecord, entries: Sequence[EntryRecord]) -> WorkerReport:
    approved = pending = rejected = 0.0
    proofs = 0
    last_activity: Optional[date] = None

    for entry in entries:
        hours = compute_duration_hours(entry)
        if entry.status == STATUS_APPROVED:
            approved += hours
        elif entry.status in PENDING_STATUSES:
            pending += hours
        elif entry.status == STATUS_REJECTED:
            rejected += hours

        proofs += entry.proof_count
        if entry.date is not None and (last_activity is None or entry.date > last_activity):
            last_activity = entry.date

    return WorkerReport(
        worker_id=worker.contractor_id,
        worker_name=worker.name,
        worker_email=worker.email,
        approved_hours=approved,
        pending_hours=pending,
        rejected_hours=rejected,
        total_hours=approved + pending + rejected,
        entries_count=len(entries),
        proof_count=proofs,
        last_activity=last_activity,
        status=status_label(approved, pending),
    )


def aggregate_by_worker(
    entries: Iterable[EntryRecord],
    workers: Iterable[WorkerRecord],
    variant: ReportVariant = ReportVariant.DASHBOARD,
) -> list[WorkerReport]:
    by_worker: dict[str, list[EntryRecord]] = {}
    for entry in entries:
        by_worker.setdefault(entry.worker_id, []).append(entry)

    reports = [_worker_report(w, by_worker.get(w.contractor_id, [])) for w in workers]

    if variant is ReportVariant.FULL:
        return sorted(reports, key=lambda r: r.total_hours, reverse=True)
    return [r for r in reports if r.total_hours != 0]


def summarize(worker_reports: Sequence[WorkerReport]) -> ReportSummary:
    active = [r for r in worker_reports if r.total_hours > 0]
    total_hours = sum(r.total_hours for r in worker_reports)

    most_active = NO_ACTIVE_WORKER
    if active:
        most_active = sorted(active, key=lambda r: r.total_hours, reverse=True)[0].worker_name

    return ReportSummary(
        total_workers=len(active),
        total_hours=total_hours,
        total_approved=sum(r.approved_hours for r in worker_reports),
        total_pending=sum(r.pending_hours for r in worker_reports),
        total_rejected=sum(r.rejected_hours for r in worker_reports),
        average_hours_per_worker=total_hours / len(active) if active else 0.0,
        most_active_worker=most_active,
    )


def week_start(day: date) -> date:
    # weeks start on Sunday; date.weekday() has Monday == 0
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _bucket(entries: Iterable[EntryRecord], key) -> list[ChartDataPoint]:
    totals: dict[date, float] = {}
    for entry in entries:
        if entry.date is None:
            continue
        bucket = key(entry.date)
        totals[bucket] = totals.get(bucket, 0.0) + compute_duration_hours(entry)
    return [ChartDataPoint(label=d.isoformat(), value=v) for d, v in sorted(totals.items())]


def bucket_by_date(entries: Iterable[EntryRecord]) -> list[ChartDataPoint]:
    return _bucket(entries, lambda d: d)


def bucket_by_week(entries: Iterable[EntryRecord]) -> list[ChartDataPoint]:
    return _bucket(entries, week_start)


def recent_buckets(points: Sequence[ChartDataPoint], limit: int = 7) -> list[ChartDataPoint]:
    if limit <= 0:
        return []
    return list(points[-limit:])


def hours_per_worker(entries: Iterable[EntryRecord], workers: Iterable[WorkerRecord]) -> list[ChartDataPoint]:
    totals: dict[str, float] = {}
    for entry in entries:
        totals[entry.worker_id] = totals.get(entry.worker_id, 0.0) + compute_duration_hours(entry)
    return [ChartDataPoint(label=w.name, value=totals.get(w.contractor_id, 0.0)) for w in workers]


def status_distribution(entries: Iterable[EntryRecord]) -> list[ChartDataPoint]:
    """Entry counts per status, in first-seen order."""
    counts: dict[str, int] = {}
    for entry in entries:
        counts[entry.status] = counts.get(entry.status, 0) + 1
    return [ChartDataPoint(label=status.capitalize(), value=float(n)) for status, n in counts.items()]


def unknown_worker_ids(entries: Iterable[EntryRecord], workers: Iterable[WorkerRecord]) -> list[str]:
    known = {w.contractor_id for w in workers}
    return sorted({e.worker_id for e in entries if e.worker_id not in known})
