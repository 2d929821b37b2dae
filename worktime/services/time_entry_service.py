from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Mapping, Optional, Sequence
from uuid import uuid4

from sqlalchemy.orm import Session

from worktime.core.config import max_proof_bytes
from worktime.core.errors import EditNotAllowed, EntryNotFound, InvalidTransition, ProofNotFound
from worktime.database import session_scope
from worktime.models.proof_of_work import PROOF_TYPES, ProofOfWork
from worktime.models.time_entry import TimeEntry
from worktime.models.worker import Worker
from worktime.services import edit_tracking
from worktime.services.report_aggregator import compute_duration_hours
from worktime.services.report_service import entry_record

logger = logging.getLogger(__name__)

MIN_MANUAL_HOURS = 0.25
MAX_MANUAL_HOURS = 12


@dataclass(frozen=True)
class ProofInput:
    type: str
    content: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    description: Optional[str] = None


def _now() -> datetime:
    return datetime.utcnow()


def _clock_time(at: datetime) -> time:
    return at.time().replace(microsecond=0)


def _get_open_session(db: Session, worker: Worker) -> Optional[TimeEntry]:
    return (
        db.query(TimeEntry)
        .filter(
            TimeEntry.client_id == worker.client_id,
            TimeEntry.worker_id == worker.contractor_id,
            TimeEntry.start_time.isnot(None),
            TimeEntry.end_time.is_(None),
            TimeEntry.manual_hours.is_(None),
        )
        .first()
    )


def get_worker_entry(worker: Worker, entry_id: str, *, db: Session) -> TimeEntry:
    entry = (
        db.query(TimeEntry)
        .filter(
            TimeEntry.id == str(entry_id),
            TimeEntry.client_id == worker.client_id,
            TimeEntry.worker_id == worker.contractor_id,
        )
        .first()
    )
    if entry is None:
        raise EntryNotFound(f"Time entry not found: {entry_id}")
    return entry


def get_client_entry(client_id: int, entry_id: str, *, db: Session) -> TimeEntry:
    entry = (
        db.query(TimeEntry)
        .filter(
            TimeEntry.id == str(entry_id),
            TimeEntry.client_id == int(client_id),
        )
        .first()
    )
    if entry is None:
        raise EntryNotFound(f"Time entry not found: {entry_id}")
    return entry


def _require_editable(entry: TimeEntry, today: Optional[date]) -> None:
    allowed, reason = edit_tracking.validate_edit_permissions(entry, today)
    if not allowed:
        raise EditNotAllowed(reason)


def _check_manual_entry(hours: Any, description: Optional[str]) -> None:
    if hours is None or not (MIN_MANUAL_HOURS <= float(hours) <= MAX_MANUAL_HOURS):
        raise ValueError(f"Hours must be between {MIN_MANUAL_HOURS} and {MAX_MANUAL_HOURS}")
    if not description or not description.strip():
        raise ValueError("Description is required for manual entries")


def _build_proof(proof: ProofInput, position: int, now: datetime) -> ProofOfWork:
    if proof.type not in PROOF_TYPES:
        raise ValueError(f"Invalid proof type: {proof.type}")
    if not proof.content:
        raise ValueError("Proof content is required")

    size = len(proof.content.encode("utf-8"))
    limit = max_proof_bytes()
    if size > limit:
        raise ValueError(f"Proof too large. Maximum size is {limit // (1024 * 1024)}MB")

    return ProofOfWork(
        id=str(uuid4()),
        position=position,
        type=proof.type,
        timestamp=now,
        content=proof.content,
        file_name=proof.file_name,
        file_size=proof.file_size if proof.file_size is not None else size,
        description=proof.description,
    )


# ---------- Clock sessions ----------

def clock_in(worker: Worker, at: Optional[datetime] = None, *, db: Optional[Session] = None) -> TimeEntry:
    at = at or _now()

    with session_scope(db) as s:
        if _get_open_session(s, worker) is not None:
            raise ValueError("Active clock session already exists for worker")

        entry = TimeEntry(
            id=str(uuid4()),
            client_id=worker.client_id,
            worker_id=worker.contractor_id,
            date=at.date(),
            start_time=_clock_time(at),
            end_time=None,
            manual_hours=None,
            description="",
            status="draft",
            created_at=_now(),
        )
        s.add(entry)
        s.flush()

        logger.info("Clocked in", extra={"worker_id": worker.contractor_id, "entry_id": entry.id})
        return entry


def clock_out(
    worker: Worker,
    at: Optional[datetime] = None,
    description: Optional[str] = None,
    *,
    db: Optional[Session] = None,
) -> TimeEntry:
    at = at or _now()

    with session_scope(db) as s:
        entry = _get_open_session(s, worker)
        if entry is None:
            raise ValueError("No active clock session found for worker")

        # the end time keeps the session's own day; no rollover past midnight
        entry.end_time = _clock_time(at)
        if description is not None:
            entry.description = description.strip()
        entry.last_modified = at
        s.flush()

        logger.info(
            "Clocked out",
            extra={
                "worker_id": worker.contractor_id,
                "entry_id": entry.id,
                "hours": compute_duration_hours(entry_record(entry)),
            },
        )
        return entry


# ---------- Manual timesheets ----------

def submit_manual_entry(
    worker: Worker,
    *,
    entry_date: date,
    hours: float,
    description: str,
    proofs: Sequence[ProofInput] = (),
    db: Optional[Session] = None,
) -> TimeEntry:
    _check_manual_entry(hours, description)
    if worker.tracking_mode == "timesheet" and not proofs:
        raise ValueError("Timesheet entries require at least one proof of work")

    now = _now()
    with session_scope(db) as s:
        entry = TimeEntry(
            id=str(uuid4()),
            client_id=worker.client_id,
            worker_id=worker.contractor_id,
            date=entry_date,
            manual_hours=float(hours),
            description=description.strip(),
            status="draft",
            created_at=now,
        )
        for position, proof in enumerate(proofs):
            entry.proof_of_work.append(_build_proof(proof, position, now))

        s.add(entry)
        s.flush()

        logger.info(
            "Manual entry created",
            extra={"worker_id": worker.contractor_id, "entry_id": entry.id, "hours": float(hours)},
        )
        return entry


def submit_entry(worker: Worker, entry_id: str, *, db: Optional[Session] = None) -> TimeEntry:
    with session_scope(db) as s:
        entry = get_worker_entry(worker, entry_id, db=s)
        if entry.status != "draft":
            raise InvalidTransition(f"Cannot submit an entry with status {entry.status}")
        if entry.start_time is not None and entry.end_time is None and entry.manual_hours is None:
            raise InvalidTransition("Clock out before submitting this entry")

        entry.status = "submitted"
        entry.last_modified = _now()
        s.flush()

        logger.info("Entry submitted", extra={"worker_id": worker.contractor_id, "entry_id": entry.id})
        return entry


# ---------- Edits ----------

def _apply_changes(entry: TimeEntry, changes: Mapping[str, Any], reason: Optional[str], now: datetime) -> int:
    applied = 0
    for field in edit_tracking.TRACKED_FIELDS:
        if field not in changes:
            continue

        new_value = changes[field]
        if field == "description":
            new_value = (new_value or "").strip()
        if field == "manual_hours" and new_value is not None:
            new_value = float(new_value)
            if new_value < 0:
                raise ValueError("Hours cannot be negative")
        if field == "date" and new_value is None:
            raise ValueError("Entry date is required")

        old_value = getattr(entry, field)
        if old_value == new_value:
            continue

        setattr(entry, field, new_value)
        edit_tracking.track_edit(entry, field, old_value, new_value, reason, now)
        applied += 1
    return applied


def edit_entry(
    worker: Worker,
    entry_id: str,
    changes: Mapping[str, Any],
    reason: Optional[str] = None,
    *,
    today: Optional[date] = None,
    db: Optional[Session] = None,
) -> TimeEntry:
    """
    Edit a draft/submitted entry. A submitted entry falls back to draft and
    must be submitted again.
    """
    unknown = set(changes) - set(edit_tracking.TRACKED_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

    with session_scope(db) as s:
        entry = get_worker_entry(worker, entry_id, db=s)
        _require_editable(entry, today)

        manual_hours = changes.get("manual_hours", entry.manual_hours)
        if manual_hours is not None:
            _check_manual_entry(manual_hours, changes.get("description", entry.description))

        applied = _apply_changes(entry, changes, reason, _now())
        s.flush()

        if applied:
            logger.info(
                "Entry edited",
                extra={"worker_id": worker.contractor_id, "entry_id": entry.id, "fields_changed": applied},
            )
        return entry


def request_adjustment(
    worker: Worker,
    entry_id: str,
    *,
    start_time: time,
    end_time: time,
    reason: str,
    today: Optional[date] = None,
    db: Optional[Session] = None,
) -> TimeEntry:
    """Correct the clock times of a session; the adjusted entry is submitted right away."""
    if not reason or not reason.strip():
        raise ValueError("A reason is required for adjustment requests")

    with session_scope(db) as s:
        entry = get_worker_entry(worker, entry_id, db=s)
        if entry.start_time is None:
            raise ValueError("Only clock entries can be adjusted")
        _require_editable(entry, today)

        now = _now()
        _apply_changes(entry, {"start_time": start_time, "end_time": end_time}, reason.strip(), now)
        entry.status = "submitted"
        entry.last_modified = now
        s.flush()

        logger.info("Adjustment requested", extra={"worker_id": worker.contractor_id, "entry_id": entry.id})
        return entry


# ---------- Proof of work ----------

def add_proof(
    worker: Worker,
    entry_id: str,
    proof: ProofInput,
    *,
    today: Optional[date] = None,
    db: Optional[Session] = None,
) -> ProofOfWork:
    with session_scope(db) as s:
        entry = get_worker_entry(worker, entry_id, db=s)
        _require_editable(entry, today)

        item = _build_proof(proof, len(entry.proof_of_work), _now())
        entry.proof_of_work.append(item)
        s.flush()
        return item


def remove_proof(
    worker: Worker,
    proof_id: str,
    *,
    today: Optional[date] = None,
    db: Optional[Session] = None,
) -> None:
    with session_scope(db) as s:
        item = (
            s.query(ProofOfWork)
            .join(TimeEntry, TimeEntry.id == ProofOfWork.entry_id)
            .filter(
                ProofOfWork.id == str(proof_id),
                TimeEntry.client_id == worker.client_id,
                TimeEntry.worker_id == worker.contractor_id,
            )
            .first()
        )
        if item is None:
            raise ProofNotFound(f"Proof of work not found: {proof_id}")

        entry = item.entry
        _require_editable(entry, today)
        last_proof = len(entry.proof_of_work) == 1
        if worker.tracking_mode == "timesheet" and entry.manual_hours is not None and last_proof:
            raise ValueError("Timesheet entries require at least one proof of work")

        entry.proof_of_work.remove(item)
        s.flush()


# ---------- Queries ----------

def list_worker_entries(
    worker: Worker,
    *,
    db: Session,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> list[TimeEntry]:
    q = db.query(TimeEntry).filter(
        TimeEntry.client_id == worker.client_id,
        TimeEntry.worker_id == worker.contractor_id,
    )
    if date_from is not None:
        q = q.filter(TimeEntry.date >= date_from)
    if date_to is not None:
        q = q.filter(TimeEntry.date <= date_to)
    return q.order_by(TimeEntry.date.desc(), TimeEntry.created_at.desc()).all()


def today_summary(worker: Worker, today: Optional[date] = None, *, db: Session) -> dict[str, Any]:
    today = today or date.today()
    entries = list_worker_entries(worker, db=db, date_from=today, date_to=today)

    return {
        "date": today,
        "entries": entries,
        "total_hours": sum(compute_duration_hours(entry_record(e)) for e in entries),
        "proof_of_work": [p for e in entries for p in e.proof_of_work],
        "clocked_in": _get_open_session(db, worker) is not None,
    }
