import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from worktime.core.errors import EntryNotFound, InvalidTransition
from worktime.database import session_scope
from worktime.models.time_entry import TimeEntry
from worktime.services.time_entry_service import get_client_entry

logger = logging.getLogger(__name__)

PENDING_STATUSES = ("draft", "submitted")


@dataclass
class BulkResult:
    updated: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def pending_entries(client_id: int, *, db: Session, worker_id: Optional[str] = None) -> list[TimeEntry]:
    q = db.query(TimeEntry).filter(
        TimeEntry.client_id == int(client_id),
        TimeEntry.status.in_(PENDING_STATUSES),
    )
    if worker_id is not None:
        q = q.filter(TimeEntry.worker_id == str(worker_id))
    return q.order_by(TimeEntry.date.asc(), TimeEntry.created_at.asc()).all()


def _approve(entry: TimeEntry, now: datetime) -> None:
    if entry.status not in PENDING_STATUSES:
        raise InvalidTransition(f"Entry is already {entry.status}")
    if entry.start_time is not None and entry.end_time is None and entry.manual_hours is None:
        raise InvalidTransition("Entry has an open clock session")
    entry.status = "approved"
    entry.last_modified = now


def _reject(entry: TimeEntry, notes: Optional[str], now: datetime) -> None:
    if entry.status != "submitted":
        raise InvalidTransition(f"Only submitted entries can be rejected (entry is {entry.status})")
    entry.status = "rejected"
    if notes:
        entry.client_notes = notes
    entry.last_modified = now


def approve_entry(client_id: int, entry_id: str, *, db: Optional[Session] = None) -> TimeEntry:
    with session_scope(db) as s:
        entry = get_client_entry(client_id, entry_id, db=s)
        _approve(entry, datetime.utcnow())
        s.flush()

        logger.info("Entry approved", extra={"client_id": int(client_id), "entry_id": entry.id})
        return entry


def reject_entry(
    client_id: int,
    entry_id: str,
    notes: Optional[str] = None,
    *,
    db: Optional[Session] = None,
) -> TimeEntry:
    with session_scope(db) as s:
        entry = get_client_entry(client_id, entry_id, db=s)
        _reject(entry, (notes or "").strip() or None, datetime.utcnow())
        s.flush()

        logger.info("Entry rejected", extra={"client_id": int(client_id), "entry_id": entry.id})
        return entry


def _bulk(client_id: int, entry_ids: Iterable[str], apply, db: Optional[Session]) -> BulkResult:
    result = BulkResult()
    now = datetime.utcnow()

    with session_scope(db) as s:
        for entry_id in entry_ids:
            try:
                entry = get_client_entry(client_id, entry_id, db=s)
                apply(entry, now)
            except (EntryNotFound, InvalidTransition) as exc:
                result.warnings.append(f"{entry_id}: {exc}")
                continue
            result.updated.append(entry.id)
        s.flush()

    return result


def approve_all(client_id: int, entry_ids: Iterable[str], *, db: Optional[Session] = None) -> BulkResult:
    result = _bulk(client_id, entry_ids, _approve, db)
    logger.info(
        "Bulk approval",
        extra={"client_id": int(client_id), "approved": len(result.updated), "skipped": len(result.warnings)},
    )
    return result


def reject_all(
    client_id: int,
    entry_ids: Iterable[str],
    notes: Optional[str] = None,
    *,
    db: Optional[Session] = None,
) -> BulkResult:
    notes = (notes or "").strip() or None
    result = _bulk(client_id, entry_ids, lambda entry, now: _reject(entry, notes, now), db)
    logger.info(
        "Bulk rejection",
        extra={"client_id": int(client_id), "rejected": len(result.updated), "skipped": len(result.warnings)},
    )
    return result
