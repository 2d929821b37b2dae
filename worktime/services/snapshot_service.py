import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from worktime.database import session_scope
from worktime.models.proof_of_work import ProofOfWork
from worktime.models.time_entry import TimeEntry
from worktime.models.worker import Worker
from worktime.schemas.snapshot import SnapshotDocument, SnapshotEntry, SnapshotWorker

logger = logging.getLogger(__name__)


def export_snapshot(client_id: int, *, db: Session, now: Optional[datetime] = None) -> dict[str, Any]:
    workers = (
        db.query(Worker)
        .filter(Worker.client_id == int(client_id))
        .order_by(Worker.created_at.asc(), Worker.contractor_id.asc())
        .all()
    )
    entries = (
        db.query(TimeEntry)
        .filter(TimeEntry.client_id == int(client_id))
        .order_by(TimeEntry.date.asc(), TimeEntry.created_at.asc())
        .all()
    )

    return {
        "workers": [SnapshotWorker.model_validate(w).model_dump(mode="json") for w in workers],
        "time_entries": [SnapshotEntry.model_validate(e).model_dump(mode="json") for e in entries],
        "export_date": (now or datetime.utcnow()).isoformat(),
    }


def clear_all_data(client_id: int, *, db: Optional[Session] = None) -> dict[str, int]:
    with session_scope(db) as s:
        workers = s.query(Worker).filter(Worker.client_id == int(client_id)).all()
        entries_removed = s.query(TimeEntry).filter(TimeEntry.client_id == int(client_id)).count()

        for worker in workers:
            s.delete(worker)
        s.flush()

        # entries whose worker row is already gone
        for orphan in s.query(TimeEntry).filter(TimeEntry.client_id == int(client_id)).all():
            s.delete(orphan)
        s.flush()

    logger.info(
        "Client data cleared",
        extra={"client_id": int(client_id), "workers_removed": len(workers), "entries_removed": entries_removed},
    )
    return {"workers_removed": len(workers), "entries_removed": entries_removed}


def _taken(s: Session, column, value: str) -> bool:
    return s.query(column).filter(column == value).first() is not None


def import_snapshot(client_id: int, payload: Any, *, db: Optional[Session] = None) -> dict[str, Any]:
    """
    Replace the client's workers and time entries with the snapshot's contents.

    Records that clash with each other or with rows owned by another client
    are skipped and reported in ``warnings``.
    """
    try:
        doc = SnapshotDocument.model_validate(payload)
    except ValidationError as exc:
        raise ValueError("Invalid data format") from exc

    warnings: list[str] = []
    now = datetime.utcnow()

    with session_scope(db) as s:
        clear_all_data(client_id, db=s)

        known: set[str] = set()
        tokens: set[str] = set()
        for w in doc.workers:
            if w.contractor_id in known:
                warnings.append(f"Duplicate worker skipped: {w.contractor_id}")
                continue
            if w.invite_token in tokens or _taken(s, Worker.invite_token, w.invite_token):
                warnings.append(f"Worker {w.contractor_id} skipped: invite token already in use")
                continue
            s.add(
                Worker(
                    contractor_id=w.contractor_id,
                    client_id=int(client_id),
                    name=w.name,
                    email=w.email,
                    invite_token=w.invite_token,
                    is_active=w.is_active,
                    joined_at=w.joined_at,
                    tracking_mode=w.tracking_mode,
                    created_at=now,
                )
            )
            known.add(w.contractor_id)
            tokens.add(w.invite_token)
        s.flush()

        imported = 0
        entry_ids: set[str] = set()
        proof_ids: set[str] = set()
        for e in doc.time_entries:
            if e.worker_id not in known:
                warnings.append(f"Entry {e.id} references unknown worker: {e.worker_id}")
                continue
            if e.id in entry_ids or _taken(s, TimeEntry.id, e.id):
                warnings.append(f"Entry {e.id} skipped: id already in use")
                continue

            entry = TimeEntry(
                id=e.id,
                client_id=int(client_id),
                worker_id=e.worker_id,
                date=e.date,
                start_time=e.start_time,
                end_time=e.end_time,
                manual_hours=e.manual_hours,
                description=e.description,
                status=e.status,
                client_notes=e.client_notes,
                created_at=now,
            )
            for p in e.proof_of_work:
                if p.id in proof_ids or _taken(s, ProofOfWork.id, p.id):
                    warnings.append(f"Proof {p.id} on entry {e.id} skipped: id already in use")
                    continue
                entry.proof_of_work.append(
                    ProofOfWork(
                        id=p.id,
                        position=len(entry.proof_of_work),
                        type=p.type,
                        timestamp=p.timestamp,
                        content=p.content,
                        file_name=p.file_name,
                        file_size=p.file_size,
                        description=p.description,
                    )
                )
                proof_ids.add(p.id)
            s.add(entry)
            entry_ids.add(e.id)
            imported += 1
        s.flush()

    logger.info(
        "Snapshot imported",
        extra={"client_id": int(client_id), "workers": len(known), "entries": imported, "skipped": len(warnings)},
    )
    return {"workers": len(known), "time_entries": imported, "warnings": warnings}
