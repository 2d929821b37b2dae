import logging
import secrets
import time
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from worktime.core.errors import WorkerNotFound
from worktime.database import session_scope
from worktime.models.worker import TRACKING_MODES, Worker

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_invite_token() -> str:
    # e.g. "LKJ8H9X2-A1B2C3D4"
    timestamp = _base36(int(time.time() * 1000))
    random = uuid4().hex[:8]
    return f"{timestamp}-{random}".upper()


def generate_contractor_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"temp_{int(time.time() * 1000)}_{suffix}"


def _validate_tracking_mode(tracking_mode: str) -> str:
    mode = str(tracking_mode).lower()
    if mode not in TRACKING_MODES:
        raise ValueError(f"Invalid tracking mode: {tracking_mode}")
    return mode


def _unique_invite_token(db: Session) -> str:
    while True:
        token = generate_invite_token()
        if db.query(Worker).filter(Worker.invite_token == token).first() is None:
            return token


def create_worker(
    client_id: int,
    name: str,
    email: str = "",
    *,
    contractor_id: Optional[str] = None,
    tracking_mode: str = "clock",
    db: Optional[Session] = None,
) -> Worker:
    if not name or not name.strip():
        raise ValueError("Worker name is required")

    mode = _validate_tracking_mode(tracking_mode)
    contractor_id = (contractor_id or "").strip() or generate_contractor_id()

    with session_scope(db) as s:
        if find_worker(client_id, contractor_id, db=s) is not None:
            raise ValueError(f"Worker already exists: {contractor_id}")

        worker = Worker(
            contractor_id=contractor_id,
            client_id=int(client_id),
            name=name.strip(),
            email=(email or "").strip(),
            invite_token=_unique_invite_token(s),
            is_active=False,
            tracking_mode=mode,
            created_at=datetime.utcnow(),
        )
        s.add(worker)
        s.flush()

        logger.info(
            "Worker created",
            extra={"client_id": int(client_id), "contractor_id": contractor_id},
        )
        return worker


def list_workers(client_id: int, *, db: Session) -> list[Worker]:
    return (
        db.query(Worker)
        .filter(Worker.client_id == int(client_id))
        .order_by(Worker.created_at.asc(), Worker.contractor_id.asc())
        .all()
    )


def find_worker(client_id: int, contractor_id: str, *, db: Session) -> Optional[Worker]:
    return (
        db.query(Worker)
        .filter(
            Worker.client_id == int(client_id),
            Worker.contractor_id == str(contractor_id),
        )
        .first()
    )


def get_worker(client_id: int, contractor_id: str, *, db: Session) -> Worker:
    worker = find_worker(client_id, contractor_id, db=db)
    if worker is None:
        raise WorkerNotFound(f"Worker not found: {contractor_id}")
    return worker


def get_worker_by_token(invite_token: str, *, db: Session) -> Worker:
    worker = db.query(Worker).filter(Worker.invite_token == str(invite_token)).first()
    if worker is None:
        raise WorkerNotFound("Invalid invite link")
    return worker


def activate_worker(worker: Worker, now: Optional[datetime] = None) -> bool:
    """First visit of the invite link; later visits change nothing."""
    if worker.is_active:
        return False

    worker.is_active = True
    worker.joined_at = now or datetime.utcnow()
    logger.info("Worker joined", extra={"contractor_id": worker.contractor_id})
    return True


def open_invite(invite_token: str, *, now: Optional[datetime] = None, db: Optional[Session] = None) -> Worker:
    with session_scope(db) as s:
        worker = get_worker_by_token(invite_token, db=s)
        activate_worker(worker, now)
        s.flush()
        return worker


def update_worker(
    client_id: int,
    contractor_id: str,
    *,
    name: Optional[str] = None,
    email: Optional[str] = None,
    tracking_mode: Optional[str] = None,
    db: Optional[Session] = None,
) -> Worker:
    with session_scope(db) as s:
        worker = get_worker(client_id, contractor_id, db=s)

        if name is not None:
            if not name.strip():
                raise ValueError("Worker name is required")
            worker.name = name.strip()
        if email is not None:
            worker.email = email.strip()
        if tracking_mode is not None:
            worker.tracking_mode = _validate_tracking_mode(tracking_mode)

        s.flush()
        return worker


def delete_worker(client_id: int, contractor_id: str, *, db: Optional[Session] = None) -> int:
    """Delete a worker and every time entry they own. Returns the number of entries removed."""
    with session_scope(db) as s:
        worker = get_worker(client_id, contractor_id, db=s)
        removed = len(worker.entries)

        s.delete(worker)
        s.flush()

        logger.info(
            "Worker deleted",
            extra={"client_id": int(client_id), "contractor_id": contractor_id, "entries_removed": removed},
        )
        return removed
