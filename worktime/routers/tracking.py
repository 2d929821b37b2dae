from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from worktime.core.errors import WorkerNotFound, http_status_for
from worktime.database import SessionLocal
from worktime.models.worker import Worker
from worktime.routers.time_entries import entry_response, history_response
from worktime.schemas.time_entry import (
    AdjustmentRequest,
    ClockInRequest,
    ClockOutRequest,
    EditHistoryResponse,
    EntryEditRequest,
    ManualEntryRequest,
    ProofCreate,
    ProofResponse,
    TimeEntryResponse,
    TodaySummaryResponse,
)
from worktime.schemas.worker import WorkerProfile
from worktime.services import time_entry_service, worker_service

# Worker-facing routes. The invite token in the path is the worker's credential.
router = APIRouter(
    prefix="/track/{invite_token}",
    tags=["Tracking"],
)


def _naive_utc(at: Optional[datetime]) -> Optional[datetime]:
    if at is None or at.tzinfo is None:
        return at
    return at.astimezone(timezone.utc).replace(tzinfo=None)


def _proof_input(p: ProofCreate) -> time_entry_service.ProofInput:
    return time_entry_service.ProofInput(
        type=p.type,
        content=p.content,
        file_name=p.file_name,
        file_size=p.file_size,
        description=p.description,
    )


def _worker(db: Session, invite_token: str) -> Worker:
    try:
        return worker_service.get_worker_by_token(invite_token, db=db)
    except WorkerNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("", response_model=WorkerProfile)
def open_invite(invite_token: str):
    db = SessionLocal()
    try:
        worker = worker_service.open_invite(invite_token, db=db)
        db.commit()
        return worker
    except WorkerNotFound as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/today", response_model=TodaySummaryResponse)
def today(invite_token: str, day: Optional[date] = None):
    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        summary = time_entry_service.today_summary(worker, day, db=db)
        return TodaySummaryResponse(
            date=summary["date"],
            total_hours=summary["total_hours"],
            clocked_in=summary["clocked_in"],
            entries=[entry_response(e) for e in summary["entries"]],
            proof_of_work=[ProofResponse.model_validate(p) for p in summary["proof_of_work"]],
        )
    finally:
        db.close()


@router.post("/clock_in", response_model=TimeEntryResponse)
def clock_in(invite_token: str, payload: Optional[ClockInRequest] = None):
    at = _naive_utc(payload.at if payload else None)

    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        entry = time_entry_service.clock_in(worker, at, db=db)
        db.commit()
        return entry_response(entry)
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except IntegrityError as exc:
        # concurrent clock-in lost the race on the open-session index
        db.rollback()
        raise HTTPException(status_code=409, detail="Active clock session already exists for worker") from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/clock_out", response_model=TimeEntryResponse)
def clock_out(invite_token: str, payload: Optional[ClockOutRequest] = None):
    at = _naive_utc(payload.at if payload else None)
    description = payload.description if payload else None

    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        entry = time_entry_service.clock_out(worker, at, description, db=db)
        db.commit()
        return entry_response(entry)
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/entries", response_model=list[TimeEntryResponse])
def list_entries(
    invite_token: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
):
    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        rows = time_entry_service.list_worker_entries(worker, db=db, date_from=date_from, date_to=date_to)
        return [entry_response(r) for r in rows]
    finally:
        db.close()


@router.post("/entries", response_model=TimeEntryResponse)
def create_manual_entry(invite_token: str, payload: ManualEntryRequest):
    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        entry = time_entry_service.submit_manual_entry(
            worker,
            entry_date=payload.date,
            hours=payload.hours,
            description=payload.description,
            proofs=[_proof_input(p) for p in payload.proofs],
            db=db,
        )
        db.commit()
        return entry_response(entry)
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.patch("/entries/{entry_id}", response_model=TimeEntryResponse)
def edit_entry(invite_token: str, entry_id: str, payload: EntryEditRequest):
    changes = payload.model_dump(exclude_unset=True)
    reason = changes.pop("reason", None)

    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        entry = time_entry_service.edit_entry(worker, entry_id, changes, reason, db=db)
        db.commit()
        return entry_response(entry)
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/entries/{entry_id}/submit", response_model=TimeEntryResponse)
def submit_entry(invite_token: str, entry_id: str):
    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        entry = time_entry_service.submit_entry(worker, entry_id, db=db)
        db.commit()
        return entry_response(entry)
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc, conflict=True), detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/entries/{entry_id}/adjustment", response_model=TimeEntryResponse)
def request_adjustment(invite_token: str, entry_id: str, payload: AdjustmentRequest):
    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        entry = time_entry_service.request_adjustment(
            worker,
            entry_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            reason=payload.reason,
            db=db,
        )
        db.commit()
        return entry_response(entry)
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/entries/{entry_id}/history", response_model=EditHistoryResponse)
def entry_history(invite_token: str, entry_id: str):
    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        entry = time_entry_service.get_worker_entry(worker, entry_id, db=db)
        return history_response(entry)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    finally:
        db.close()


@router.post("/entries/{entry_id}/proofs", response_model=ProofResponse)
def add_proof(invite_token: str, entry_id: str, payload: ProofCreate):
    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        proof = time_entry_service.add_proof(worker, entry_id, _proof_input(payload), db=db)
        db.commit()
        return ProofResponse.model_validate(proof)
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.delete("/proofs/{proof_id}")
def remove_proof(invite_token: str, proof_id: str):
    db = SessionLocal()
    try:
        worker = _worker(db, invite_token)
        time_entry_service.remove_proof(worker, proof_id, db=db)
        db.commit()
        return {"deleted": proof_id}
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
