from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from worktime.core.errors import http_status_for
from worktime.database import SessionLocal
from worktime.deps.auth import require_auth
from worktime.routers.time_entries import entry_response
from worktime.schemas.time_entry import (
    BulkApproveRequest,
    BulkRejectRequest,
    BulkResultResponse,
    RejectRequest,
    TimeEntryResponse,
)
from worktime.services import approval_service

router = APIRouter(prefix="/approvals", tags=["Approvals"])


@router.get("/pending", response_model=list[TimeEntryResponse])
def list_pending(
    request: Request,
    worker_id: Optional[str] = None,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        rows = approval_service.pending_entries(request.state.client_id, db=db, worker_id=worker_id)
        return [entry_response(r) for r in rows]
    finally:
        db.close()


@router.post("/{entry_id}/approve", response_model=TimeEntryResponse)
def approve(
    entry_id: str,
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        entry = approval_service.approve_entry(request.state.client_id, entry_id, db=db)
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


@router.post("/{entry_id}/reject", response_model=TimeEntryResponse)
def reject(
    entry_id: str,
    request: Request,
    payload: Optional[RejectRequest] = None,
    _auth: tuple[str, int] = Depends(require_auth),
):
    notes = payload.notes if payload else None

    db = SessionLocal()
    try:
        entry = approval_service.reject_entry(request.state.client_id, entry_id, notes, db=db)
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


@router.post("/approve_all", response_model=BulkResultResponse)
def approve_all(
    payload: BulkApproveRequest,
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        result = approval_service.approve_all(request.state.client_id, payload.entry_ids, db=db)
        db.commit()
        return result
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/reject_all", response_model=BulkResultResponse)
def reject_all(
    payload: BulkRejectRequest,
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        result = approval_service.reject_all(request.state.client_id, payload.entry_ids, payload.notes, db=db)
        db.commit()
        return result
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
