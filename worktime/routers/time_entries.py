from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from worktime.core.errors import NotFoundError
from worktime.database import SessionLocal
from worktime.deps.auth import require_auth
from worktime.models.time_entry import TimeEntry
from worktime.schemas.time_entry import EditHistoryResponse, EditRecordResponse, TimeEntryResponse
from worktime.services import edit_tracking
from worktime.services.report_aggregator import compute_duration_hours
from worktime.services.report_service import entry_record
from worktime.services.time_entry_service import get_client_entry

router = APIRouter(
    prefix="/time_entries",
    tags=["Time Entries"],
)


def entry_response(entry: TimeEntry) -> TimeEntryResponse:
    response = TimeEntryResponse.model_validate(entry)
    response.hours = compute_duration_hours(entry_record(entry))
    return response


def history_response(entry: TimeEntry) -> EditHistoryResponse:
    return EditHistoryResponse(
        entry_id=entry.id,
        summary=edit_tracking.edit_summary(entry),
        edits=[EditRecordResponse.model_validate(e) for e in entry.edit_history],
    )


@router.get("", response_model=list[TimeEntryResponse])
def list_time_entries(
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
    worker_id: Optional[str] = None,
    status: Optional[Literal["draft", "submitted", "approved", "rejected"]] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    db = SessionLocal()
    try:
        q = db.query(TimeEntry).filter(TimeEntry.client_id == int(request.state.client_id))

        if worker_id is not None:
            q = q.filter(TimeEntry.worker_id == str(worker_id))
        if status is not None:
            q = q.filter(TimeEntry.status == str(status))
        if date_from is not None:
            q = q.filter(TimeEntry.date >= date_from)
        if date_to is not None:
            q = q.filter(TimeEntry.date <= date_to)

        rows = (
            q.order_by(TimeEntry.date.desc(), TimeEntry.created_at.desc())
            .offset(int(offset))
            .limit(int(limit))
            .all()
        )
        return [entry_response(r) for r in rows]
    finally:
        db.close()


@router.get("/{entry_id}", response_model=TimeEntryResponse)
def get_time_entry(
    entry_id: str,
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        entry = get_client_entry(request.state.client_id, entry_id, db=db)
        return entry_response(entry)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/{entry_id}/history", response_model=EditHistoryResponse)
def get_time_entry_history(
    entry_id: str,
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        entry = get_client_entry(request.state.client_id, entry_id, db=db)
        return history_response(entry)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    finally:
        db.close()
