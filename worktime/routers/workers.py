from typing import List, Literal

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile

from worktime.core.errors import http_status_for
from worktime.database import SessionLocal
from worktime.deps.auth import require_auth
from worktime.schemas.worker import RosterImportResponse, WorkerCreate, WorkerResponse, WorkerUpdate
from worktime.services import roster_import, worker_service

router = APIRouter(prefix="/workers", tags=["Workers"])


@router.post("", response_model=WorkerResponse)
def create_worker(
    payload: WorkerCreate,
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        worker = worker_service.create_worker(
            request.state.client_id,
            payload.name,
            payload.email,
            contractor_id=payload.contractor_id,
            tracking_mode=payload.tracking_mode,
            db=db,
        )
        db.commit()
        return worker
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("", response_model=List[WorkerResponse])
def list_workers(
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return worker_service.list_workers(request.state.client_id, db=db)
    finally:
        db.close()


@router.post("/import", response_model=RosterImportResponse)
def import_workers(
    request: Request,
    file: UploadFile = File(...),
    tracking_mode: Literal["clock", "timesheet"] = Query("clock"),
    _auth: tuple[str, int] = Depends(require_auth),
):
    content = file.file.read()

    db = SessionLocal()
    try:
        result = roster_import.import_roster(
            request.state.client_id,
            file.filename or "",
            content,
            tracking_mode=tracking_mode,
            db=db,
        )
        db.commit()
        return {"created": result.created, "warnings": result.warnings}
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/{contractor_id}", response_model=WorkerResponse)
def get_worker(
    contractor_id: str,
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return worker_service.get_worker(request.state.client_id, contractor_id, db=db)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    finally:
        db.close()


@router.patch("/{contractor_id}", response_model=WorkerResponse)
def update_worker(
    contractor_id: str,
    payload: WorkerUpdate,
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        worker = worker_service.update_worker(
            request.state.client_id,
            contractor_id,
            name=payload.name,
            email=payload.email,
            tracking_mode=payload.tracking_mode,
            db=db,
        )
        db.commit()
        return worker
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.delete("/{contractor_id}")
def delete_worker(
    contractor_id: str,
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        removed = worker_service.delete_worker(request.state.client_id, contractor_id, db=db)
        db.commit()
        return {"deleted": contractor_id, "entries_removed": removed}
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
