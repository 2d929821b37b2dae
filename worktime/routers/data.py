from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from worktime.core.authorization import Role, require_role
from worktime.database import SessionLocal
from worktime.deps.auth import require_auth
from worktime.services import snapshot_service

router = APIRouter(prefix="/data", tags=["Data"])


@router.get("/export")
def export_data(
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return snapshot_service.export_snapshot(request.state.client_id, db=db)
    finally:
        db.close()


@router.post("/import")
def import_data(
    request: Request,
    payload: Any = Body(...),
    _role=Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        result = snapshot_service.import_snapshot(request.state.client_id, payload, db=db)
        db.commit()
        return result
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.delete("")
def clear_data(
    request: Request,
    _role=Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        result = snapshot_service.clear_all_data(request.state.client_id, db=db)
        db.commit()
        return result
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
