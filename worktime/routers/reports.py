from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from worktime.database import SessionLocal
from worktime.deps.auth import require_auth
from worktime.schemas.report import DashboardReportResponse, FullReportResponse
from worktime.services import export_service, report_service
from worktime.services.report_aggregator import ReportFilter

router = APIRouter(prefix="/reports", tags=["Reports"])

_MEDIA_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "txt": "text/plain",
}


def _period(period: str, start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    try:
        return report_service.resolve_period(period, custom_start=start, custom_end=end)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _report_filter(
    period: str,
    start: Optional[date],
    end: Optional[date],
    worker_id: Optional[list[str]],
    status: Optional[list[str]],
) -> ReportFilter:
    period_start, period_end = _period(period, start, end)

    return ReportFilter(
        date_start=period_start,
        date_end=period_end,
        worker_ids=frozenset(worker_id or ()),
        statuses=frozenset(status or ()),
    )


@router.get("/dashboard", response_model=DashboardReportResponse)
def dashboard(
    request: Request,
    period: str = "thisWeek",
    start: Optional[date] = None,
    end: Optional[date] = None,
    _auth: tuple[str, int] = Depends(require_auth),
):
    period_start, period_end = _period(period, start, end)

    db = SessionLocal()
    try:
        return report_service.dashboard_report(request.state.client_id, period_start, period_end, db=db)
    finally:
        db.close()


@router.get("/full", response_model=FullReportResponse)
def full(
    request: Request,
    period: str = "custom",
    start: Optional[date] = None,
    end: Optional[date] = None,
    worker_id: Optional[list[str]] = Query(None),
    status: Optional[list[Literal["draft", "submitted", "approved", "rejected"]]] = Query(None),
    _auth: tuple[str, int] = Depends(require_auth),
):
    report_filter = _report_filter(period, start, end, worker_id, status)

    db = SessionLocal()
    try:
        return report_service.full_report(request.state.client_id, report_filter, db=db)
    finally:
        db.close()


@router.get("/weekly", response_model=FullReportResponse)
def weekly(
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return report_service.quick_weekly_report(request.state.client_id, db=db)
    finally:
        db.close()


@router.get("/monthly", response_model=FullReportResponse)
def monthly(
    request: Request,
    _auth: tuple[str, int] = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return report_service.quick_monthly_report(request.state.client_id, db=db)
    finally:
        db.close()


@router.get("/export")
def export(
    request: Request,
    fmt: Literal["csv", "xlsx", "txt"] = Query("csv", alias="format"),
    period: str = "custom",
    start: Optional[date] = None,
    end: Optional[date] = None,
    worker_id: Optional[list[str]] = Query(None),
    status: Optional[list[Literal["draft", "submitted", "approved", "rejected"]]] = Query(None),
    _auth: tuple[str, int] = Depends(require_auth),
):
    report_filter = _report_filter(period, start, end, worker_id, status)

    db = SessionLocal()
    try:
        report = report_service.full_report(request.state.client_id, report_filter, db=db)
    finally:
        db.close()

    if fmt == "xlsx":
        body = export_service.to_xlsx(report)
    elif fmt == "txt":
        body = export_service.to_text(report)
    else:
        body = export_service.to_csv(report.export_headers, report.export_rows)

    return Response(
        content=body,
        media_type=_MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{report.export_filename}.{fmt}"'},
    )
