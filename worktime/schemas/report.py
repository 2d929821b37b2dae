import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class WorkerReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    worker_id: str
    worker_name: str
    worker_email: str
    approved_hours: float
    pending_hours: float
    rejected_hours: float
    total_hours: float
    entries_count: int
    proof_count: int
    last_activity: Optional[dt.date]
    status: str


class ReportSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_workers: int
    total_hours: float
    total_approved: float
    total_pending: float
    total_rejected: float
    average_hours_per_worker: float
    most_active_worker: str


class DashboardReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period_start: dt.date
    period_end: dt.date
    workers: list[WorkerReportResponse]
    summary: ReportSummaryResponse


class FullReportSummaryResponse(ReportSummaryResponse):
    total_entries: int
    approval_rate: float
    period_start: dt.date
    period_end: dt.date


class WorkerReportDetailResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    report: WorkerReportResponse
    average_hours_per_day: float


class ChartDataPointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    value: float


class ChartDataResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    hours_per_worker: list[ChartDataPointResponse]
    status_distribution: list[ChartDataPointResponse]
    daily_hours: list[ChartDataPointResponse]
    weekly_hours: list[ChartDataPointResponse]


class FullReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    summary: FullReportSummaryResponse
    worker_reports: list[WorkerReportDetailResponse]
    chart_data: ChartDataResponse
    export_filename: str
    export_headers: list[str]
    export_rows: list[list[Any]]
    warnings: list[str]
