import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProofCreate(BaseModel):
    type: Literal["screenshot", "file", "note"]
    content: str = Field(min_length=1)
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None


class ProofResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    timestamp: dt.datetime
    content: str
    file_name: Optional[str]
    file_size: Optional[int]
    description: Optional[str]


class EditRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    timestamp: dt.datetime
    field: str
    old_value: Optional[str]
    new_value: Optional[str]
    reason: Optional[str]


class TimeEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: int
    worker_id: str
    date: dt.date
    start_time: Optional[dt.time]
    end_time: Optional[dt.time]
    manual_hours: Optional[float]
    hours: float = 0.0
    description: str
    status: str
    client_notes: Optional[str]
    last_modified: Optional[dt.datetime]
    proof_of_work: list[ProofResponse] = []


class ClockInRequest(BaseModel):
    at: Optional[dt.datetime] = Field(
        default=None,
        description="If omitted, server uses current UTC time.",
    )


class ClockOutRequest(BaseModel):
    at: Optional[dt.datetime] = Field(
        default=None,
        description="If omitted, server uses current UTC time.",
    )
    description: Optional[str] = None


class ManualEntryRequest(BaseModel):
    date: dt.date
    hours: float
    description: str
    proofs: list[ProofCreate] = []


class EntryEditRequest(BaseModel):
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    manual_hours: Optional[float] = None
    description: Optional[str] = None
    reason: Optional[str] = None


class AdjustmentRequest(BaseModel):
    start_time: dt.time
    end_time: dt.time
    reason: str


class TodaySummaryResponse(BaseModel):
    date: dt.date
    total_hours: float
    clocked_in: bool
    entries: list[TimeEntryResponse]
    proof_of_work: list[ProofResponse]


class EditHistoryResponse(BaseModel):
    entry_id: str
    summary: str
    edits: list[EditRecordResponse]


class RejectRequest(BaseModel):
    notes: Optional[str] = None


class BulkApproveRequest(BaseModel):
    entry_ids: list[str]


class BulkRejectRequest(BaseModel):
    entry_ids: list[str]
    notes: Optional[str] = None


class BulkResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    updated: list[str]
    warnings: list[str]
