from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SnapshotProof(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    type: Literal["screenshot", "file", "note"]
    timestamp: datetime
    content: str
    file_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("file_name", "fileName"))
    file_size: Optional[int] = Field(default=None, validation_alias=AliasChoices("file_size", "fileSize"))
    description: Optional[str] = None


class SnapshotEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    worker_id: str = Field(validation_alias=AliasChoices("worker_id", "workerId"))
    date: date
    start_time: Optional[time] = Field(default=None, validation_alias=AliasChoices("start_time", "startTime"))
    end_time: Optional[time] = Field(default=None, validation_alias=AliasChoices("end_time", "endTime"))
    manual_hours: Optional[float] = Field(
        default=None, ge=0, validation_alias=AliasChoices("manual_hours", "manualHours")
    )
    description: str = ""
    status: Literal["draft", "submitted", "approved", "rejected"] = "draft"
    client_notes: Optional[str] = Field(default=None, validation_alias=AliasChoices("client_notes", "clientNotes"))
    proof_of_work: list[SnapshotProof] = Field(
        default_factory=list, validation_alias=AliasChoices("proof_of_work", "proofOfWork")
    )


class SnapshotWorker(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    contractor_id: str = Field(validation_alias=AliasChoices("contractor_id", "contractorId"))
    name: str
    email: str = ""
    invite_token: str = Field(validation_alias=AliasChoices("invite_token", "inviteToken"))
    is_active: bool = Field(default=False, validation_alias=AliasChoices("is_active", "isActive"))
    joined_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("joined_at", "joinedAt"))
    tracking_mode: Literal["clock", "timesheet"] = Field(
        default="clock", validation_alias=AliasChoices("tracking_mode", "trackingMode")
    )


class SnapshotDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    workers: list[SnapshotWorker] = Field(default_factory=list)
    time_entries: list[SnapshotEntry] = Field(
        default_factory=list, validation_alias=AliasChoices("time_entries", "timeEntries")
    )
    export_date: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("export_date", "exportDate"))
