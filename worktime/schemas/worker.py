from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class WorkerCreate(BaseModel):
    name: str
    email: str = ""
    contractor_id: Optional[str] = None
    tracking_mode: Literal["clock", "timesheet"] = "clock"


class WorkerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    tracking_mode: Optional[Literal["clock", "timesheet"]] = None


class WorkerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    contractor_id: str
    client_id: int
    name: str
    email: str
    invite_token: str
    is_active: bool
    joined_at: Optional[datetime]
    tracking_mode: str
    created_at: datetime


class WorkerProfile(BaseModel):
    """What a worker sees about themselves on their tracking page."""

    model_config = ConfigDict(from_attributes=True)

    contractor_id: str
    name: str
    email: str
    is_active: bool
    joined_at: Optional[datetime]
    tracking_mode: str


class RosterImportResponse(BaseModel):
    created: list[WorkerResponse]
    warnings: list[str]
