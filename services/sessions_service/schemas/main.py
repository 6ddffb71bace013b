import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import ensure_utc
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from services.sessions_service.models import SessionStatus, SessionType


class SessionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    session_type: SessionType
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)


class SessionCreate(SessionBase):
    status: SessionStatus = SessionStatus.ACTIVE

    @field_validator("start_time", "end_time")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        # Naive datetimes from clients are taken as UTC
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_window(self) -> "SessionCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SessionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    session_type: Optional[SessionType] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    status: Optional[SessionStatus] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class SessionResponse(SessionBase):
    id: uuid.UUID
    status: SessionStatus
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionListItem(SessionResponse):
    attendance_count: int = 0
