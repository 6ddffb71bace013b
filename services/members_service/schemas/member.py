import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from services.attendance_service.models.enums import AttendanceStatus
from services.members_service.models.enums import Gender, MembershipStatus
from services.sessions_service.models.enums import SessionType


class MemberBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=32)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    cell_id: Optional[uuid.UUID] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class MemberCreate(MemberBase):
    membership_status: MembershipStatus = MembershipStatus.ACTIVE
    join_date: Optional[date] = None


class MemberUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=32)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    cell_id: Optional[uuid.UUID] = None
    membership_status: Optional[MembershipStatus] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class CellSummary(BaseModel):
    id: uuid.UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class MemberResponse(BaseModel):
    id: uuid.UUID
    membership_id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    membership_status: MembershipStatus
    join_date: date
    cell_id: Optional[uuid.UUID] = None
    cell: Optional[CellSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MemberListItem(MemberResponse):
    attendance_count: int = 0


class MemberAttendanceItem(BaseModel):
    """Recent attendance shown on the member detail view."""

    id: uuid.UUID
    session_id: uuid.UUID
    session_name: str
    session_type: SessionType
    session_start_time: datetime
    status: AttendanceStatus
    checked_in_at: Optional[datetime] = None


class MemberDetail(MemberResponse):
    recent_attendance: List[MemberAttendanceItem] = []


class MemberBrief(BaseModel):
    id: uuid.UUID
    membership_id: str
    first_name: str
    last_name: str

    model_config = ConfigDict(from_attributes=True)
