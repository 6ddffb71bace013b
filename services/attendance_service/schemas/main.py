import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from services.attendance_service.models.enums import AttendanceStatus
from services.members_service.schemas import MemberBrief
from services.sessions_service.models import SessionType

# ---------------------------------------------------------------------------
# QR tokens
# ---------------------------------------------------------------------------


class QRCodeResponse(BaseModel):
    id: uuid.UUID
    token: str
    qr_code_image: str
    member: MemberBrief
    expires_at: datetime
    created_at: datetime


class QRCodeBatchRequest(BaseModel):
    member_ids: List[uuid.UUID] = Field(default_factory=list, alias="memberIds")
    expiration_hours: Optional[int] = Field(None, ge=0, le=24 * 30, alias="expirationHours")

    model_config = ConfigDict(populate_by_name=True)


class QRCodeBatchItem(BaseModel):
    member_id: uuid.UUID
    membership_id: str
    name: str
    token: str
    qr_code_image: str


class QRCodeBatchSummary(BaseModel):
    total_requested: int
    total_generated: int
    expires_at: datetime


class QRCodeBatchResponse(BaseModel):
    qr_codes: List[QRCodeBatchItem]
    summary: QRCodeBatchSummary


class ActiveTokenResponse(BaseModel):
    id: uuid.UUID
    token: str
    expires_at: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenValidateRequest(BaseModel):
    token: Optional[str] = None


class TokenValidateResponse(BaseModel):
    valid: bool = True
    token_id: uuid.UUID
    expires_at: datetime
    member: MemberBrief


class TokenStats(BaseModel):
    total_generated: int
    total_used: int
    total_expired: int
    total_active: int
    usage_rate: float


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------


class ScanRequest(BaseModel):
    """Body posted by the scanner.

    ``token`` is either the bare token or the raw JSON read from the QR image.
    """

    token: Optional[str] = None
    session_id: Optional[uuid.UUID] = Field(None, alias="sessionId")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    model_config = ConfigDict(populate_by_name=True)


class ManualAttendanceCreate(BaseModel):
    member_id: Optional[uuid.UUID] = Field(None, alias="memberId")
    session_id: Optional[uuid.UUID] = Field(None, alias="sessionId")
    status: AttendanceStatus = AttendanceStatus.PRESENT
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class AttendanceUpdate(BaseModel):
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None


class SessionBrief(BaseModel):
    id: uuid.UUID
    name: str
    session_type: SessionType
    start_time: datetime
    end_time: datetime

    model_config = ConfigDict(from_attributes=True)


class AttendanceResponse(BaseModel):
    id: uuid.UUID
    member_id: uuid.UUID
    session_id: uuid.UUID
    status: AttendanceStatus
    checked_in_at: Optional[datetime] = None
    notes: Optional[str] = None
    is_manual_entry: bool
    recorded_by: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AttendanceDetail(AttendanceResponse):
    member: Optional[MemberBrief] = None
    session: Optional[SessionBrief] = None


class AttendanceStatistics(BaseModel):
    total_attendance: int
    total_present: int
    total_absent: int
    total_late: int
    total_excused: int
    attendance_rate: float


class SessionAttendanceResponse(BaseModel):
    session: SessionBrief
    attendance: List[AttendanceDetail]
    statistics: AttendanceStatistics
