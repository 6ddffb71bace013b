"""Attendance Service schemas package."""

from services.attendance_service.schemas.main import (  # noqa: F401
    ActiveTokenResponse,
    AttendanceDetail,
    AttendanceResponse,
    AttendanceStatistics,
    AttendanceUpdate,
    ManualAttendanceCreate,
    QRCodeBatchItem,
    QRCodeBatchRequest,
    QRCodeBatchResponse,
    QRCodeBatchSummary,
    QRCodeResponse,
    ScanRequest,
    SessionAttendanceResponse,
    SessionBrief,
    TokenStats,
    TokenValidateRequest,
    TokenValidateResponse,
)

__all__ = [
    "ActiveTokenResponse",
    "AttendanceDetail",
    "AttendanceResponse",
    "AttendanceStatistics",
    "AttendanceUpdate",
    "ManualAttendanceCreate",
    "QRCodeBatchItem",
    "QRCodeBatchRequest",
    "QRCodeBatchResponse",
    "QRCodeBatchSummary",
    "QRCodeResponse",
    "ScanRequest",
    "SessionAttendanceResponse",
    "SessionBrief",
    "TokenStats",
    "TokenValidateRequest",
    "TokenValidateResponse",
]
