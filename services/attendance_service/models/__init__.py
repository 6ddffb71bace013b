"""Attendance Service models package."""

from services.attendance_service.models.core import AttendanceRecord, CheckInToken
from services.attendance_service.models.enums import AttendanceStatus, TokenPurpose

__all__ = [
    "AttendanceRecord",
    "AttendanceStatus",
    "CheckInToken",
    "TokenPurpose",
]
