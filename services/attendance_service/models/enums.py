"""Enum definitions for attendance service models."""

import enum

from libs.db.types import enum_values  # noqa: F401


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"


class TokenPurpose(str, enum.Enum):
    ATTENDANCE = "ATTENDANCE"
