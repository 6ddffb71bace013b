"""Enum definitions for sessions service models."""

import enum

from libs.db.types import enum_values  # noqa: F401


class SessionType(str, enum.Enum):
    """Kind of gathering."""

    SUNDAY_SERVICE = "SUNDAY_SERVICE"
    MIDWEEK_SERVICE = "MIDWEEK_SERVICE"
    PRAYER_MEETING = "PRAYER_MEETING"
    BIBLE_STUDY = "BIBLE_STUDY"
    YOUTH_SERVICE = "YOUTH_SERVICE"
    CELL_MEETING = "CELL_MEETING"
    CONFERENCE = "CONFERENCE"
    WORKSHOP = "WORKSHOP"
    SPECIAL_EVENT = "SPECIAL_EVENT"
    OTHER = "OTHER"


class SessionStatus(str, enum.Enum):
    """Session lifecycle status. Only ACTIVE sessions accept check-ins."""

    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
