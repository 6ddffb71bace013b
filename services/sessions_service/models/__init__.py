"""Sessions Service models package."""

from services.sessions_service.models.core import Session
from services.sessions_service.models.enums import SessionStatus, SessionType

__all__ = [
    "Session",
    "SessionStatus",
    "SessionType",
]
