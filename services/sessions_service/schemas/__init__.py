"""Sessions Service schemas package."""

from services.sessions_service.schemas.main import (  # noqa: F401
    SessionCreate,
    SessionListItem,
    SessionResponse,
    SessionUpdate,
)

__all__ = [
    "SessionCreate",
    "SessionListItem",
    "SessionResponse",
    "SessionUpdate",
]
