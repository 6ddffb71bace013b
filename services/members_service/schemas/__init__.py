"""Members Service schemas package."""

from services.members_service.schemas.cell import (  # noqa: F401
    CellAssignment,
    CellCreate,
    CellDetail,
    CellListItem,
    CellResponse,
    CellUpdate,
)
from services.members_service.schemas.member import (  # noqa: F401
    CellSummary,
    MemberAttendanceItem,
    MemberBrief,
    MemberCreate,
    MemberDetail,
    MemberListItem,
    MemberResponse,
    MemberUpdate,
)

__all__ = [
    "CellAssignment",
    "CellCreate",
    "CellDetail",
    "CellListItem",
    "CellResponse",
    "CellSummary",
    "CellUpdate",
    "MemberAttendanceItem",
    "MemberBrief",
    "MemberCreate",
    "MemberDetail",
    "MemberListItem",
    "MemberResponse",
    "MemberUpdate",
]
