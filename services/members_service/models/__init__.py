"""Members Service models package."""

from services.members_service.models.enums import Gender, MembershipStatus  # noqa: F401
from services.members_service.models.member import Cell, Member  # noqa: F401

__all__ = [
    "Cell",
    "Gender",
    "Member",
    "MembershipStatus",
]
