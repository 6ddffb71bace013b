import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Role(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    PASTOR = "PASTOR"
    LEADER = "LEADER"
    MEMBER = "MEMBER"


STAFF_ROLES = (Role.SUPER_ADMIN, Role.ADMIN, Role.PASTOR, Role.LEADER)
ADMIN_ROLES = (Role.SUPER_ADMIN, Role.ADMIN)


class AuthUser(BaseModel):
    """
    Represents an authenticated caller decoded from a bearer JWT.
    """

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: Role = Role.MEMBER
    # Linked member record, when the account belongs to a church member
    member_id: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles
