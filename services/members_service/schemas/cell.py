import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from services.members_service.schemas.member import MemberBrief


class CellBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    leader_id: Optional[uuid.UUID] = None
    meeting_day: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = None


class CellCreate(CellBase):
    pass


class CellUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    leader_id: Optional[uuid.UUID] = None
    meeting_day: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = None


class CellResponse(CellBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CellListItem(CellResponse):
    member_count: int = 0


class CellDetail(CellResponse):
    leader: Optional[MemberBrief] = None
    members: List[MemberBrief] = []


class CellAssignment(BaseModel):
    member_id: uuid.UUID
