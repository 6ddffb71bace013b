"""Typed filters for member listings."""

import uuid
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Union

from libs.db.query import SortOrder, SortSpec
from services.members_service.models import Gender, Member, MembershipStatus
from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement


@dataclass(frozen=True)
class SearchFilter:
    """Case-insensitive substring match over names, email, membership ID and phone."""

    term: str
    kind: Literal["search"] = field(default="search", init=False)

    def clause(self) -> ColumnElement[bool]:
        pattern = f"%{self.term.strip()}%"
        return or_(
            Member.first_name.ilike(pattern),
            Member.last_name.ilike(pattern),
            Member.email.ilike(pattern),
            Member.membership_id.ilike(pattern),
            Member.phone.ilike(pattern),
        )


@dataclass(frozen=True)
class StatusFilter:
    status: MembershipStatus
    kind: Literal["status"] = field(default="status", init=False)

    def clause(self) -> ColumnElement[bool]:
        return Member.membership_status == self.status


@dataclass(frozen=True)
class CellFilter:
    cell_id: uuid.UUID
    kind: Literal["cell"] = field(default="cell", init=False)

    def clause(self) -> ColumnElement[bool]:
        return Member.cell_id == self.cell_id


@dataclass(frozen=True)
class GenderFilter:
    gender: Gender
    kind: Literal["gender"] = field(default="gender", init=False)

    def clause(self) -> ColumnElement[bool]:
        return Member.gender == self.gender


MemberFilter = Union[SearchFilter, StatusFilter, CellFilter, GenderFilter]

MEMBER_SORT_COLUMNS = {
    "first_name": Member.first_name,
    "last_name": Member.last_name,
    "membership_id": Member.membership_id,
    "join_date": Member.join_date,
    "created_at": Member.created_at,
    "email": Member.email,
}

DEFAULT_MEMBER_SORT = SortSpec("first_name", SortOrder.ASC)


def build_member_filters(
    search: Optional[str] = None,
    status: Optional[MembershipStatus] = None,
    cell_id: Optional[uuid.UUID] = None,
    gender: Optional[Gender] = None,
) -> List[MemberFilter]:
    filters: List[MemberFilter] = []
    if search and search.strip():
        filters.append(SearchFilter(search))
    if status is not None:
        filters.append(StatusFilter(status))
    if cell_id is not None:
        filters.append(CellFilter(cell_id))
    if gender is not None:
        filters.append(GenderFilter(gender))
    return filters
