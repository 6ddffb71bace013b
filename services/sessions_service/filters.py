"""Typed filters for session listings."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional, Union

from libs.db.query import SortOrder, SortSpec
from services.sessions_service.models import Session, SessionStatus, SessionType
from sqlalchemy.sql.elements import ColumnElement


@dataclass(frozen=True)
class TypeFilter:
    session_type: SessionType
    kind: Literal["type"] = field(default="type", init=False)

    def clause(self) -> ColumnElement[bool]:
        return Session.session_type == self.session_type


@dataclass(frozen=True)
class StatusFilter:
    status: SessionStatus
    kind: Literal["status"] = field(default="status", init=False)

    def clause(self) -> ColumnElement[bool]:
        return Session.status == self.status


@dataclass(frozen=True)
class StartsAfterFilter:
    moment: datetime
    kind: Literal["starts_after"] = field(default="starts_after", init=False)

    def clause(self) -> ColumnElement[bool]:
        return Session.start_time >= self.moment


@dataclass(frozen=True)
class StartsBeforeFilter:
    moment: datetime
    kind: Literal["starts_before"] = field(default="starts_before", init=False)

    def clause(self) -> ColumnElement[bool]:
        return Session.start_time <= self.moment


SessionFilter = Union[TypeFilter, StatusFilter, StartsAfterFilter, StartsBeforeFilter]

SESSION_SORT_COLUMNS = {
    "start_time": Session.start_time,
    "name": Session.name,
    "created_at": Session.created_at,
    "session_type": Session.session_type,
}

DEFAULT_SESSION_SORT = SortSpec("start_time", SortOrder.DESC)


def build_session_filters(
    session_type: Optional[SessionType] = None,
    status: Optional[SessionStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    upcoming_from: Optional[datetime] = None,
) -> List[SessionFilter]:
    filters: List[SessionFilter] = []
    if session_type is not None:
        filters.append(TypeFilter(session_type))
    if status is not None:
        filters.append(StatusFilter(status))
    if start_date is not None:
        filters.append(StartsAfterFilter(start_date))
    if end_date is not None:
        filters.append(StartsBeforeFilter(end_date))
    if upcoming_from is not None:
        filters.append(StartsAfterFilter(upcoming_from))
    return filters
