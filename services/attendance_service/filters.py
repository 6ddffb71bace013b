"""Typed filters for attendance listings."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional, Union

from libs.db.query import SortOrder, SortSpec
from services.attendance_service.models import AttendanceRecord, AttendanceStatus
from sqlalchemy.sql.elements import ColumnElement


@dataclass(frozen=True)
class SessionIdFilter:
    session_id: uuid.UUID
    kind: Literal["session"] = field(default="session", init=False)

    def clause(self) -> ColumnElement[bool]:
        return AttendanceRecord.session_id == self.session_id


@dataclass(frozen=True)
class MemberIdFilter:
    member_id: uuid.UUID
    kind: Literal["member"] = field(default="member", init=False)

    def clause(self) -> ColumnElement[bool]:
        return AttendanceRecord.member_id == self.member_id


@dataclass(frozen=True)
class StatusFilter:
    status: AttendanceStatus
    kind: Literal["status"] = field(default="status", init=False)

    def clause(self) -> ColumnElement[bool]:
        return AttendanceRecord.status == self.status


@dataclass(frozen=True)
class RecordedBetweenFilter:
    """Window on ``created_at``; either bound may be open."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    kind: Literal["recorded_between"] = field(default="recorded_between", init=False)

    def clause(self) -> ColumnElement[bool]:
        column = AttendanceRecord.created_at
        if self.start is not None and self.end is not None:
            return column.between(self.start, self.end)
        if self.start is not None:
            return column >= self.start
        return column <= self.end


AttendanceFilter = Union[SessionIdFilter, MemberIdFilter, StatusFilter, RecordedBetweenFilter]

ATTENDANCE_SORT_COLUMNS = {
    "checked_in_at": AttendanceRecord.checked_in_at,
    "created_at": AttendanceRecord.created_at,
    "status": AttendanceRecord.status,
}

DEFAULT_ATTENDANCE_SORT = SortSpec("checked_in_at", SortOrder.DESC)


def build_attendance_filters(
    session_id: Optional[uuid.UUID] = None,
    member_id: Optional[uuid.UUID] = None,
    status: Optional[AttendanceStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> List[AttendanceFilter]:
    filters: List[AttendanceFilter] = []
    if session_id is not None:
        filters.append(SessionIdFilter(session_id))
    if member_id is not None:
        filters.append(MemberIdFilter(member_id))
    if status is not None:
        filters.append(StatusFilter(status))
    if start_date is not None or end_date is not None:
        filters.append(RecordedBetweenFilter(start_date, end_date))
    return filters
