"""Attendance record queries and staff corrections."""

import uuid
from collections import Counter
from typing import Iterable, List, Optional, Sequence, Tuple

from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from libs.db.query import PageRequest, SortSpec, apply_filters
from services.attendance_service.filters import (
    ATTENDANCE_SORT_COLUMNS,
    DEFAULT_ATTENDANCE_SORT,
    AttendanceFilter,
)
from services.attendance_service.models import AttendanceRecord, AttendanceStatus
from services.members_service.models import Member
from services.sessions_service.models import Session
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

AttendanceRow = Tuple[AttendanceRecord, Member, Session]


def summarize_statuses(statuses: Iterable[AttendanceStatus]) -> dict:
    """
    Count records by status. The rate counts PRESENT and LATE as attended.
    """
    counts = Counter(statuses)
    total = sum(counts.values())
    attended = counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE]
    return {
        "total_attendance": total,
        "total_present": counts[AttendanceStatus.PRESENT],
        "total_absent": counts[AttendanceStatus.ABSENT],
        "total_late": counts[AttendanceStatus.LATE],
        "total_excused": counts[AttendanceStatus.EXCUSED],
        "attendance_rate": round(attended / total * 100, 2) if total else 0.0,
    }


def _joined_query():
    return (
        select(AttendanceRecord, Member, Session)
        .join(Member, Member.id == AttendanceRecord.member_id)
        .join(Session, Session.id == AttendanceRecord.session_id)
    )


async def get_record(db: AsyncSession, attendance_id: uuid.UUID) -> AttendanceRecord:
    record = await db.get(AttendanceRecord, attendance_id)
    if not record:
        raise NotFoundError("Attendance record not found")
    return record


async def list_attendance(
    db: AsyncSession,
    *,
    filters: Sequence[AttendanceFilter] = (),
    sort: SortSpec = DEFAULT_ATTENDANCE_SORT,
    page: PageRequest = PageRequest(),
) -> Tuple[List[AttendanceRow], int]:
    total = await db.scalar(
        apply_filters(select(func.count()).select_from(AttendanceRecord), filters)
    )
    query = _joined_query().order_by(
        sort.resolve(ATTENDANCE_SORT_COLUMNS), AttendanceRecord.id
    )
    result = await db.execute(page.apply(apply_filters(query, filters)))
    return [tuple(row) for row in result.all()], total or 0


async def get_session_attendance(
    db: AsyncSession, session_id: uuid.UUID
) -> Tuple[Session, List[AttendanceRow], dict]:
    session = await db.get(Session, session_id)
    if not session:
        raise NotFoundError("Session not found")

    result = await db.execute(
        _joined_query()
        .where(AttendanceRecord.session_id == session_id)
        .order_by(AttendanceRecord.checked_in_at.desc(), Member.first_name)
    )
    rows = [tuple(row) for row in result.all()]
    return session, rows, summarize_statuses(record.status for record, _, _ in rows)


async def update_attendance(
    db: AsyncSession,
    *,
    attendance_id: uuid.UUID,
    status: Optional[AttendanceStatus] = None,
    notes: Optional[str] = None,
) -> AttendanceRecord:
    record = await get_record(db, attendance_id)
    if status is not None:
        record.status = status
        if status == AttendanceStatus.PRESENT and record.checked_in_at is None:
            record.checked_in_at = utc_now()
    if notes is not None:
        record.notes = notes
    await db.commit()
    logger.info("Updated attendance %s", attendance_id)
    return record


async def delete_attendance(db: AsyncSession, *, attendance_id: uuid.UUID) -> None:
    record = await get_record(db, attendance_id)
    await db.delete(record)
    await db.commit()
    logger.info("Deleted attendance %s", attendance_id)
