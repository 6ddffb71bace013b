"""Session scheduling logic."""

import uuid
from typing import List, Optional, Sequence, Tuple

from libs.common.errors import BadRequestError, NotFoundError
from libs.common.logging import get_logger
from libs.db.query import PageRequest, SortSpec, apply_filters
from services.attendance_service.models import AttendanceRecord
from services.sessions_service.filters import (
    DEFAULT_SESSION_SORT,
    SESSION_SORT_COLUMNS,
    SessionFilter,
)
from services.sessions_service.models import Session, SessionStatus
from services.sessions_service.schemas import SessionCreate, SessionUpdate
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_session(db: AsyncSession, session_id: uuid.UUID) -> Session:
    session = await db.get(Session, session_id)
    if not session:
        raise NotFoundError("Session not found")
    return session


async def create_session(
    db: AsyncSession, *, data: SessionCreate, created_by: Optional[str] = None
) -> Session:
    session = Session(**data.model_dump(), created_by=created_by)
    db.add(session)
    await db.commit()
    logger.info("Created session %s (%s)", session.name, session.id)
    return session


async def update_session(
    db: AsyncSession, *, session_id: uuid.UUID, data: SessionUpdate
) -> Session:
    session = await get_session(db, session_id)
    changes = data.model_dump(exclude_unset=True)

    start = changes.get("start_time") or session.start_time
    end = changes.get("end_time") or session.end_time
    if end <= start:
        raise BadRequestError("end_time must be after start_time")

    for field, value in changes.items():
        setattr(session, field, value)
    await db.commit()
    return session


async def close_session(db: AsyncSession, *, session_id: uuid.UUID) -> Session:
    """Stop accepting check-ins for a session."""
    session = await get_session(db, session_id)
    session.status = SessionStatus.CLOSED
    await db.commit()
    logger.info("Closed session %s", session_id)
    return session


async def list_sessions(
    db: AsyncSession,
    *,
    filters: Sequence[SessionFilter] = (),
    sort: SortSpec = DEFAULT_SESSION_SORT,
    page: PageRequest = PageRequest(),
) -> Tuple[List[Tuple[Session, int]], int]:
    total = await db.scalar(
        apply_filters(select(func.count()).select_from(Session), filters)
    )
    counts = (
        select(
            AttendanceRecord.session_id.label("session_id"),
            func.count(AttendanceRecord.id).label("attendance_count"),
        )
        .group_by(AttendanceRecord.session_id)
        .subquery()
    )
    query = (
        select(Session, func.coalesce(counts.c.attendance_count, 0))
        .outerjoin(counts, counts.c.session_id == Session.id)
        .order_by(sort.resolve(SESSION_SORT_COLUMNS), Session.id)
    )
    result = await db.execute(page.apply(apply_filters(query, filters)))
    return [(session, count) for session, count in result.all()], total or 0
