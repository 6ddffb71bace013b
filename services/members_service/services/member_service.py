"""Member business logic.

Membership ID helpers are pure functions; everything else takes an
``AsyncSession`` and raises ``AppError`` subclasses the routers let through.
"""

import re
import uuid
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import ConflictError, NotFoundError
from libs.common.logging import get_logger
from libs.db.query import PageRequest, SortSpec, apply_filters
from services.attendance_service.models import AttendanceRecord
from services.members_service.filters import (
    DEFAULT_MEMBER_SORT,
    MEMBER_SORT_COLUMNS,
    MemberFilter,
)
from services.members_service.models import Cell, Member, MembershipStatus
from services.members_service.schemas import MemberCreate, MemberUpdate
from services.sessions_service.models import Session
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

SEQUENCE_WIDTH = 4
RECENT_ATTENDANCE_LIMIT = 10


# ---------------------------------------------------------------------------
# Membership IDs
# ---------------------------------------------------------------------------


def membership_id_prefix(prefix: str, year: int) -> str:
    return f"{prefix}{year}"


def next_membership_id(last_id: Optional[str], prefix: str, year: int) -> str:
    """
    Return the ID following ``last_id`` within the ``prefix + year`` series.

    ``NECF20260007`` -> ``NECF20260008``; no previous ID starts at ``0001``.
    IDs from another series or with a non-numeric tail restart the sequence.
    """
    series = membership_id_prefix(prefix, year)
    sequence = 1
    if last_id and last_id.startswith(series):
        tail = last_id[len(series):]
        if re.fullmatch(r"\d+", tail):
            sequence = int(tail) + 1
    return f"{series}{sequence:0{SEQUENCE_WIDTH}d}"


async def generate_membership_id(db: AsyncSession, now: Optional[datetime] = None) -> str:
    settings = get_settings()
    year = (now or utc_now()).year
    series = membership_id_prefix(settings.MEMBERSHIP_ID_PREFIX, year)
    result = await db.execute(
        select(Member.membership_id)
        .where(Member.membership_id.like(f"{series}%"))
        # Longer tails are larger sequences: ...10000 follows ...9999
        .order_by(func.length(Member.membership_id).desc(), Member.membership_id.desc())
        .limit(1)
    )
    return next_membership_id(
        result.scalar_one_or_none(), settings.MEMBERSHIP_ID_PREFIX, year
    )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_member(db: AsyncSession, member_id: uuid.UUID) -> Member:
    result = await db.execute(
        select(Member).where(Member.id == member_id).execution_options(populate_existing=True)
    )
    member = result.scalar_one_or_none()
    if not member:
        raise NotFoundError("Member not found")
    return member


async def ensure_cell_exists(db: AsyncSession, cell_id: uuid.UUID) -> Cell:
    cell = await db.get(Cell, cell_id)
    if not cell:
        raise NotFoundError("Cell not found")
    return cell


async def _email_taken(
    db: AsyncSession, email: str, exclude_id: Optional[uuid.UUID] = None
) -> bool:
    query = select(Member.id).where(func.lower(Member.email) == email.lower())
    if exclude_id is not None:
        query = query.where(Member.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def create_member(
    db: AsyncSession,
    *,
    data: MemberCreate,
    created_by: Optional[str] = None,
) -> Member:
    if data.email and await _email_taken(db, data.email):
        raise ConflictError("User already exists with this email")
    if data.cell_id:
        await ensure_cell_exists(db, data.cell_id)

    values = data.model_dump(exclude_none=True)
    member = Member(
        **values,
        membership_id=await generate_membership_id(db),
        created_by=created_by,
    )
    if member.join_date is None:
        member.join_date = utc_now().date()
    db.add(member)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning("Membership ID collision creating member %s", data.email)
        raise ConflictError("Member could not be created, please retry")

    logger.info("Created member %s (%s)", member.membership_id, member.id)
    return await get_member(db, member.id)


async def update_member(
    db: AsyncSession,
    *,
    member_id: uuid.UUID,
    data: MemberUpdate,
) -> Member:
    member = await get_member(db, member_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("email") and await _email_taken(db, changes["email"], exclude_id=member_id):
        raise ConflictError("Email already exists")
    if changes.get("cell_id"):
        await ensure_cell_exists(db, changes["cell_id"])

    for field, value in changes.items():
        setattr(member, field, value)

    await db.commit()
    logger.info("Updated member %s: %s", member_id, sorted(changes))
    return await get_member(db, member_id)


async def deactivate_member(db: AsyncSession, *, member_id: uuid.UUID) -> Member:
    """Soft delete: members are never removed, only flipped to INACTIVE."""
    member = await get_member(db, member_id)
    member.membership_status = MembershipStatus.INACTIVE
    await db.commit()
    logger.info("Deactivated member %s", member_id)
    return member


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_members(
    db: AsyncSession,
    *,
    filters: Sequence[MemberFilter] = (),
    sort: SortSpec = DEFAULT_MEMBER_SORT,
    page: PageRequest = PageRequest(),
) -> Tuple[List[Tuple[Member, int]], int]:
    """Return ``[(member, attendance_count), ...]`` for one page and the total."""
    total = await db.scalar(
        apply_filters(select(func.count()).select_from(Member), filters)
    )

    counts = (
        select(
            AttendanceRecord.member_id.label("member_id"),
            func.count(AttendanceRecord.id).label("attendance_count"),
        )
        .group_by(AttendanceRecord.member_id)
        .subquery()
    )
    query = (
        select(Member, func.coalesce(counts.c.attendance_count, 0))
        .outerjoin(counts, counts.c.member_id == Member.id)
        .order_by(sort.resolve(MEMBER_SORT_COLUMNS), Member.id)
    )
    query = page.apply(apply_filters(query, filters))
    result = await db.execute(query)
    return [(member, count) for member, count in result.all()], total or 0


async def get_recent_attendance(
    db: AsyncSession, member_id: uuid.UUID, limit: int = RECENT_ATTENDANCE_LIMIT
) -> List[dict]:
    result = await db.execute(
        select(AttendanceRecord, Session)
        .join(Session, Session.id == AttendanceRecord.session_id)
        .where(AttendanceRecord.member_id == member_id)
        .order_by(AttendanceRecord.created_at.desc())
        .limit(limit)
    )
    return [
        {
            "id": record.id,
            "session_id": session.id,
            "session_name": session.name,
            "session_type": session.session_type,
            "session_start_time": session.start_time,
            "status": record.status,
            "checked_in_at": record.checked_in_at,
        }
        for record, session in result.all()
    ]
