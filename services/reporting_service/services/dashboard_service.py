"""Dashboard aggregates.

Every call recomputes from storage. Per-day buckets are built in Python
from timestamps so the grouping does not depend on database date functions.
"""

import uuid
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from libs.common.datetime_utils import days_ago, ensure_utc, utc_now
from libs.common.errors import BadRequestError, NotFoundError
from libs.common.logging import get_logger
from services.attendance_service.models import AttendanceRecord, AttendanceStatus
from services.attendance_service.services.token_service import token_stats
from services.members_service.models import Cell, Member, MembershipStatus
from services.sessions_service.models import Session, SessionStatus
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

ATTENDED = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)
AGE_GROUPS = ("Under 18", "18-30", "31-50", "Over 50", "Unknown")


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def percentage(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def growth_rate(current: int, previous: int) -> float:
    """Period-over-period growth; a start from zero counts as 100%."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 2)


def age_on(birth: date, today: date) -> int:
    return today.year - birth.year - ((today.month, today.day) < (birth.month, birth.day))


def age_group(birth: Optional[date], today: date) -> str:
    if birth is None:
        return "Unknown"
    age = age_on(birth, today)
    if age < 18:
        return "Under 18"
    if age <= 30:
        return "18-30"
    if age <= 50:
        return "31-50"
    return "Over 50"


def daily_buckets(start: date, end: date) -> List[date]:
    days = (end - start).days
    return [start + timedelta(days=i) for i in range(days + 1)]


def count_by_day(moments: Iterable[datetime], days: List[date]) -> List[dict]:
    counts = Counter(m.date() for m in moments)
    return [{"date": d.isoformat(), "count": counts.get(d, 0)} for d in days]


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def _count(db: AsyncSession, column, *conditions) -> int:
    query = select(func.count(column))
    if conditions:
        query = query.where(and_(*conditions))
    return (await db.scalar(query)) or 0


async def _grouped(db: AsyncSession, column, *conditions) -> Dict:
    query = select(column, func.count()).group_by(column)
    if conditions:
        query = query.where(and_(*conditions))
    return {key: count for key, count in (await db.execute(query)).all()}


async def top_attendees(
    db: AsyncSession, *, since: Optional[datetime] = None, until: Optional[datetime] = None, limit: int = 10
) -> List[dict]:
    conditions = [AttendanceRecord.status.in_(ATTENDED)]
    if since is not None:
        conditions.append(AttendanceRecord.created_at >= since)
    if until is not None:
        conditions.append(AttendanceRecord.created_at <= until)
    attended = func.count(AttendanceRecord.id).label("attendance_count")
    result = await db.execute(
        select(Member.id, Member.membership_id, Member.first_name, Member.last_name, attended)
        .join(AttendanceRecord, AttendanceRecord.member_id == Member.id)
        .where(*conditions)
        .group_by(Member.id, Member.membership_id, Member.first_name, Member.last_name)
        .order_by(attended.desc(), Member.first_name)
        .limit(limit)
    )
    return [
        {
            "member_id": row.id,
            "membership_id": row.membership_id,
            "name": f"{row.first_name} {row.last_name}",
            "attendance_count": row.attendance_count,
        }
        for row in result.all()
    ]


async def sessions_by_type(db: AsyncSession, *conditions) -> List[dict]:
    grouped = await _grouped(db, Session.session_type, *conditions)
    return [
        {"session_type": session_type, "count": count}
        for session_type, count in sorted(grouped.items(), key=lambda kv: -kv[1])
    ]


async def summary(db: AsyncSession, *, period_days: int = 30) -> dict:
    if period_days < 1:
        raise BadRequestError("period must be at least 1 day")

    now = utc_now()
    start = days_ago(period_days, now)
    previous_start = days_ago(period_days * 2, now)

    by_status = await _grouped(db, Member.membership_status)
    total_members = sum(by_status.values())
    active_members = by_status.get(MembershipStatus.ACTIVE, 0)

    total_sessions = await _count(db, Session.id)
    active_sessions = await _count(db, Session.id, Session.status == SessionStatus.ACTIVE)
    attendance_in_period = await _count(
        db, AttendanceRecord.id, AttendanceRecord.created_at >= start
    )

    period_sessions = await _count(
        db, Session.id, Session.start_time >= start, Session.status == SessionStatus.ACTIVE
    )
    attended_in_period = (
        await db.scalar(
            select(func.count(AttendanceRecord.id))
            .join(Session, Session.id == AttendanceRecord.session_id)
            .where(
                Session.start_time >= start,
                Session.status == SessionStatus.ACTIVE,
                AttendanceRecord.status.in_(ATTENDED),
            )
        )
    ) or 0

    new_members = await _count(db, Member.id, Member.created_at >= start)
    previous_new_members = await _count(
        db, Member.id, Member.created_at >= previous_start, Member.created_at < start
    )

    week = daily_buckets((now - timedelta(days=6)).date(), now.date())
    recent_checkins = (
        await db.execute(
            select(AttendanceRecord.created_at).where(
                AttendanceRecord.created_at >= days_ago(7, now)
            )
        )
    ).scalars().all()

    attendance_count = func.count(AttendanceRecord.id).label("attendance_count")
    recent_sessions = (
        await db.execute(
            select(Session, attendance_count)
            .outerjoin(AttendanceRecord, AttendanceRecord.session_id == Session.id)
            .group_by(Session.id)
            .order_by(Session.start_time.desc())
            .limit(5)
        )
    ).all()

    return {
        "overview": {
            "total_members": total_members,
            "active_members": active_members,
            "inactive_members": by_status.get(MembershipStatus.INACTIVE, 0),
            "total_sessions": total_sessions,
            "active_sessions": active_sessions,
            "total_attendance_this_period": attendance_in_period,
            "average_attendance_rate": percentage(
                attended_in_period, period_sessions * active_members
            ),
            "member_growth_rate": growth_rate(new_members, previous_new_members),
            "period_days": period_days,
        },
        "sessions_by_type": await sessions_by_type(db),
        "attendance_by_day": count_by_day(recent_checkins, week),
        "members_by_status": [
            {"status": status, "count": count} for status, count in by_status.items()
        ],
        "top_attendees": await top_attendees(db, since=start),
        "recent_sessions": [
            {
                "id": session.id,
                "name": session.name,
                "session_type": session.session_type,
                "start_time": session.start_time,
                "status": session.status,
                "attendance_count": count,
            }
            for session, count in recent_sessions
        ],
        "qr_stats": await token_stats(db),
    }


async def analytics(
    db: AsyncSession,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> dict:
    end = ensure_utc(end) or utc_now()
    start = ensure_utc(start) or days_ago(30, end)
    if start > end:
        raise BadRequestError("Start date cannot be after end date")
    days = daily_buckets(start.date(), end.date())

    checkins = (
        await db.execute(
            select(AttendanceRecord.created_at, AttendanceRecord.member_id).where(
                AttendanceRecord.created_at.between(start, end)
            )
        )
    ).all()
    per_day: Dict[date, set] = defaultdict(set)
    per_day_count: Counter = Counter()
    for created_at, member_id in checkins:
        per_day[created_at.date()].add(member_id)
        per_day_count[created_at.date()] += 1
    attendance_trends = [
        {
            "date": d.isoformat(),
            "count": per_day_count.get(d, 0),
            "unique_members": len(per_day.get(d, ())),
        }
        for d in days
    ]

    joined = (
        await db.execute(select(Member.created_at).where(Member.created_at.between(start, end)))
    ).scalars().all()

    sessions = (
        await db.execute(
            select(Session.session_type, func.count(func.distinct(Session.id)), func.count(AttendanceRecord.id))
            .outerjoin(AttendanceRecord, AttendanceRecord.session_id == Session.id)
            .where(Session.start_time.between(start, end))
            .group_by(Session.session_type)
        )
    ).all()
    session_analytics = [
        {
            "session_type": session_type,
            "session_count": session_count,
            "total_attendance": total,
            "average_attendance": round(total / session_count, 2) if session_count else 0.0,
        }
        for session_type, session_count, total in sessions
    ]

    member_counts = await _grouped(db, Member.cell_id, Member.cell_id.is_not(None))
    cell_attendance = {
        cell_id: count
        for cell_id, count in (
            await db.execute(
                select(Member.cell_id, func.count(AttendanceRecord.id))
                .join(AttendanceRecord, AttendanceRecord.member_id == Member.id)
                .where(
                    Member.cell_id.is_not(None),
                    AttendanceRecord.created_at.between(start, end),
                )
                .group_by(Member.cell_id)
            )
        ).all()
    }
    cells = (await db.execute(select(Cell).order_by(Cell.name))).scalars().all()
    cell_analytics = [
        {
            "cell_id": cell.id,
            "name": cell.name,
            "member_count": member_counts.get(cell.id, 0),
            "attendance_count": cell_attendance.get(cell.id, 0),
        }
        for cell in cells
    ]

    today = end.date()
    active = (
        await db.execute(
            select(Member.date_of_birth, Member.gender).where(
                Member.membership_status == MembershipStatus.ACTIVE
            )
        )
    ).all()
    ages = Counter(age_group(dob, today) for dob, _ in active)
    genders = Counter(gender.value if gender else "UNKNOWN" for _, gender in active)

    return {
        "date_range": {"start": start, "end": end},
        "attendance_trends": attendance_trends,
        "membership_trends": count_by_day(joined, days),
        "session_analytics": session_analytics,
        "cell_analytics": cell_analytics,
        "demographics": {
            "age_groups": [{"group": g, "count": ages.get(g, 0)} for g in AGE_GROUPS],
            "gender": [{"gender": g, "count": c} for g, c in sorted(genders.items())],
        },
    }


async def member_dashboard(db: AsyncSession, *, member_id: uuid.UUID) -> dict:
    member = await db.get(Member, member_id)
    if not member:
        raise NotFoundError("Member not found")

    now = utc_now()

    async def _rate(days: int) -> tuple[float, int, int]:
        since = days_ago(days, now)
        available = await _count(
            db,
            Session.id,
            Session.start_time >= since,
            Session.start_time <= now,
            Session.status == SessionStatus.ACTIVE,
        )
        attended = await _count(
            db,
            AttendanceRecord.id,
            AttendanceRecord.member_id == member_id,
            AttendanceRecord.status.in_(ATTENDED),
            AttendanceRecord.created_at >= since,
        )
        return percentage(attended, available), available, attended

    rate_30, available_30, attended_30 = await _rate(30)
    rate_90, _, _ = await _rate(90)

    recent = (
        await db.execute(
            select(AttendanceRecord, Session)
            .join(Session, Session.id == AttendanceRecord.session_id)
            .where(AttendanceRecord.member_id == member_id)
            .order_by(AttendanceRecord.created_at.desc())
            .limit(20)
        )
    ).all()

    return {
        "member": {
            "id": member.id,
            "membership_id": member.membership_id,
            "name": member.full_name,
            "membership_status": member.membership_status,
        },
        "total_attendance": await _count(
            db, AttendanceRecord.id, AttendanceRecord.member_id == member_id
        ),
        "attendance_rate_30_days": rate_30,
        "attendance_rate_90_days": rate_90,
        "sessions_available_30_days": available_30,
        "member_attendance_30_days": attended_30,
        "recent_attendance": [
            {
                "id": record.id,
                "session_id": session.id,
                "session_name": session.name,
                "session_type": session.session_type,
                "status": record.status,
                "checked_in_at": record.checked_in_at,
            }
            for record, session in recent
        ],
    }
