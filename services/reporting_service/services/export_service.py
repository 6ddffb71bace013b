"""Dataset builders for the export endpoints."""

import uuid
from datetime import date, datetime
from typing import Optional

from libs.common.datetime_utils import end_of_day, ensure_utc, start_of_day, utc_now
from libs.common.errors import BadRequestError
from services.attendance_service.models import AttendanceRecord
from services.members_service.models import Cell, Member, MembershipStatus
from services.reporting_service.exporters import ExportFormat, ExportSection, ExportTable
from services.reporting_service.services.dashboard_service import (
    ATTENDED,
    percentage,
    sessions_by_type,
    top_attendees,
)
from services.sessions_service.models import Session
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

ATTENDANCE_COLUMNS = [
    ("membership_id", "Membership ID"),
    ("member_name", "Member"),
    ("cell_name", "Cell"),
    ("session_name", "Session"),
    ("session_type", "Session Type"),
    ("session_date", "Session Date"),
    ("status", "Status"),
    ("checked_in_at", "Checked In At"),
    ("is_manual_entry", "Manual Entry"),
]

MEMBER_COLUMNS = [
    ("membership_id", "Membership ID"),
    ("first_name", "First Name"),
    ("last_name", "Last Name"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("gender", "Gender"),
    ("membership_status", "Status"),
    ("cell_name", "Cell"),
    ("join_date", "Join Date"),
]

SESSION_COLUMNS = [
    ("name", "Session"),
    ("session_type", "Type"),
    ("start_time", "Start"),
    ("end_time", "End"),
    ("location", "Location"),
    ("capacity", "Capacity"),
    ("status", "Status"),
    ("attendance_count", "Attendance"),
]

SCAN_LOG_COLUMNS = [
    ("scanned_at", "scanned_at"),
    ("member_name", "member_name"),
    ("cell_name", "cell_name"),
    ("team", "team"),
    ("leader_name", "leader_name"),
    ("session_name", "session_name"),
]

SCAN_LOG_FORMATS = (ExportFormat.CSV, ExportFormat.EXCEL, ExportFormat.PDF)


def parse_export_range(raw_from: Optional[str], raw_to: Optional[str]) -> tuple[date, date]:
    """Parse ``YYYY-MM-DD`` bounds. Both are required and must be ordered."""
    if not raw_from or not raw_to:
        raise BadRequestError("Both from and to dates are required")
    try:
        date_from = date.fromisoformat(raw_from)
        date_to = date.fromisoformat(raw_to)
    except ValueError:
        raise BadRequestError("Invalid date format. Use YYYY-MM-DD")
    if date_from > date_to:
        raise BadRequestError("From date cannot be after to date")
    return date_from, date_to


def _require_rows(table: ExportTable) -> ExportTable:
    if not table.rows:
        raise BadRequestError("No data to export")
    return table


async def attendance_table(
    db: AsyncSession,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    session_id: Optional[uuid.UUID] = None,
) -> ExportTable:
    query = (
        select(AttendanceRecord, Member, Session, Cell.name)
        .join(Member, Member.id == AttendanceRecord.member_id)
        .join(Session, Session.id == AttendanceRecord.session_id)
        .outerjoin(Cell, Cell.id == Member.cell_id)
        .order_by(Session.start_time.desc(), Member.last_name)
    )
    if start is not None:
        query = query.where(AttendanceRecord.created_at >= start)
    if end is not None:
        query = query.where(AttendanceRecord.created_at <= end)
    if session_id is not None:
        query = query.where(AttendanceRecord.session_id == session_id)

    rows = [
        {
            "membership_id": member.membership_id,
            "member_name": member.full_name,
            "cell_name": cell_name,
            "session_name": session.name,
            "session_type": session.session_type,
            "session_date": session.start_time.date(),
            "status": record.status,
            "checked_in_at": record.checked_in_at,
            "is_manual_entry": "Yes" if record.is_manual_entry else "No",
        }
        for record, member, session, cell_name in (await db.execute(query)).all()
    ]
    return _require_rows(ExportTable("Attendance Report", ATTENDANCE_COLUMNS, rows))


async def members_table(
    db: AsyncSession, *, status: Optional[MembershipStatus] = None
) -> ExportTable:
    query = (
        select(Member, Cell.name)
        .outerjoin(Cell, Cell.id == Member.cell_id)
        .order_by(Member.last_name, Member.first_name)
    )
    if status is not None:
        query = query.where(Member.membership_status == status)

    rows = [
        {
            "membership_id": member.membership_id,
            "first_name": member.first_name,
            "last_name": member.last_name,
            "email": member.email,
            "phone": member.phone,
            "gender": member.gender,
            "membership_status": member.membership_status,
            "cell_name": cell_name,
            "join_date": member.join_date,
        }
        for member, cell_name in (await db.execute(query)).all()
    ]
    return _require_rows(ExportTable("Members Report", MEMBER_COLUMNS, rows))


async def sessions_table(
    db: AsyncSession,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> ExportTable:
    attendance_count = func.count(AttendanceRecord.id)
    query = (
        select(Session, attendance_count)
        .outerjoin(AttendanceRecord, AttendanceRecord.session_id == Session.id)
        .group_by(Session.id)
        .order_by(Session.start_time.desc())
    )
    if start is not None:
        query = query.where(Session.start_time >= start)
    if end is not None:
        query = query.where(Session.start_time <= end)

    rows = [
        {
            "name": session.name,
            "session_type": session.session_type,
            "start_time": session.start_time,
            "end_time": session.end_time,
            "location": session.location,
            "capacity": session.capacity,
            "status": session.status,
            "attendance_count": count,
        }
        for session, count in (await db.execute(query)).all()
    ]
    return _require_rows(ExportTable("Sessions Report", SESSION_COLUMNS, rows))


async def scan_log_table(
    db: AsyncSession,
    *,
    date_from: date,
    date_to: date,
    fmt: ExportFormat,
    exported_by: str,
) -> ExportTable:
    """
    Check-ins between two days with cell and leader names, headed by export
    metadata. An empty range still produces a file.
    """
    leader = aliased(Member)
    query = (
        select(AttendanceRecord.checked_in_at, Member, Session.name, Cell.name, leader)
        .join(Member, Member.id == AttendanceRecord.member_id)
        .join(Session, Session.id == AttendanceRecord.session_id)
        .outerjoin(Cell, Cell.id == Member.cell_id)
        .outerjoin(leader, leader.id == Cell.leader_id)
        .where(
            AttendanceRecord.checked_in_at.is_not(None),
            AttendanceRecord.checked_in_at.between(
                start_of_day(date_from), end_of_day(date_to)
            ),
        )
        .order_by(AttendanceRecord.checked_in_at.desc())
    )
    rows = [
        {
            "scanned_at": scanned_at,
            "member_name": member.full_name,
            "cell_name": cell_name or "N/A",
            "team": "N/A",
            "leader_name": leader_member.full_name if leader_member else "N/A",
            "session_name": session_name,
        }
        for scanned_at, member, session_name, cell_name, leader_member in (
            await db.execute(query)
        ).all()
    ]
    metadata = [
        ("export_date", utc_now().strftime("%Y-%m-%d %H:%M:%S UTC")),
        ("exported_by", exported_by),
        ("date_range", f"{date_from.isoformat()} to {date_to.isoformat()}"),
        ("total_records", str(len(rows))),
        ("format", fmt.value),
    ]
    return ExportTable("Attendance Export", SCAN_LOG_COLUMNS, rows, metadata=metadata)


async def report_table(
    db: AsyncSession,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> ExportTable:
    """Summary metrics with top attendees and sessions by type."""
    end = ensure_utc(end) or utc_now()
    start = ensure_utc(start)

    def _window(column):
        conditions = [column <= end]
        if start is not None:
            conditions.append(column >= start)
        return conditions

    total_members = await db.scalar(select(func.count(Member.id))) or 0
    active_members = await db.scalar(
        select(func.count(Member.id)).where(
            Member.membership_status == MembershipStatus.ACTIVE
        )
    ) or 0
    session_count = await db.scalar(
        select(func.count(Session.id)).where(*_window(Session.start_time))
    ) or 0
    attendance_count = await db.scalar(
        select(func.count(AttendanceRecord.id)).where(*_window(AttendanceRecord.created_at))
    ) or 0
    attended = await db.scalar(
        select(func.count(AttendanceRecord.id)).where(
            AttendanceRecord.status.in_(ATTENDED), *_window(AttendanceRecord.created_at)
        )
    ) or 0

    summary_rows = [
        {"metric": "Total Members", "value": total_members},
        {"metric": "Active Members", "value": active_members},
        {"metric": "Sessions", "value": session_count},
        {"metric": "Attendance Records", "value": attendance_count},
        {"metric": "Attendance Rate (%)", "value": percentage(attended, attendance_count)},
    ]
    range_label = f"{start.date().isoformat() if start else 'beginning'} to {end.date().isoformat()}"

    return ExportTable(
        "Church Attendance Summary",
        [("metric", "Metric"), ("value", "Value")],
        summary_rows,
        metadata=[("date_range", range_label), ("generated_at", utc_now().isoformat())],
        sections=[
            ExportSection(
                "top_attendees",
                [("membership_id", "Membership ID"), ("name", "Member"), ("attendance_count", "Attended")],
                await top_attendees(db, since=start, until=end),
            ),
            ExportSection(
                "sessions_by_type",
                [("session_type", "Session Type"), ("count", "Sessions")],
                await sessions_by_type(db, *_window(Session.start_time)),
            ),
        ],
    )
