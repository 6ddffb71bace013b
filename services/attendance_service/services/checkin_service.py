"""Attendance check-in: QR token consumption and manual entry.

Both paths share the rule that a member has at most one attendance record
per session. The database enforces it with ``uq_session_member_attendance``;
the explicit lookup beforehand only gives callers a clean error message.
"""

import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    BadRequestError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    TokenAlreadyUsedError,
)
from libs.common.logging import get_logger
from services.attendance_service.models import (
    AttendanceRecord,
    AttendanceStatus,
    CheckInToken,
)
from services.attendance_service.services.token_service import check_token
from services.members_service.models import Member
from services.sessions_service.models import Session, SessionStatus
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

logger = get_logger(__name__)

DUPLICATE_MESSAGE = "Attendance already recorded for this session"


@dataclass
class CheckInResult:
    record: AttendanceRecord
    member: Member
    session: Session


def parse_scanned_token(raw: Optional[str]) -> Optional[str]:
    """
    Accept either the bare token or the JSON payload read off the QR image.
    """
    if raw is None:
        return None
    value = raw.strip()
    if value.startswith("{"):
        try:
            payload = json.loads(value)
        except ValueError:
            return value
        if isinstance(payload, dict) and isinstance(payload.get("token"), str):
            return payload["token"]
    return value


async def _attendance_exists(
    db: AsyncSession, member_id: uuid.UUID, session_id: uuid.UUID
) -> bool:
    result = await db.execute(
        select(AttendanceRecord.id).where(
            AttendanceRecord.member_id == member_id,
            AttendanceRecord.session_id == session_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def _commit_attendance(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent check-in for the same member and session won the race
        await db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)


async def consume(
    db: AsyncSession,
    *,
    token: Optional[str],
    session_id: Optional[uuid.UUID],
    recorded_by: Optional[str] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    now: Optional[datetime] = None,
) -> CheckInResult:
    """
    Consume a check-in token for a session and record the member as PRESENT.

    Checks run in a fixed order and the first failure is reported:
    token exists, not expired, not used, member active, session exists,
    session ACTIVE, now within the session window, no existing record.

    The token update and the attendance insert commit together. The update
    is conditional on ``used_at IS NULL``, so of two concurrent scans of one
    token exactly one affects a row; the other gets "already used".
    """
    token = parse_scanned_token(token)
    if not token:
        raise BadRequestError("QR code token is required")
    if session_id is None:
        raise BadRequestError("Session ID is required")

    now = now or utc_now()
    check_in, member = await check_token(db, token, now)

    session = await db.get(Session, session_id)
    if session is None:
        raise NotFoundError("Session not found")
    if session.status != SessionStatus.ACTIVE:
        raise InvalidStateError("Session is not active")
    if not session.is_open_at(now):
        raise InvalidStateError("Session is not currently active")
    if await _attendance_exists(db, member.id, session.id):
        raise ConflictError(DUPLICATE_MESSAGE)

    # Rollback expires loaded instances; keep the id for logging
    token_id = check_in.id
    claimed = await db.execute(
        update(CheckInToken)
        .where(
            CheckInToken.id == token_id,
            CheckInToken.used_at.is_(None),
            CheckInToken.expires_at > now,
        )
        .values(used_at=now)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        await db.rollback()
        logger.info("Check-in token %s was consumed concurrently", token_id)
        raise TokenAlreadyUsedError("QR code has already been used")

    record = AttendanceRecord(
        member_id=member.id,
        session_id=session.id,
        status=AttendanceStatus.PRESENT,
        checked_in_at=now,
        is_manual_entry=False,
        recorded_by=recorded_by,
        latitude=latitude,
        longitude=longitude,
    )
    db.add(record)
    await _commit_attendance(db)
    set_committed_value(check_in, "used_at", now)

    logger.info(
        "Member %s checked in to session %s", member.membership_id, session.id
    )
    return CheckInResult(record=record, member=member, session=session)


async def record_manual(
    db: AsyncSession,
    *,
    member_id: Optional[uuid.UUID],
    session_id: Optional[uuid.UUID],
    status: AttendanceStatus = AttendanceStatus.PRESENT,
    notes: Optional[str] = None,
    recorded_by: Optional[str] = None,
) -> CheckInResult:
    """Staff entry for a member without a scanned token."""
    if member_id is None or session_id is None:
        raise BadRequestError("Member ID and Session ID are required")

    member = await db.get(Member, member_id)
    if member is None:
        raise NotFoundError("Member not found")
    session = await db.get(Session, session_id)
    if session is None:
        raise NotFoundError("Session not found")
    if await _attendance_exists(db, member_id, session_id):
        raise ConflictError(DUPLICATE_MESSAGE)

    record = AttendanceRecord(
        member_id=member_id,
        session_id=session_id,
        status=status,
        checked_in_at=utc_now() if status == AttendanceStatus.PRESENT else None,
        notes=notes,
        is_manual_entry=True,
        recorded_by=recorded_by,
    )
    db.add(record)
    await _commit_attendance(db)

    logger.info(
        "Manual attendance %s for member %s in session %s",
        status.value,
        member.membership_id,
        session_id,
    )
    return CheckInResult(record=record, member=member, session=session)
