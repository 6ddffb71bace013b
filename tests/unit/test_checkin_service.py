"""Service-level tests for token consumption and manual attendance."""

import uuid
from datetime import timedelta

import pytest
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    BadRequestError,
    ConflictError,
    InvalidStateError,
    InvalidTokenError,
    NotFoundError,
    TokenAlreadyUsedError,
    TokenExpiredError,
)
from services.attendance_service.models import (
    AttendanceRecord,
    AttendanceStatus,
    CheckInToken,
)
from services.attendance_service.services import checkin_service
from services.members_service.models import MembershipStatus
from services.sessions_service.models import SessionStatus
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tests.factories import (
    AttendanceRecordFactory,
    CheckInTokenFactory,
    MemberFactory,
    SessionFactory,
)


async def _arrange(db_session, *, member=None, session=None, **token_overrides):
    member = member or MemberFactory.create()
    session = session or SessionFactory.create()
    db_session.add_all([member, session])
    await db_session.flush()
    token = CheckInTokenFactory.create(member_id=member.id, **token_overrides)
    db_session.add(token)
    await db_session.commit()
    return member, session, token


async def _record_count(db_session) -> int:
    return await db_session.scalar(select(func.count(AttendanceRecord.id)))


@pytest.mark.asyncio
class TestConsume:
    async def test_records_presence_and_marks_token_used(self, db_session):
        member, session, token = await _arrange(db_session)

        result = await checkin_service.consume(
            db_session,
            token=token.token,
            session_id=session.id,
            recorded_by="leader-1",
            latitude=6.45,
            longitude=3.39,
        )

        assert result.member.id == member.id
        assert result.session.id == session.id
        assert result.record.status == AttendanceStatus.PRESENT
        assert result.record.is_manual_entry is False
        assert result.record.recorded_by == "leader-1"
        assert result.record.latitude == 6.45
        assert token.used_at is not None

        stored = await db_session.scalar(
            select(CheckInToken.used_at).where(CheckInToken.id == token.id)
        )
        assert stored is not None
        assert await _record_count(db_session) == 1

    async def test_accepts_raw_qr_payload(self, db_session):
        member, session, token = await _arrange(db_session)
        raw = f'{{"token":"{token.token}","memberId":"{member.id}"}}'

        result = await checkin_service.consume(db_session, token=raw, session_id=session.id)

        assert result.record.member_id == member.id

    async def test_second_scan_of_same_token_is_rejected(self, db_session):
        member, session, token = await _arrange(db_session)
        other_session = SessionFactory.create(name="Evening Service")
        db_session.add(other_session)
        await db_session.commit()

        await checkin_service.consume(db_session, token=token.token, session_id=session.id)

        with pytest.raises(TokenAlreadyUsedError):
            await checkin_service.consume(
                db_session, token=token.token, session_id=other_session.id
            )
        assert await _record_count(db_session) == 1

    async def test_missing_inputs(self, db_session):
        with pytest.raises(BadRequestError) as exc_info:
            await checkin_service.consume(db_session, token=None, session_id=uuid.uuid4())
        assert exc_info.value.message == "QR code token is required"

        with pytest.raises(BadRequestError) as exc_info:
            await checkin_service.consume(db_session, token="abc", session_id=None)
        assert exc_info.value.message == "Session ID is required"

    async def test_unknown_token(self, db_session):
        with pytest.raises(InvalidTokenError):
            await checkin_service.consume(
                db_session, token="not-a-token", session_id=uuid.uuid4()
            )

    async def test_expired_token(self, db_session):
        _, session, token = await _arrange(
            db_session, expires_at=utc_now() - timedelta(seconds=1)
        )
        with pytest.raises(TokenExpiredError):
            await checkin_service.consume(db_session, token=token.token, session_id=session.id)

    async def test_token_checks_run_before_session_lookup(self, db_session):
        _, _, token = await _arrange(db_session, used_at=utc_now())
        with pytest.raises(TokenAlreadyUsedError):
            await checkin_service.consume(
                db_session, token=token.token, session_id=uuid.uuid4()
            )

    async def test_inactive_member(self, db_session):
        member = MemberFactory.create(membership_status=MembershipStatus.TRANSFERRED)
        _, session, token = await _arrange(db_session, member=member)
        with pytest.raises(InvalidStateError) as exc_info:
            await checkin_service.consume(db_session, token=token.token, session_id=session.id)
        assert exc_info.value.message == "Member is not active"

    async def test_unknown_session_leaves_token_unused(self, db_session):
        _, _, token = await _arrange(db_session)
        with pytest.raises(NotFoundError):
            await checkin_service.consume(
                db_session, token=token.token, session_id=uuid.uuid4()
            )
        await db_session.refresh(token)
        assert token.used_at is None

    async def test_closed_session(self, db_session):
        session = SessionFactory.create(status=SessionStatus.CLOSED)
        _, _, token = await _arrange(db_session, session=session)
        with pytest.raises(InvalidStateError) as exc_info:
            await checkin_service.consume(db_session, token=token.token, session_id=session.id)
        assert exc_info.value.message == "Session is not active"

    async def test_outside_session_window(self, db_session):
        now = utc_now()
        session = SessionFactory.create(
            start_time=now + timedelta(hours=2), end_time=now + timedelta(hours=4)
        )
        _, _, token = await _arrange(db_session, session=session)
        with pytest.raises(InvalidStateError) as exc_info:
            await checkin_service.consume(db_session, token=token.token, session_id=session.id)
        assert exc_info.value.message == "Session is not currently active"

    async def test_window_bounds_are_inclusive(self, db_session):
        _, session, token = await _arrange(db_session)
        result = await checkin_service.consume(
            db_session, token=token.token, session_id=session.id, now=session.end_time
        )
        assert result.record.checked_in_at == session.end_time

    async def test_existing_manual_record_blocks_scan(self, db_session):
        member, session, token = await _arrange(db_session)
        db_session.add(
            AttendanceRecordFactory.create(
                session_id=session.id, member_id=member.id, is_manual_entry=True
            )
        )
        await db_session.commit()

        with pytest.raises(ConflictError) as exc_info:
            await checkin_service.consume(db_session, token=token.token, session_id=session.id)
        assert exc_info.value.message == "Attendance already recorded for this session"
        await db_session.refresh(token)
        assert token.used_at is None

    async def test_other_scanner_commits_first(self, db_session, test_engine, monkeypatch):
        _, session, token = await _arrange(db_session)
        token_id, token_value, session_id = token.id, token.token, session.id
        other_sessions = async_sessionmaker(
            bind=test_engine, class_=AsyncSession, expire_on_commit=False
        )
        real_exists = checkin_service._attendance_exists
        raced = False

        async def exists_then_lose_race(db, *ids):
            nonlocal raced
            found = await real_exists(db, *ids)
            if not raced:
                raced = True
                # A second kiosk scans the same token on its own connection
                async with other_sessions() as other_db:
                    await checkin_service.consume(
                        other_db, token=token_value, session_id=session_id
                    )
            return found

        monkeypatch.setattr(checkin_service, "_attendance_exists", exists_then_lose_race)

        with pytest.raises(TokenAlreadyUsedError) as exc_info:
            await checkin_service.consume(db_session, token=token_value, session_id=session_id)

        assert exc_info.value.message == "QR code has already been used"
        assert await _record_count(db_session) == 1
        stored = await db_session.get(CheckInToken, token_id)
        assert stored.used_at is not None


@pytest.mark.asyncio
class TestRecordManual:
    async def test_present_gets_check_in_time(self, db_session):
        member = MemberFactory.create()
        session = SessionFactory.create()
        db_session.add_all([member, session])
        await db_session.commit()

        result = await checkin_service.record_manual(
            db_session, member_id=member.id, session_id=session.id, recorded_by="leader-1"
        )

        assert result.record.is_manual_entry is True
        assert result.record.checked_in_at is not None

    async def test_excused_has_no_check_in_time(self, db_session):
        member = MemberFactory.create()
        session = SessionFactory.create(status=SessionStatus.CLOSED)
        db_session.add_all([member, session])
        await db_session.commit()

        result = await checkin_service.record_manual(
            db_session,
            member_id=member.id,
            session_id=session.id,
            status=AttendanceStatus.EXCUSED,
            notes="Travelling",
        )

        assert result.record.status == AttendanceStatus.EXCUSED
        assert result.record.checked_in_at is None
        assert result.record.notes == "Travelling"

    async def test_duplicate_after_scan(self, db_session):
        member, session, token = await _arrange(db_session)
        await checkin_service.consume(db_session, token=token.token, session_id=session.id)

        with pytest.raises(ConflictError):
            await checkin_service.record_manual(
                db_session, member_id=member.id, session_id=session.id
            )

    async def test_unknown_member_and_session(self, db_session):
        session = SessionFactory.create()
        db_session.add(session)
        await db_session.commit()

        with pytest.raises(NotFoundError) as exc_info:
            await checkin_service.record_manual(
                db_session, member_id=uuid.uuid4(), session_id=session.id
            )
        assert exc_info.value.message == "Member not found"

    async def test_requires_both_ids(self, db_session):
        with pytest.raises(BadRequestError):
            await checkin_service.record_manual(db_session, member_id=None, session_id=None)
