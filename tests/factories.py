"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    member = MemberFactory.create(email="custom@test.com")
    db_session.add(member)
    await db_session.commit()
"""

import itertools
import secrets
import uuid
from datetime import date, datetime, timedelta, timezone

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_sequence = itertools.count(1)


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:8]}@test.com"


def _membership_id() -> str:
    return f"TEST{_now().year}{next(_sequence):04d}"


# ---------------------------------------------------------------------------
# Members Service
# ---------------------------------------------------------------------------


class CellFactory:
    @staticmethod
    def create(**overrides):
        from services.members_service.models import Cell

        defaults = {
            "id": _uuid(),
            "name": f"Cell {uuid.uuid4().hex[:6]}",
            "meeting_day": "Wednesday",
            "location": "Fellowship Hall",
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Cell(**defaults)


class MemberFactory:
    @staticmethod
    def create(**overrides):
        from services.members_service.models import Member, MembershipStatus

        defaults = {
            "id": _uuid(),
            "membership_id": _membership_id(),
            "first_name": "Test",
            "last_name": "Member",
            "email": _unique_email(),
            "membership_status": MembershipStatus.ACTIVE,
            "join_date": date.today(),
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Member(**defaults)


# ---------------------------------------------------------------------------
# Sessions Service
# ---------------------------------------------------------------------------


class SessionFactory:
    """Defaults to an ACTIVE Sunday service that is open right now."""

    @staticmethod
    def create(**overrides):
        from services.sessions_service.models import (
            Session,
            SessionStatus,
            SessionType,
        )

        now = _now()
        defaults = {
            "id": _uuid(),
            "name": "Sunday Service",
            "session_type": SessionType.SUNDAY_SERVICE,
            "start_time": now - timedelta(hours=1),
            "end_time": now + timedelta(hours=2),
            "location": "Main Sanctuary",
            "status": SessionStatus.ACTIVE,
            "created_at": now,
            "updated_at": now,
        }
        defaults.update(overrides)
        return Session(**defaults)


# ---------------------------------------------------------------------------
# Attendance Service
# ---------------------------------------------------------------------------


class CheckInTokenFactory:
    @staticmethod
    def create(member_id=None, **overrides):
        from services.attendance_service.models import CheckInToken, TokenPurpose

        defaults = {
            "id": _uuid(),
            "token": secrets.token_hex(32),
            "member_id": member_id or _uuid(),
            "purpose": TokenPurpose.ATTENDANCE,
            "expires_at": _now() + timedelta(hours=24),
            "used_at": None,
            "created_at": _now(),
        }
        defaults.update(overrides)
        return CheckInToken(**defaults)


class AttendanceRecordFactory:
    @staticmethod
    def create(session_id=None, member_id=None, **overrides):
        from services.attendance_service.models import (
            AttendanceRecord,
            AttendanceStatus,
        )

        defaults = {
            "id": _uuid(),
            "session_id": session_id or _uuid(),
            "member_id": member_id or _uuid(),
            "status": AttendanceStatus.PRESENT,
            "checked_in_at": _now(),
            "is_manual_entry": False,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return AttendanceRecord(**defaults)
