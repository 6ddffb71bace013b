import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from libs.db.types import TZDateTime
from services.attendance_service.models.enums import (
    AttendanceStatus,
    TokenPurpose,
    enum_values,
)
from sqlalchemy import Boolean, Float, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column


class CheckInToken(Base):
    """Single-use QR check-in token.

    ``used_at`` moves from NULL to a timestamp exactly once, at consumption
    or revocation. Expiry is never materialised; it is compared at read time.
    """

    __tablename__ = "check_in_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    token: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    purpose: Mapped[TokenPurpose] = mapped_column(
        SAEnum(TokenPurpose, name="token_purpose_enum", values_callable=enum_values),
        default=TokenPurpose.ATTENDANCE,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(TZDateTime(), nullable=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(TZDateTime(), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    revoked_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utc_now)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def __repr__(self):
        return f"<CheckInToken member={self.member_id} expires={self.expires_at}>"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )

    status: Mapped[AttendanceStatus] = mapped_column(
        SAEnum(
            AttendanceStatus,
            name="attendance_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=AttendanceStatus.PRESENT,
        nullable=False,
    )
    checked_in_at: Mapped[Optional[datetime]] = mapped_column(TZDateTime(), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_manual_entry: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    recorded_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Scanner location, when the device shared it
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime(), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint(
            "session_id", "member_id", name="uq_session_member_attendance"
        ),
    )

    def __repr__(self):
        return f"<AttendanceRecord Session={self.session_id} Member={self.member_id}>"
