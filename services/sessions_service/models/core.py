import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from libs.db.types import TZDateTime
from services.sessions_service.models.enums import SessionStatus, SessionType, enum_values
from sqlalchemy import CheckConstraint, Integer, String, Text, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column


class Session(Base):
    """A scheduled gathering members check in to."""

    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    session_type: Mapped[SessionType] = mapped_column(
        SAEnum(
            SessionType,
            name="session_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        index=True,
    )

    start_time: Mapped[datetime] = mapped_column(TZDateTime(), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(TZDateTime(), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[SessionStatus] = mapped_column(
        SAEnum(
            SessionStatus,
            name="session_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=SessionStatus.ACTIVE,
        nullable=False,
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime(), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="session_window"),
    )

    def is_open_at(self, moment: datetime) -> bool:
        """True when ``moment`` falls inside [start_time, end_time]."""
        return self.start_time <= moment <= self.end_time

    def __repr__(self):
        return f"<Session {self.name} ({self.session_type.value})>"
