"""Member and cell group models."""

import uuid
from datetime import date, datetime
from typing import List, Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from libs.db.types import TZDateTime
from services.members_service.models.enums import Gender, MembershipStatus, enum_values
from sqlalchemy import Date, ForeignKey, String, Text, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship


class Cell(Base):
    """A small fellowship group members belong to."""

    __tablename__ = "cells"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Leader is a member; kept as a plain column to avoid a circular FK
    leader_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    meeting_day: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime(), default=utc_now, onupdate=utc_now
    )

    members: Mapped[List["Member"]] = relationship(
        "Member", back_populates="cell", lazy="noload"
    )

    def __repr__(self):
        return f"<Cell {self.name}>"


class Member(Base):
    """A church member.

    Members are never hard-deleted; deactivation flips ``membership_status``.
    """

    __tablename__ = "members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    membership_id: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, nullable=False
    )

    # Identity
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, index=True, nullable=True
    )
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender: Mapped[Optional[Gender]] = mapped_column(
        SAEnum(Gender, name="gender_enum", values_callable=enum_values),
        nullable=True,
    )

    # Address
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Membership
    membership_status: Mapped[MembershipStatus] = mapped_column(
        SAEnum(
            MembershipStatus,
            name="membership_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=MembershipStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    join_date: Mapped[date] = mapped_column(Date, default=lambda: utc_now().date())
    cell_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("cells.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime(), default=utc_now, onupdate=utc_now
    )

    cell: Mapped[Optional[Cell]] = relationship(
        Cell, back_populates="members", lazy="selectin"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self) -> bool:
        return self.membership_status == MembershipStatus.ACTIVE

    def __repr__(self):
        return f"<Member {self.membership_id}>"
