"""initial schema: cells, members, sessions, check-in tokens, attendance

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

membership_status_enum = sa.Enum(
    "ACTIVE", "INACTIVE", "TRANSFERRED", "DECEASED", name="membership_status_enum"
)
gender_enum = sa.Enum("MALE", "FEMALE", "OTHER", name="gender_enum")
session_type_enum = sa.Enum(
    "SUNDAY_SERVICE",
    "MIDWEEK_SERVICE",
    "PRAYER_MEETING",
    "BIBLE_STUDY",
    "YOUTH_SERVICE",
    "CELL_MEETING",
    "CONFERENCE",
    "WORKSHOP",
    "SPECIAL_EVENT",
    "OTHER",
    name="session_type_enum",
)
session_status_enum = sa.Enum("ACTIVE", "CLOSED", name="session_status_enum")
token_purpose_enum = sa.Enum("ATTENDANCE", name="token_purpose_enum")
attendance_status_enum = sa.Enum(
    "PRESENT", "LATE", "ABSENT", "EXCUSED", name="attendance_status_enum"
)


def upgrade() -> None:
    op.create_table(
        "cells",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("leader_id", sa.Uuid(), nullable=True),
        sa.Column("meeting_day", sa.String(length=20), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_cells")),
        sa.UniqueConstraint("name", name=op.f("uq_cells_name")),
    )

    op.create_table(
        "members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("membership_id", sa.String(length=32), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", gender_enum, nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("zip_code", sa.String(length=20), nullable=True),
        sa.Column("membership_status", membership_status_enum, nullable=False),
        sa.Column("join_date", sa.Date(), nullable=True),
        sa.Column("cell_id", sa.Uuid(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["cell_id"], ["cells.id"],
            name=op.f("fk_members_cell_id_cells"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_members")),
    )
    op.create_index(op.f("ix_members_membership_id"), "members", ["membership_id"], unique=True)
    op.create_index(op.f("ix_members_email"), "members", ["email"], unique=True)
    op.create_index(op.f("ix_members_membership_status"), "members", ["membership_status"])
    op.create_index(op.f("ix_members_cell_id"), "members", ["cell_id"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("session_type", session_type_enum, nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("status", session_status_enum, nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "end_time > start_time", name=op.f("ck_sessions_session_window")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_sessions")),
    )
    op.create_index(op.f("ix_sessions_session_type"), "sessions", ["session_type"])
    op.create_index(op.f("ix_sessions_start_time"), "sessions", ["start_time"])

    op.create_table(
        "check_in_tokens",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("purpose", token_purpose_enum, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("revoked_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["member_id"], ["members.id"],
            name=op.f("fk_check_in_tokens_member_id_members"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_check_in_tokens")),
    )
    op.create_index(op.f("ix_check_in_tokens_token"), "check_in_tokens", ["token"], unique=True)
    op.create_index(op.f("ix_check_in_tokens_member_id"), "check_in_tokens", ["member_id"])

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("session_id", sa.Uuid(), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("status", attendance_status_enum, nullable=False),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_manual_entry", sa.Boolean(), nullable=False),
        sa.Column("recorded_by", sa.String(length=64), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["member_id"], ["members.id"],
            name=op.f("fk_attendance_records_member_id_members"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["session_id"], ["sessions.id"],
            name=op.f("fk_attendance_records_session_id_sessions"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_attendance_records")),
        sa.UniqueConstraint(
            "session_id", "member_id", name=op.f("uq_session_member_attendance")
        ),
    )
    op.create_index(op.f("ix_attendance_records_session_id"), "attendance_records", ["session_id"])
    op.create_index(op.f("ix_attendance_records_member_id"), "attendance_records", ["member_id"])


def downgrade() -> None:
    op.drop_table("attendance_records")
    op.drop_table("check_in_tokens")
    op.drop_table("sessions")
    op.drop_table("members")
    op.drop_table("cells")

    bind = op.get_bind()
    for enum in (
        attendance_status_enum,
        token_purpose_enum,
        session_status_enum,
        session_type_enum,
        gender_enum,
        membership_status_enum,
    ):
        enum.drop(bind, checkfirst=True)
