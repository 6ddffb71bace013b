import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Integer, String, Text, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from libs.db.types import TZDateTime, enum_values


class AuditSeverity(str, enum.Enum):
    INFO = "INFO"
    ERROR = "ERROR"


class AuditLog(Base):
    """One row per audited API request. Rows are only ever inserted."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    user_role: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    action: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    method: Mapped[str] = mapped_column(String(10), nullable=False)
    path: Mapped[str] = mapped_column(String(255), nullable=False)
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    severity: Mapped[AuditSeverity] = mapped_column(
        SAEnum(AuditSeverity, name="audit_severity_enum", values_callable=enum_values),
        default=AuditSeverity.INFO,
        nullable=False,
    )

    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    request_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utc_now, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.entity_type} {self.status_code}>"
