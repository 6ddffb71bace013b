"""Export router - attendance, member and session files."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from libs.auth.dependencies import require_staff
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.errors import BadRequestError
from libs.common.logging import get_logger
from libs.common.rate_limit import export_limit
from libs.db.session import get_async_db
from services.members_service.models import MembershipStatus
from services.reporting_service import exporters
from services.reporting_service.exporters import ExportFormat, ExportTable
from services.reporting_service.services import export_service
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/export", tags=["export"])

REPORT_FORMATS = (ExportFormat.PDF, ExportFormat.JSON)


def _file_response(table: ExportTable, fmt: ExportFormat, stem: str) -> Response:
    content = exporters.render(table, fmt)
    name = exporters.filename(stem, fmt, utc_now().date())
    logger.info("Exported %s (%d rows) as %s", stem, len(table.rows), fmt.value)
    return Response(
        content=content,
        media_type=exporters.MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )


@router.get("")
@export_limit
async def export_scan_log(
    request: Request,
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    format: str = Query("csv"),
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Check-ins between two ``YYYY-MM-DD`` days as csv, excel or pdf."""
    try:
        fmt = ExportFormat(format.lower())
    except ValueError:
        fmt = None
    if fmt not in export_service.SCAN_LOG_FORMATS:
        raise BadRequestError(
            f"Invalid format. Supported: {exporters.supported(export_service.SCAN_LOG_FORMATS)}"
        )
    start, end = export_service.parse_export_range(date_from, date_to)
    table = await export_service.scan_log_table(
        db,
        date_from=start,
        date_to=end,
        fmt=fmt,
        exported_by=current_user.email or current_user.user_id,
    )
    return _file_response(table, fmt, "attendance")


@router.get("/attendance")
@export_limit
async def export_attendance(
    request: Request,
    format: ExportFormat = ExportFormat.CSV,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    session_id: Optional[uuid.UUID] = None,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    table = await export_service.attendance_table(
        db, start=start_date, end=end_date, session_id=session_id
    )
    return _file_response(table, format, "attendance")


@router.get("/members")
@export_limit
async def export_members(
    request: Request,
    format: ExportFormat = ExportFormat.CSV,
    membership_status: Optional[MembershipStatus] = Query(None, alias="status"),
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    table = await export_service.members_table(db, status=membership_status)
    return _file_response(table, format, "members")


@router.get("/sessions")
@export_limit
async def export_sessions(
    request: Request,
    format: ExportFormat = ExportFormat.CSV,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    table = await export_service.sessions_table(db, start=start_date, end=end_date)
    return _file_response(table, format, "sessions")


@router.get("/report")
@export_limit
async def export_report(
    request: Request,
    format: ExportFormat = ExportFormat.PDF,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Summary report with top attendees and sessions by type."""
    if format not in REPORT_FORMATS:
        raise BadRequestError(f"Invalid format. Supported: {exporters.supported(REPORT_FORMATS)}")
    table = await export_service.report_table(db, start=start_date, end=end_date)
    return _file_response(table, format, "report")
