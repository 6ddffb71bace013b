"""Attendance router - QR scan check-in, manual entry and record management."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from libs.auth.dependencies import get_current_user, require_admin, require_staff
from libs.auth.models import AuthUser
from libs.common.rate_limit import scan_limit
from libs.common.schemas import ApiResponse, PaginatedData
from libs.db.query import PageRequest, SortOrder, SortSpec
from libs.db.session import get_async_db
from services.attendance_service.filters import build_attendance_filters
from services.attendance_service.models import AttendanceStatus
from services.attendance_service.routers._helpers import to_attendance_detail
from services.attendance_service.schemas import (
    AttendanceDetail,
    AttendanceResponse,
    AttendanceStatistics,
    AttendanceUpdate,
    ManualAttendanceCreate,
    ScanRequest,
    SessionAttendanceResponse,
    SessionBrief,
)
from services.attendance_service.services import checkin_service, records_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/attendance", tags=["attendance"])
# Scanner devices post to the short top-level path as well
scan_router = APIRouter(tags=["attendance"])


@scan_limit
async def scan_qr_code(
    request: Request,
    scan: ScanRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Check a member in by consuming their QR token for a session."""
    result = await checkin_service.consume(
        db,
        token=scan.token,
        session_id=scan.session_id,
        recorded_by=current_user.user_id,
        latitude=scan.latitude,
        longitude=scan.longitude,
    )
    return ApiResponse(
        message="Attendance recorded successfully",
        data=to_attendance_detail(result.record, result.member, result.session),
    )


for _scan_target in (router, scan_router):
    _scan_target.add_api_route(
        "/scan",
        scan_qr_code,
        methods=["POST"],
        response_model=ApiResponse[AttendanceDetail],
        status_code=status.HTTP_201_CREATED,
    )


@router.post(
    "/manual",
    response_model=ApiResponse[AttendanceDetail],
    status_code=status.HTTP_201_CREATED,
)
async def record_manual_attendance(
    entry: ManualAttendanceCreate,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    result = await checkin_service.record_manual(
        db,
        member_id=entry.member_id,
        session_id=entry.session_id,
        status=entry.status,
        notes=entry.notes,
        recorded_by=current_user.user_id,
    )
    return ApiResponse(
        message="Manual attendance recorded successfully",
        data=to_attendance_detail(result.record, result.member, result.session),
    )


@router.get("", response_model=ApiResponse[PaginatedData[AttendanceDetail]])
async def list_attendance(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session_id: Optional[uuid.UUID] = None,
    member_id: Optional[uuid.UUID] = None,
    attendance_status: Optional[AttendanceStatus] = Query(None, alias="status"),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    sort_by: str = "checked_in_at",
    sort_order: SortOrder = SortOrder.DESC,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    paging = PageRequest(page=page, limit=limit)
    rows, total = await records_service.list_attendance(
        db,
        filters=build_attendance_filters(
            session_id, member_id, attendance_status, start_date, end_date
        ),
        sort=SortSpec(sort_by, sort_order),
        page=paging,
    )
    return ApiResponse(
        data=PaginatedData(
            items=[to_attendance_detail(*row) for row in rows],
            pagination=paging.meta(total),
        )
    )


@router.get("/session/{session_id}", response_model=ApiResponse[SessionAttendanceResponse])
async def get_session_attendance(
    session_id: uuid.UUID,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """All attendance for one session with present/absent/late statistics."""
    session, rows, stats = await records_service.get_session_attendance(db, session_id)
    return ApiResponse(
        data=SessionAttendanceResponse(
            session=SessionBrief.model_validate(session),
            attendance=[to_attendance_detail(*row) for row in rows],
            statistics=AttendanceStatistics(**stats),
        )
    )


@router.put("/{attendance_id}", response_model=ApiResponse[AttendanceResponse])
async def update_attendance(
    attendance_id: uuid.UUID,
    update_in: AttendanceUpdate,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    record = await records_service.update_attendance(
        db,
        attendance_id=attendance_id,
        status=update_in.status,
        notes=update_in.notes,
    )
    return ApiResponse(
        message="Attendance updated successfully",
        data=AttendanceResponse.model_validate(record),
    )


@router.delete("/{attendance_id}", response_model=ApiResponse[None])
async def delete_attendance(
    attendance_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await records_service.delete_attendance(db, attendance_id=attendance_id)
    return ApiResponse(message="Attendance record deleted successfully")
