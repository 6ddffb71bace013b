"""Members router - CRUD operations for member records."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, require_admin, require_staff
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.common.schemas import ApiResponse, PaginatedData
from libs.db.query import SortOrder
from libs.db.session import get_async_db
from services.members_service.filters import build_member_filters
from services.members_service.models import Gender, MembershipStatus
from services.members_service.routers._helpers import page_request, sort_spec, to_list_item
from services.members_service.schemas import (
    MemberAttendanceItem,
    MemberCreate,
    MemberDetail,
    MemberListItem,
    MemberResponse,
    MemberUpdate,
)
from services.members_service.services import member_service
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/members", tags=["members"])


@router.post(
    "",
    response_model=ApiResponse[MemberResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_member(
    member_in: MemberCreate,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Register a new member. A membership ID is generated."""
    member = await member_service.create_member(
        db, data=member_in, created_by=current_user.user_id
    )
    return ApiResponse(
        message="Member created successfully",
        data=MemberResponse.model_validate(member),
    )


@router.get("", response_model=ApiResponse[PaginatedData[MemberListItem]])
async def list_members(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    membership_status: Optional[MembershipStatus] = Query(None, alias="status"),
    cell_id: Optional[uuid.UUID] = None,
    gender: Optional[Gender] = None,
    sort_by: str = "first_name",
    sort_order: SortOrder = SortOrder.ASC,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List members with search, filters and attendance counts."""
    paging = page_request(page, limit)
    rows, total = await member_service.list_members(
        db,
        filters=build_member_filters(search, membership_status, cell_id, gender),
        sort=sort_spec(sort_by, sort_order),
        page=paging,
    )
    return ApiResponse(
        data=PaginatedData(
            items=[to_list_item(member, count) for member, count in rows],
            pagination=paging.meta(total),
        )
    )


@router.get("/{member_id}", response_model=ApiResponse[MemberDetail])
async def get_member(
    member_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get a member with their cell and most recent attendance."""
    member = await member_service.get_member(db, member_id)
    detail = MemberDetail.model_validate(member)
    detail.recent_attendance = [
        MemberAttendanceItem(**row)
        for row in await member_service.get_recent_attendance(db, member_id)
    ]
    return ApiResponse(data=detail)


@router.put("/{member_id}", response_model=ApiResponse[MemberResponse])
async def update_member(
    member_id: uuid.UUID,
    member_in: MemberUpdate,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    member = await member_service.update_member(db, member_id=member_id, data=member_in)
    return ApiResponse(
        message="Member updated successfully",
        data=MemberResponse.model_validate(member),
    )


@router.delete("/{member_id}", response_model=ApiResponse[MemberResponse])
async def deactivate_member(
    member_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Soft delete: the member is kept and marked INACTIVE."""
    member = await member_service.deactivate_member(db, member_id=member_id)
    return ApiResponse(
        message="Member deactivated successfully",
        data=MemberResponse.model_validate(member),
    )
