"""Sessions router."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, require_staff
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.schemas import ApiResponse, PaginatedData
from libs.db.query import PageRequest, SortOrder, SortSpec
from libs.db.session import get_async_db
from services.sessions_service.filters import build_session_filters
from services.sessions_service.models import SessionStatus, SessionType
from services.sessions_service.schemas import (
    SessionCreate,
    SessionListItem,
    SessionResponse,
    SessionUpdate,
)
from services.sessions_service.services import session_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post(
    "", response_model=ApiResponse[SessionResponse], status_code=status.HTTP_201_CREATED
)
async def create_session(
    session_in: SessionCreate,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    session = await session_service.create_session(
        db, data=session_in, created_by=current_user.user_id
    )
    return ApiResponse(
        message="Session created successfully",
        data=SessionResponse.model_validate(session),
    )


@router.get("", response_model=ApiResponse[PaginatedData[SessionListItem]])
async def list_sessions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session_type: Optional[SessionType] = None,
    session_status: Optional[SessionStatus] = Query(None, alias="status"),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    upcoming: bool = False,
    sort_by: str = "start_time",
    sort_order: SortOrder = SortOrder.DESC,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List sessions. ``upcoming=true`` keeps sessions starting from now."""
    paging = PageRequest(page=page, limit=limit)
    rows, total = await session_service.list_sessions(
        db,
        filters=build_session_filters(
            session_type,
            session_status,
            start_date,
            end_date,
            upcoming_from=utc_now() if upcoming else None,
        ),
        sort=SortSpec(sort_by, sort_order),
        page=paging,
    )
    items = []
    for session, count in rows:
        item = SessionListItem.model_validate(session)
        item.attendance_count = count
        items.append(item)
    return ApiResponse(data=PaginatedData(items=items, pagination=paging.meta(total)))


@router.get("/{session_id}", response_model=ApiResponse[SessionResponse])
async def get_session(
    session_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    session = await session_service.get_session(db, session_id)
    return ApiResponse(data=SessionResponse.model_validate(session))


@router.put("/{session_id}", response_model=ApiResponse[SessionResponse])
async def update_session(
    session_id: uuid.UUID,
    session_in: SessionUpdate,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    session = await session_service.update_session(
        db, session_id=session_id, data=session_in
    )
    return ApiResponse(
        message="Session updated successfully",
        data=SessionResponse.model_validate(session),
    )


@router.post("/{session_id}/close", response_model=ApiResponse[SessionResponse])
async def close_session(
    session_id: uuid.UUID,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    session = await session_service.close_session(db, session_id=session_id)
    return ApiResponse(
        message="Session closed", data=SessionResponse.model_validate(session)
    )
