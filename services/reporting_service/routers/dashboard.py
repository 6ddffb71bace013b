"""Dashboard router - summary, analytics and per-member views."""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import get_current_user, require_staff
from libs.auth.models import STAFF_ROLES, AuthUser
from libs.common.errors import PermissionDeniedError
from libs.common.schemas import ApiResponse
from libs.db.session import get_async_db
from services.reporting_service.services import dashboard_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=ApiResponse[Dict[str, Any]])
async def get_summary(
    period: int = Query(30, ge=1, le=365),
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Headline counts, rates and charts for the last ``period`` days."""
    return ApiResponse(data=await dashboard_service.summary(db, period_days=period))


@router.get("/analytics", response_model=ApiResponse[Dict[str, Any]])
async def get_analytics(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return ApiResponse(
        data=await dashboard_service.analytics(db, start=start_date, end=end_date)
    )


@router.get("/member/{member_id}", response_model=ApiResponse[Dict[str, Any]])
async def get_member_dashboard(
    member_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    if current_user.member_id != str(member_id) and not current_user.has_role(*STAFF_ROLES):
        raise PermissionDeniedError()
    return ApiResponse(
        data=await dashboard_service.member_dashboard(db, member_id=member_id)
    )
