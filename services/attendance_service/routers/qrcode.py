"""QR code router - issue, inspect and revoke check-in tokens."""

import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, require_staff
from libs.auth.models import STAFF_ROLES, AuthUser
from libs.common.errors import PermissionDeniedError
from libs.common.schemas import ApiResponse
from libs.db.session import get_async_db
from services.attendance_service.routers._helpers import to_batch_item, to_qr_response
from services.attendance_service.schemas import (
    ActiveTokenResponse,
    QRCodeBatchRequest,
    QRCodeBatchResponse,
    QRCodeBatchSummary,
    QRCodeResponse,
    TokenStats,
    TokenValidateRequest,
    TokenValidateResponse,
)
from services.attendance_service.services import token_service
from services.members_service.schemas import MemberBrief
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/qrcode", tags=["qrcode"])


def _ensure_self_or_staff(current_user: AuthUser, member_id: uuid.UUID) -> None:
    if current_user.member_id == str(member_id):
        return
    if not current_user.has_role(*STAFF_ROLES):
        raise PermissionDeniedError()


@router.get("/stats", response_model=ApiResponse[TokenStats])
async def get_token_stats(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    stats = await token_service.token_stats(db, start=start_date, end=end_date)
    return ApiResponse(data=TokenStats(**stats))


@router.post(
    "/batch",
    response_model=ApiResponse[QRCodeBatchResponse],
    status_code=status.HTTP_201_CREATED,
)
async def issue_batch(
    batch_in: QRCodeBatchRequest,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Issue QR codes for up to the batch limit of members at once."""
    result = await token_service.issue_batch(
        db,
        member_ids=batch_in.member_ids,
        ttl_hours=batch_in.expiration_hours,
        created_by=current_user.user_id,
    )
    return ApiResponse(
        message=f"Generated {result.total_generated} QR codes successfully",
        data=QRCodeBatchResponse(
            qr_codes=[to_batch_item(item) for item in result.issued],
            summary=QRCodeBatchSummary(
                total_requested=result.total_requested,
                total_generated=result.total_generated,
                expires_at=result.expires_at,
            ),
        ),
    )


@router.post("/validate", response_model=ApiResponse[TokenValidateResponse])
async def validate_token(
    body: TokenValidateRequest,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Check a token without consuming it."""
    check_in, member = await token_service.validate_token(db, body.token)
    return ApiResponse(
        message="QR code is valid",
        data=TokenValidateResponse(
            token_id=check_in.id,
            expires_at=check_in.expires_at,
            member=MemberBrief.model_validate(member),
        ),
    )


@router.get(
    "/member/{member_id}/active", response_model=ApiResponse[List[ActiveTokenResponse]]
)
async def list_active_tokens(
    member_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    _ensure_self_or_staff(current_user, member_id)
    tokens = await token_service.list_active_tokens(db, member_id)
    return ApiResponse(data=[ActiveTokenResponse.model_validate(t) for t in tokens])


@router.delete("/{token_id}", response_model=ApiResponse[ActiveTokenResponse])
async def revoke_token(
    token_id: uuid.UUID,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    check_in = await token_service.revoke_token(
        db, token_id=token_id, revoked_by=current_user.user_id
    )
    return ApiResponse(
        message="QR code revoked successfully",
        data=ActiveTokenResponse.model_validate(check_in),
    )


@router.get("/{member_id}", response_model=ApiResponse[QRCodeResponse])
async def issue_qr_code(
    member_id: uuid.UUID,
    expiration_hours: Optional[int] = Query(None, ge=0, le=24 * 30),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Issue a fresh single-use check-in QR code for a member.

    Members may request their own code; staff may request anyone's.
    """
    _ensure_self_or_staff(current_user, member_id)
    issued = await token_service.issue_token(
        db,
        member_id=member_id,
        ttl_hours=expiration_hours,
        created_by=current_user.user_id,
    )
    return ApiResponse(
        message="QR code generated successfully", data=to_qr_response(issued)
    )
