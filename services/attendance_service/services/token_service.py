"""QR check-in token issuance and inspection.

Tokens are 256-bit random hex strings bound to one member. They are
persisted with an expiry and consumed by ``checkin_service.consume``.
"""

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Mapping, Optional, Sequence

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    BadRequestError,
    InvalidStateError,
    InvalidTokenError,
    NotFoundError,
    TokenAlreadyUsedError,
    TokenExpiredError,
)
from libs.common.logging import get_logger
from libs.common.qr import render_data_url
from services.attendance_service.models import CheckInToken, TokenPurpose
from services.members_service.models import Member, MembershipStatus
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

TOKEN_BYTES = 32

Renderer = Callable[[Mapping[str, object]], str]


@dataclass
class IssuedToken:
    token: CheckInToken
    member: Member
    qr_code_image: str


@dataclass
class BatchResult:
    issued: List[IssuedToken]
    total_requested: int
    expires_at: datetime

    @property
    def total_generated(self) -> int:
        return len(self.issued)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def generate_token_value() -> str:
    """64 hex characters, 256 bits of entropy."""
    return secrets.token_hex(TOKEN_BYTES)


def build_qr_payload(token: str, member: Member, expires_at: datetime) -> dict:
    """The JSON document encoded into the QR image."""
    return {
        "token": token,
        "memberId": str(member.id),
        "membershipId": member.membership_id,
        "memberName": member.full_name,
        "expiresAt": expires_at.isoformat(),
    }


def _resolve_ttl(ttl_hours: Optional[int]) -> int:
    ttl = get_settings().QR_TOKEN_TTL_HOURS if ttl_hours is None else ttl_hours
    if ttl < 0:
        raise BadRequestError("Expiration hours cannot be negative")
    return ttl


def _new_token(member: Member, expires_at: datetime, created_by: Optional[str]) -> CheckInToken:
    return CheckInToken(
        token=generate_token_value(),
        member_id=member.id,
        purpose=TokenPurpose.ATTENDANCE,
        expires_at=expires_at,
        created_by=created_by,
    )


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------


async def issue_token(
    db: AsyncSession,
    *,
    member_id: uuid.UUID,
    ttl_hours: Optional[int] = None,
    created_by: Optional[str] = None,
    render: Renderer = render_data_url,
) -> IssuedToken:
    member = await db.get(Member, member_id)
    if not member:
        raise NotFoundError("Member not found")
    if member.membership_status != MembershipStatus.ACTIVE:
        raise InvalidStateError("Member is not active")

    expires_at = utc_now() + timedelta(hours=_resolve_ttl(ttl_hours))
    check_in = _new_token(member, expires_at, created_by)
    image = render(build_qr_payload(check_in.token, member, expires_at))

    db.add(check_in)
    await db.commit()
    logger.info("Issued check-in token %s for member %s", check_in.id, member.membership_id)
    return IssuedToken(token=check_in, member=member, qr_code_image=image)


async def issue_batch(
    db: AsyncSession,
    *,
    member_ids: Sequence[uuid.UUID],
    ttl_hours: Optional[int] = None,
    created_by: Optional[str] = None,
    render: Renderer = render_data_url,
) -> BatchResult:
    """
    Issue one token per member.

    The whole request is rejected when any member is missing or inactive.
    A member whose QR image fails to render is logged and skipped; no token
    is stored for it and the rest of the batch still goes through.
    """
    limit = get_settings().QR_BATCH_LIMIT
    if not member_ids:
        raise BadRequestError("Member IDs array is required")
    if len(member_ids) > limit:
        raise BadRequestError(f"Maximum {limit} members allowed per batch")

    unique_ids = list(dict.fromkeys(member_ids))
    members = (
        await db.execute(
            select(Member).where(
                Member.id.in_(unique_ids),
                Member.membership_status == MembershipStatus.ACTIVE,
            )
        )
    ).scalars().all()
    if len(members) != len(unique_ids):
        raise BadRequestError("Some members not found or inactive")

    by_id = {m.id: m for m in members}
    expires_at = utc_now() + timedelta(hours=_resolve_ttl(ttl_hours))
    issued: List[IssuedToken] = []

    for member_id in unique_ids:
        member = by_id[member_id]
        check_in = _new_token(member, expires_at, created_by)
        try:
            image = render(build_qr_payload(check_in.token, member, expires_at))
        except Exception:
            logger.exception("Failed to render QR code for member %s", member.membership_id)
            continue
        db.add(check_in)
        issued.append(IssuedToken(token=check_in, member=member, qr_code_image=image))

    await db.commit()
    logger.info(
        "Batch issued %d/%d check-in tokens", len(issued), len(unique_ids)
    )
    return BatchResult(issued=issued, total_requested=len(unique_ids), expires_at=expires_at)


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------


async def list_active_tokens(db: AsyncSession, member_id: uuid.UUID) -> List[CheckInToken]:
    if not await db.get(Member, member_id):
        raise NotFoundError("Member not found")
    result = await db.execute(
        select(CheckInToken)
        .where(
            CheckInToken.member_id == member_id,
            CheckInToken.used_at.is_(None),
            CheckInToken.expires_at > utc_now(),
        )
        .order_by(CheckInToken.created_at.desc())
    )
    return list(result.scalars().all())


async def find_token(db: AsyncSession, value: str) -> Optional[CheckInToken]:
    result = await db.execute(select(CheckInToken).where(CheckInToken.token == value))
    return result.scalar_one_or_none()


async def check_token(
    db: AsyncSession, value: str, now: Optional[datetime] = None
) -> tuple[CheckInToken, Member]:
    """
    Run the token-side checks in their fixed order: exists, not expired,
    not used, member active. The first failing check wins.
    """
    now = now or utc_now()
    check_in = await find_token(db, value)
    if check_in is None:
        raise InvalidTokenError("Invalid QR code")
    if check_in.is_expired(now):
        raise TokenExpiredError("QR code has expired")
    if check_in.is_used:
        raise TokenAlreadyUsedError("QR code has already been used")

    member = await db.get(Member, check_in.member_id)
    if member is None or member.membership_status != MembershipStatus.ACTIVE:
        raise InvalidStateError("Member is not active")
    return check_in, member


async def validate_token(db: AsyncSession, value: Optional[str]) -> tuple[CheckInToken, Member]:
    """Check a token without consuming it."""
    if not value:
        raise BadRequestError("QR code token is required")
    return await check_token(db, value)


async def revoke_token(
    db: AsyncSession, *, token_id: uuid.UUID, revoked_by: Optional[str] = None
) -> CheckInToken:
    check_in = await db.get(CheckInToken, token_id)
    if not check_in:
        raise NotFoundError("QR code not found")
    if check_in.is_used:
        raise TokenAlreadyUsedError("QR code has already been used")

    check_in.used_at = utc_now()
    check_in.revoked_by = revoked_by
    await db.commit()
    logger.info("Revoked check-in token %s", token_id)
    return check_in


async def token_stats(
    db: AsyncSession,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> dict:
    now = utc_now()
    window = []
    if start is not None:
        window.append(CheckInToken.created_at >= start)
    if end is not None:
        window.append(CheckInToken.created_at <= end)

    async def _count(*conditions) -> int:
        query = select(func.count(CheckInToken.id))
        clauses = [*window, *conditions]
        if clauses:
            query = query.where(and_(*clauses))
        return (await db.scalar(query)) or 0

    generated = await _count()
    used = await _count(CheckInToken.used_at.is_not(None))
    expired = await _count(CheckInToken.used_at.is_(None), CheckInToken.expires_at <= now)
    active = await _count(CheckInToken.used_at.is_(None), CheckInToken.expires_at > now)

    return {
        "total_generated": generated,
        "total_used": used,
        "total_expired": expired,
        "total_active": active,
        "usage_rate": round(used / generated * 100, 2) if generated else 0.0,
    }
