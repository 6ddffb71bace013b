from datetime import timedelta
from typing import Annotated, Any, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import ADMIN_ROLES, STAFF_ROLES, AuthUser, Role
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import AuthenticationError, PermissionDeniedError

security = HTTPBearer(auto_error=False)


def create_access_token(
    subject: str,
    role: Role = Role.MEMBER,
    *,
    email: Optional[str] = None,
    member_id: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Mint a signed access token. Used by local tooling and tests; production
    tokens come from the identity provider sharing ``JWT_SECRET``.
    """
    settings = get_settings()
    expire = utc_now() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims: dict[str, Any] = {"sub": subject, "role": role.value, "exp": expire}
    if email:
        claims["email"] = email
    if member_id:
        claims["member_id"] = member_id
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def get_current_user(
    request: Request,
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> AuthUser:
    """
    Validate the bearer JWT and return the authenticated user.
    """
    if token is None:
        raise AuthenticationError("Access token required")

    settings = get_settings()
    try:
        payload = jwt.decode(
            token.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False},
        )
        user = AuthUser(**payload)
    except (JWTError, ValidationError):
        raise AuthenticationError("Invalid or expired token")

    # Exposed for the rate limiter key function
    request.state.user = user
    return user


def require_roles(*roles: Role) -> Callable:
    """Build a dependency that admits only callers holding one of ``roles``."""

    async def _checker(
        current_user: Annotated[AuthUser, Depends(get_current_user)],
    ) -> AuthUser:
        if not current_user.has_role(*roles):
            raise PermissionDeniedError()
        return current_user

    return _checker


require_staff = require_roles(*STAFF_ROLES)
require_admin = require_roles(*ADMIN_ROLES)
