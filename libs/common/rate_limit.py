"""Rate limiting configuration.

Uses slowapi with a configurable storage backend (in-memory by default,
Redis via ``RATE_LIMIT_STORAGE_URI`` in multi-instance deployments).
"""

from functools import lru_cache
from typing import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from libs.common.config import get_settings


def client_ip(request: Request) -> str:
    """
    Get client IP from request, handling proxies.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in the chain is the original client
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def _get_user_or_ip(request: Request) -> str:
    """
    Rate limit by user ID if authenticated, otherwise by IP.
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.user_id}"
    return f"ip:{client_ip(request)}"


@lru_cache
def get_limiter() -> Limiter:
    """
    Create and return a cached Limiter instance.
    """
    settings = get_settings()
    return Limiter(
        key_func=_get_user_or_ip,
        default_limits=[settings.RATE_LIMIT_DEFAULT],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """
    Return a JSON 429 in the standard error envelope.
    """
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": f"Too many requests. Limit is {exc.detail}.",
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


def scan_limit(func: Callable) -> Callable:
    """Apply the check-in scan rate limit (``RATE_LIMIT_SCAN``)."""
    return limiter.limit(get_settings().RATE_LIMIT_SCAN)(func)


def export_limit(func: Callable) -> Callable:
    """Apply a strict limit for file export endpoints (10/minute)."""
    return limiter.limit("10/minute")(func)
