"""Audit trail for API requests.

Once a request has a response, a row is written to ``audit_logs`` naming the
caller, the action and the entity it touched. Client errors (4xx) are not
recorded; successes and server errors are.

Usage:
    from libs.common.audit import add_audit_middleware

    app = FastAPI()
    add_audit_middleware(app)
"""
from typing import Callable, Mapping, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import get_logger, get_request_id
from libs.common.rate_limit import client_ip
from libs.db.audit import AuditLog, AuditSeverity
from libs.db.config import Database

logger = get_logger(__name__)

_SKIP_PATHS = {"/health", "/api/health", "/api/status"}

_METHOD_ACTIONS = {
    "POST": "CREATE",
    "PUT": "UPDATE",
    "PATCH": "UPDATE",
    "DELETE": "DELETE",
    "GET": "READ",
}

# Keyed by the first path segment under /api
_ENTITY_TYPES = {
    "members": "MEMBER",
    "cells": "CELL",
    "sessions": "SESSION",
    "attendance": "ATTENDANCE",
    "scan": "ATTENDANCE",
    "qrcode": "QR_TOKEN",
    "dashboard": "DASHBOARD",
    "export": "EXPORT",
}

_ENTITY_ID_PARAMS = ("attendance_id", "token_id", "session_id", "cell_id", "member_id")


def action_for(method: str, path: str) -> str:
    if path.rstrip("/").endswith("/scan"):
        return "CHECK_IN"
    return _METHOD_ACTIONS.get(method.upper(), "UNKNOWN")


def entity_type_for(path: str) -> str:
    segments = [segment for segment in path.split("/") if segment]
    if segments and segments[0] == "api":
        segments = segments[1:]
    if not segments:
        return "UNKNOWN"
    return _ENTITY_TYPES.get(segments[0], "UNKNOWN")


def entity_id_for(path_params: Mapping[str, object]) -> Optional[str]:
    for name in _ENTITY_ID_PARAMS:
        if path_params.get(name) is not None:
            return str(path_params[name])
    return None


def should_record(status_code: int) -> bool:
    return status_code < 400 or status_code >= 500


def build_entry(request: Request, status_code: int) -> AuditLog:
    # Set by get_current_user on authenticated routes
    user = getattr(request.state, "user", None)
    path = request.url.path
    return AuditLog(
        user_id=user.user_id if user else None,
        user_role=user.role.value if user else None,
        action=action_for(request.method, path),
        entity_type=entity_type_for(path),
        entity_id=entity_id_for(request.path_params),
        method=request.method,
        path=path[:255],
        status_code=status_code,
        severity=AuditSeverity.ERROR if status_code >= 500 else AuditSeverity.INFO,
        ip_address=client_ip(request),
        user_agent=request.headers.get("User-Agent"),
        request_id=get_request_id(),
    )


async def write_entry(db: Database, entry: AuditLog) -> None:
    async with db.session() as session:
        session.add(entry)
        await session.commit()


class AuditLogMiddleware(BaseHTTPMiddleware):
    """
    Persist an audit entry per request on its own session.

    A failed write is logged and never changes the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        try:
            response = await call_next(request)
        except Exception:
            await self._record(request, 500)
            raise

        if should_record(response.status_code):
            await self._record(request, response.status_code)
        return response

    async def _record(self, request: Request, status_code: int) -> None:
        try:
            await write_entry(request.app.state.db, build_entry(request, status_code))
        except Exception:
            logger.warning(
                "Audit log write failed for %s %s",
                request.method,
                request.url.path,
                exc_info=True,
            )


def add_audit_middleware(app: FastAPI) -> None:
    app.add_middleware(AuditLogMiddleware)
