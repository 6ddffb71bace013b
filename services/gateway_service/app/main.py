"""FastAPI application entrypoint.

Composes the members, sessions, attendance and reporting routers under
``/api`` and owns the database lifecycle: the ``Database`` is opened when
the app starts and disposed when it stops.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from libs.common.audit import add_audit_middleware
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from libs.db.config import Database
from services.attendance_service.routers import (
    attendance_router,
    qrcode_router,
    scan_router,
)
from services.members_service.routers import cells_router, members_router
from services.reporting_service.routers import dashboard_router, export_router
from services.sessions_service.routers import sessions_router

logger = get_logger(__name__)

API_PREFIX = "/api"


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    ``database`` lets callers supply an already configured instance;
    otherwise one is built from settings.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = app.state.db
        db.open()
        logger.info("%s started (%s)", settings.APP_NAME, settings.ENVIRONMENT)
        try:
            yield
        finally:
            await db.close()

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Church membership and QR attendance API.",
        lifespan=lifespan,
    )
    app.state.db = database or Database.from_settings(settings)

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Audit trail; sits inside the request context so rows carry the request id
    add_audit_middleware(app)

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"status": "ok"}

    for router in (
        members_router,
        cells_router,
        sessions_router,
        attendance_router,
        scan_router,
        qrcode_router,
        dashboard_router,
        export_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    return app


app = create_app()
