"""Reporting service routers package."""

from services.reporting_service.routers.dashboard import router as dashboard_router
from services.reporting_service.routers.export import router as export_router

__all__ = [
    "dashboard_router",
    "export_router",
]
