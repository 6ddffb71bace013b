"""Members service routers package."""

from services.members_service.routers.cells import router as cells_router
from services.members_service.routers.members import router as members_router

__all__ = [
    "cells_router",
    "members_router",
]
