"""Attendance service routers package."""

from services.attendance_service.routers.attendance import router as attendance_router
from services.attendance_service.routers.attendance import scan_router
from services.attendance_service.routers.qrcode import router as qrcode_router

__all__ = [
    "attendance_router",
    "qrcode_router",
    "scan_router",
]
