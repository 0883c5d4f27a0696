"""API router aggregation."""

from fastapi import APIRouter

from src.api.admin import admin_router
from src.api.auth import router as auth_router
from src.api.cron import router as cron_router
from src.api.health import router as health_router
from src.api.panel import panel_router
from src.api.v1 import v1_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(cron_router)
api_router.include_router(admin_router)
api_router.include_router(panel_router)
api_router.include_router(v1_router)

__all__ = ["api_router"]
