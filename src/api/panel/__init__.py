"""Panel API router aggregation."""

from fastapi import APIRouter

from src.api.panel.api_keys import router as api_keys_router
from src.api.panel.dashboard import router as dashboard_router
from src.api.panel.domains import router as domains_router
from src.api.panel.sync import router as sync_router

panel_router = APIRouter(prefix="/panel", tags=["Panel"])

panel_router.include_router(dashboard_router, prefix="/dashboard")
panel_router.include_router(domains_router)
panel_router.include_router(sync_router)
panel_router.include_router(api_keys_router)

__all__ = ["panel_router"]
