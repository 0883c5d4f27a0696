"""Admin API router aggregation."""

from fastapi import APIRouter

from src.api.admin.audit import router as audit_router
from src.api.admin.cleanup import router as cleanup_router
from src.api.admin.domains import router as domains_router
from src.api.admin.network_accounts import router as network_accounts_router
from src.api.admin.reports import router as reports_router
from src.api.admin.settings import router as settings_router
from src.api.admin.users import router as users_router

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(domains_router)
admin_router.include_router(network_accounts_router)
admin_router.include_router(users_router)
admin_router.include_router(reports_router)
admin_router.include_router(settings_router)
admin_router.include_router(audit_router)
admin_router.include_router(cleanup_router)

__all__ = ["admin_router"]
