"""
Cron-triggered sync endpoints.

GET /api/cron/sync-sedo and /api/cron/sync-yandex are called once a day
by an external scheduler with "Authorization: Bearer <CRON_SECRET>".
Outside production the secret is not checked.
"""

import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.db import get_db
from src.models import AdNetwork
from src.services.cache import RevenueCache, get_cache
from src.services.sync import run_network_sync

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])


def verify_cron_request(request: Request) -> None:
    """Reject requests without the shared cron secret (production only)."""
    if not settings.is_production:
        return

    if not settings.cron_secret:
        logger.warning("CRON_SECRET not set - cron endpoints are disabled in production")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    expected = f"Bearer {settings.cron_secret}"
    provided = request.headers.get("Authorization", "")
    if not secrets.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


@router.get("/sync-{network}", dependencies=[Depends(verify_cron_request)])
async def cron_sync(
    network: AdNetwork,
    db: AsyncSession = Depends(get_db),
    cache: RevenueCache = Depends(get_cache),
):
    """
    Sync every active account of a network.

    Always answers 200 once authorized; failures are reported in the
    body (success=false, error, summary.errors).
    """
    return await run_network_sync(db, network, cache)
