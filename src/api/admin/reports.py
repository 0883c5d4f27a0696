"""Admin report API endpoints (all users, gross included)."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_admin
from src.db import get_db
from src.models import AdNetwork, User
from src.schemas.dashboard import OverviewReportResponse, SyncStatusResponse
from src.services.cache import RevenueCache, get_cache
from src.services.reports import get_overview_report, get_sync_status

router = APIRouter(prefix="/reports")


@router.get("/overview", response_model=OverviewReportResponse)
async def overview_report(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    user_id: Optional[int] = Query(None, description="Omit for every user"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    network: Optional[AdNetwork] = Query(None),
    domain: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=10000),
):
    return await get_overview_report(
        db,
        user_id,
        start_date=start_date,
        end_date=end_date,
        network=network,
        domain=domain,
        limit=limit,
        include_gross=True,
    )


@router.get("/sync-status", response_model=SyncStatusResponse)
async def sync_status(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    cache: RevenueCache = Depends(get_cache),
):
    return await get_sync_status(db, cache, user_id=None)
