"""Panel dashboard API endpoints.

Figures are the caller's own. Gross revenue is only included for admins.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.db import get_db
from src.models import AdNetwork, User
from src.schemas.dashboard import (
    DashboardSummary,
    OverviewReportResponse,
    RevenueComparison,
    SyncStatusResponse,
)
from src.services.cache import RevenueCache, get_cache
from src.services.reports import (
    get_dashboard_summary,
    get_overview_report,
    get_revenue_comparison,
    get_sync_status,
)

router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
async def dashboard_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: RevenueCache = Depends(get_cache),
    period: str = Query("current", pattern="^(current|last)$"),
):
    return await get_dashboard_summary(
        db, current_user.id, cache, period=period, include_gross=current_user.is_admin
    )


@router.get("/comparison", response_model=RevenueComparison)
async def revenue_comparison(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: RevenueCache = Depends(get_cache),
):
    return await get_revenue_comparison(db, current_user.id, cache, include_gross=current_user.is_admin)


@router.get("/overview", response_model=OverviewReportResponse)
async def overview(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    network: Optional[AdNetwork] = Query(None),
    domain: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=10000),
):
    return await get_overview_report(
        db,
        current_user.id,
        start_date=start_date,
        end_date=end_date,
        network=network,
        domain=domain,
        limit=limit,
        include_gross=current_user.is_admin,
    )


@router.get("/sync-status", response_model=SyncStatusResponse)
async def sync_status(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cache: RevenueCache = Depends(get_cache),
):
    return await get_sync_status(db, cache, user_id=current_user.id)
