"""API key report endpoints: a user's own overview rows as JSON or CSV."""

import csv
import io
import logging
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import ApiKeyAccess, require_api_key
from src.db import get_db
from src.schemas.api_key import ApiReportResponse, ApiSummaryResponse
from src.services.api_keys import SCOPE_REPORTS_EXPORT
from src.services.reports import api_date_range, get_api_report, get_api_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports")

CSV_COLUMNS = ["date", "network", "domain", "revenue", "impressions", "clicks", "ctr", "rpm", "currency"]


def _to_csv(report: ApiReportResponse) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for row in report.data:
        writer.writerow([
            row.date.isoformat(),
            row.network,
            row.domain or "",
            f"{row.revenue:.2f}",
            row.impressions,
            row.clicks,
            f"{row.ctr:.2f}" if row.ctr is not None else "",
            f"{row.rpm:.2f}" if row.rpm is not None else "",
            row.currency,
        ])
    return buffer.getvalue()


@router.get("", response_model=ApiReportResponse)
async def revenue_report(
    response: Response,
    db: AsyncSession = Depends(get_db),
    access: ApiKeyAccess = Depends(require_api_key),
    start_date: Optional[date] = Query(None, description="Defaults to 30 days before end_date"),
    end_date: Optional[date] = Query(None, description="Defaults to today"),
    domain: Optional[str] = Query(None),
    format: Literal["json", "csv"] = Query("json"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """
    Overview rows of the key's owner, newest first.

    format=csv needs the reports:export scope.
    """
    rate_headers = access.rate_limit.headers()
    if format == "csv" and not access.has_scope(SCOPE_REPORTS_EXPORT):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"API key does not have '{SCOPE_REPORTS_EXPORT}' permission",
            headers=rate_headers,
        )

    period = api_date_range(start_date, end_date)
    report = await get_api_report(db, access.user_id, period, domain=domain, limit=limit, offset=offset)
    logger.info(f"API key {access.api_key.id}: {len(report.data)} report rows as {format}")

    if format == "csv":
        filename = f"revenue-report-{period.start.isoformat()}-to-{period.end.isoformat()}.csv"
        return Response(
            content=_to_csv(report),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"', **rate_headers},
        )

    response.headers.update(rate_headers)
    return report


@router.get("/summary", response_model=ApiSummaryResponse, response_model_exclude_none=True)
async def revenue_summary(
    response: Response,
    db: AsyncSession = Depends(get_db),
    access: ApiKeyAccess = Depends(require_api_key),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    group_by: str = Query("none", description="none, day, domain or network"),
):
    response.headers.update(access.rate_limit.headers())
    try:
        return await get_api_summary(db, access.user_id, api_date_range(start_date, end_date), group_by=group_by)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
            headers=access.rate_limit.headers(),
        )
