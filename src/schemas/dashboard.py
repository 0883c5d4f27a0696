"""Dashboard and report schemas.

gross_revenue fields are None in responses served to publishers.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RevenueTotals(BaseModel):
    """Summed metrics with derived CTR/RPM."""

    gross_revenue: Optional[Decimal] = None
    net_revenue: Decimal = Decimal("0.00")
    impressions: int = 0
    clicks: int = 0
    ctr: Decimal = Decimal("0.00")  # percentage
    rpm: Decimal = Decimal("0.00")


class NetworkBreakdown(BaseModel):
    network: str
    gross_revenue: Optional[Decimal] = None
    net_revenue: Decimal
    impressions: int
    clicks: int


class DailyPoint(BaseModel):
    """One day, all networks combined."""

    date: date
    gross_revenue: Optional[Decimal] = None
    net_revenue: Decimal
    impressions: int
    clicks: int


class TopDomain(BaseModel):
    domain: str
    gross_revenue: Optional[Decimal] = None
    net_revenue: Decimal


class DateRange(BaseModel):
    start: date
    end: date


class DashboardSummary(BaseModel):
    """Dashboard cards, chart and top domains for one period."""

    period: str
    date_range: DateRange
    totals: RevenueTotals
    by_network: List[NetworkBreakdown]
    daily_data: List[DailyPoint]
    top_domains: List[TopDomain]


class PeriodMetrics(BaseModel):
    gross_revenue: Optional[Decimal] = None
    net_revenue: Decimal = Decimal("0.00")
    impressions: int = 0
    clicks: int = 0


class MetricChange(BaseModel):
    value: Decimal
    percent: Decimal


class RevenueComparison(BaseModel):
    """Month to date against the same days of the previous month."""

    current: PeriodMetrics
    previous: PeriodMetrics
    change: Dict[str, MetricChange]


class OverviewRow(BaseModel):
    """Overview report row."""

    date: date
    network: str
    domain: Optional[str]
    currency: str
    gross_revenue: Optional[Decimal] = None
    net_revenue: Decimal
    impressions: int
    clicks: int
    ctr: Optional[Decimal]
    rpm: Optional[Decimal]
    user_id: int


class OverviewReportResponse(BaseModel):
    data: List[OverviewRow]
    summary: RevenueTotals


class LastSync(BaseModel):
    sedo: Optional[datetime] = None
    yandex: Optional[datetime] = None
    overall: Optional[datetime] = None


class SyncStatusResponse(BaseModel):
    """Last ledger writes and row counts, per network."""

    last_sync: LastSync
    last_scheduled_sync: Dict[str, Optional[str]] = Field(default_factory=dict)
    record_counts: Dict[str, int]
