"""
Read-only revenue reports built from overview_reports and the ledgers.

Dashboard summaries and sync status go through the shared RevenueCache;
the reconciliation engine drops those entries after every write.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import AdNetwork, OverviewReport
from src.schemas.api_key import (
    ApiPeriod,
    ApiReportFilters,
    ApiReportResponse,
    ApiReportRow,
    ApiSummaryGroup,
    ApiSummaryResponse,
    ApiSummaryTotals,
    Pagination,
)
from src.schemas.dashboard import (
    DailyPoint,
    DashboardSummary,
    DateRange,
    LastSync,
    MetricChange,
    NetworkBreakdown,
    OverviewReportResponse,
    OverviewRow,
    PeriodMetrics,
    RevenueComparison,
    RevenueTotals,
    SyncStatusResponse,
    TopDomain,
)
from src.services.cache import CacheKeys, CacheTTL, RevenueCache
from src.services.reconciliation import LEDGER_MODELS, calculate_ctr, calculate_rpm
from src.services.revenue_share import CENT
from src.services.system_settings import get_setting

TOP_DOMAINS_LIMIT = 5


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def _today() -> date:
    return datetime.now(timezone.utc).date()


def period_range(period: str, today: Optional[date] = None) -> DateRange:
    """'current' is month to date, 'last' is the whole previous month."""
    today = today or _today()
    if period == "last":
        end = today.replace(day=1) - timedelta(days=1)
        return DateRange(start=end.replace(day=1), end=end)
    return DateRange(start=today.replace(day=1), end=today)


def _totals(gross, net, impressions, clicks, include_gross: bool) -> RevenueTotals:
    gross = _money(gross)
    impressions = int(impressions or 0)
    clicks = int(clicks or 0)
    return RevenueTotals(
        gross_revenue=gross if include_gross else None,
        net_revenue=_money(net),
        impressions=impressions,
        clicks=clicks,
        ctr=calculate_ctr(clicks, impressions) or Decimal("0.00"),
        rpm=calculate_rpm(gross, impressions) or Decimal("0.00"),
    )


def _sums():
    return (
        func.sum(OverviewReport.gross_revenue),
        func.sum(OverviewReport.net_revenue),
        func.sum(OverviewReport.impressions),
        func.sum(OverviewReport.clicks),
    )


async def build_dashboard_summary(
    db: AsyncSession,
    user_id: int,
    period: str = "current",
    include_gross: bool = False,
    today: Optional[date] = None,
) -> DashboardSummary:
    """Totals, per-network split, daily series and top domains for one user."""
    date_range = period_range(period, today)
    scope = (
        OverviewReport.user_id == user_id,
        OverviewReport.date >= date_range.start,
        OverviewReport.date <= date_range.end,
    )

    totals_row = (await db.execute(select(*_sums()).where(*scope))).one()

    network_rows = await db.execute(
        select(OverviewReport.network, *_sums())
        .where(*scope)
        .group_by(OverviewReport.network)
        .order_by(OverviewReport.network)
    )
    by_network = [
        NetworkBreakdown(
            network=network.value if isinstance(network, AdNetwork) else str(network),
            gross_revenue=_money(gross) if include_gross else None,
            net_revenue=_money(net),
            impressions=int(impressions or 0),
            clicks=int(clicks or 0),
        )
        for network, gross, net, impressions, clicks in network_rows.all()
    ]

    daily_rows = await db.execute(
        select(OverviewReport.date, *_sums())
        .where(*scope)
        .group_by(OverviewReport.date)
        .order_by(OverviewReport.date)
    )
    daily_data = [
        DailyPoint(
            date=day,
            gross_revenue=_money(gross) if include_gross else None,
            net_revenue=_money(net),
            impressions=int(impressions or 0),
            clicks=int(clicks or 0),
        )
        for day, gross, net, impressions, clicks in daily_rows.all()
    ]

    gross_sum = func.sum(OverviewReport.gross_revenue)
    domain_rows = await db.execute(
        select(OverviewReport.domain, gross_sum, func.sum(OverviewReport.net_revenue))
        .where(*scope)
        .group_by(OverviewReport.domain)
        .order_by(gross_sum.desc())
        .limit(TOP_DOMAINS_LIMIT)
    )
    top_domains = [
        TopDomain(
            domain=domain or "All Domains",
            gross_revenue=_money(gross) if include_gross else None,
            net_revenue=_money(net),
        )
        for domain, gross, net in domain_rows.all()
    ]

    return DashboardSummary(
        period=period,
        date_range=date_range,
        totals=_totals(*totals_row, include_gross=include_gross),
        by_network=by_network,
        daily_data=daily_data,
        top_domains=top_domains,
    )


async def get_dashboard_summary(
    db: AsyncSession,
    user_id: int,
    cache: RevenueCache,
    period: str = "current",
    include_gross: bool = False,
) -> DashboardSummary:
    return await cache.get_or_compute(
        CacheKeys.dashboard_summary(user_id, period),
        lambda: build_dashboard_summary(db, user_id, period, include_gross),
        CacheTTL.MEDIUM,
    )


def _change(current: Decimal, previous: Decimal) -> MetricChange:
    current = Decimal(str(current))
    previous = Decimal(str(previous))
    if previous > 0:
        percent = ((current - previous) / previous * 100).quantize(CENT, rounding=ROUND_HALF_UP)
    elif current > 0:
        percent = Decimal("100")
    else:
        percent = Decimal("0")
    return MetricChange(value=(current - previous).quantize(CENT, rounding=ROUND_HALF_UP), percent=percent)


async def _period_metrics(db: AsyncSession, user_id: int, start: date, end: date) -> PeriodMetrics:
    gross, net, impressions, clicks = (
        await db.execute(
            select(*_sums()).where(
                OverviewReport.user_id == user_id,
                OverviewReport.date >= start,
                OverviewReport.date <= end,
            )
        )
    ).one()
    return PeriodMetrics(
        gross_revenue=_money(gross),
        net_revenue=_money(net),
        impressions=int(impressions or 0),
        clicks=int(clicks or 0),
    )


async def build_revenue_comparison(
    db: AsyncSession,
    user_id: int,
    include_gross: bool = False,
    today: Optional[date] = None,
) -> RevenueComparison:
    """Month to date against the same day span of the previous month."""
    today = today or _today()
    previous_end_of_month = today.replace(day=1) - timedelta(days=1)
    previous_start = previous_end_of_month.replace(day=1)
    last_day = calendar.monthrange(previous_start.year, previous_start.month)[1]
    previous_end = previous_start.replace(day=min(today.day, last_day))

    current = await _period_metrics(db, user_id, today.replace(day=1), today)
    previous = await _period_metrics(db, user_id, previous_start, previous_end)

    fields = ["net_revenue", "impressions", "clicks"]
    if include_gross:
        fields.insert(0, "gross_revenue")
    change = {name: _change(getattr(current, name), getattr(previous, name)) for name in fields}

    if not include_gross:
        current.gross_revenue = None
        previous.gross_revenue = None
    return RevenueComparison(current=current, previous=previous, change=change)


async def get_revenue_comparison(
    db: AsyncSession,
    user_id: int,
    cache: RevenueCache,
    include_gross: bool = False,
) -> RevenueComparison:
    return await cache.get_or_compute(
        CacheKeys.revenue_comparison(user_id),
        lambda: build_revenue_comparison(db, user_id, include_gross),
        CacheTTL.MEDIUM,
    )


async def get_overview_report(
    db: AsyncSession,
    user_id: Optional[int],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    network: Optional[AdNetwork] = None,
    domain: Optional[str] = None,
    limit: Optional[int] = None,
    include_gross: bool = False,
) -> OverviewReportResponse:
    """Overview rows, newest first, with a summary over the returned rows. user_id=None is every user."""
    query = select(OverviewReport)
    if user_id is not None:
        query = query.where(OverviewReport.user_id == user_id)
    if start_date:
        query = query.where(OverviewReport.date >= start_date)
    if end_date:
        query = query.where(OverviewReport.date <= end_date)
    if network:
        query = query.where(OverviewReport.network == network)
    if domain:
        query = query.where(OverviewReport.domain == domain.strip().lower())
    query = query.order_by(OverviewReport.date.desc(), OverviewReport.id)
    if limit:
        query = query.limit(limit)

    rows = list((await db.execute(query)).scalars().all())

    data = [
        OverviewRow(
            date=row.date,
            network=row.network.value,
            domain=row.domain,
            currency=row.currency,
            gross_revenue=row.gross_revenue if include_gross else None,
            net_revenue=row.net_revenue,
            impressions=row.impressions,
            clicks=row.clicks,
            ctr=row.ctr,
            rpm=row.rpm,
            user_id=row.user_id,
        )
        for row in rows
    ]
    summary = _totals(
        sum((r.gross_revenue for r in rows), Decimal("0")),
        sum((r.net_revenue for r in rows), Decimal("0")),
        sum(r.impressions for r in rows),
        sum(r.clicks for r in rows),
        include_gross=include_gross,
    )
    return OverviewReportResponse(data=data, summary=summary)


async def build_sync_status(db: AsyncSession, user_id: Optional[int] = None) -> SyncStatusResponse:
    last_sync = {}
    record_counts = {}
    for network, model in LEDGER_MODELS.items():
        query = select(
            func.max(func.coalesce(model.updated_at, model.created_at)),
            func.count(model.id),
        )
        if user_id is not None:
            query = query.where(model.user_id == user_id)
        latest, count = (await db.execute(query)).one()
        last_sync[network.value] = latest
        record_counts[network.value] = count or 0

    overview_query = select(func.count(OverviewReport.id))
    if user_id is not None:
        overview_query = overview_query.where(OverviewReport.user_id == user_id)
    record_counts["overview"] = (await db.scalar(overview_query)) or 0

    times = [t for t in last_sync.values() if t is not None]
    scheduled = {
        network.value: await get_setting(db, f"last_{network.value}_sync")
        for network in LEDGER_MODELS
    }
    return SyncStatusResponse(
        last_sync=LastSync(**last_sync, overall=max(times) if times else None),
        last_scheduled_sync=scheduled,
        record_counts=record_counts,
    )


async def get_sync_status(
    db: AsyncSession,
    cache: RevenueCache,
    user_id: Optional[int] = None,
) -> SyncStatusResponse:
    return await cache.get_or_compute(
        CacheKeys.sync_status(user_id),
        lambda: build_sync_status(db, user_id),
        CacheTTL.SHORT,
    )


API_DEFAULT_WINDOW_DAYS = 30
SUMMARY_GROUPS = ("none", "day", "domain", "network")


def api_date_range(start_date: Optional[date], end_date: Optional[date]) -> DateRange:
    """Missing bounds default to the 30 days ending today (or at end_date)."""
    end = end_date or _today()
    start = start_date or end - timedelta(days=API_DEFAULT_WINDOW_DAYS)
    return DateRange(start=start, end=end)


def _user_period(user_id: int, period: DateRange, domain: Optional[str] = None) -> list:
    conditions = [
        OverviewReport.user_id == user_id,
        OverviewReport.date >= period.start,
        OverviewReport.date <= period.end,
    ]
    if domain:
        conditions.append(OverviewReport.domain == domain.strip().lower())
    return conditions


async def get_api_report(
    db: AsyncSession,
    user_id: int,
    period: DateRange,
    domain: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> ApiReportResponse:
    """A page of a user's overview rows, newest first, with net revenue only."""
    conditions = _user_period(user_id, period, domain)
    total = (await db.scalar(select(func.count(OverviewReport.id)).where(*conditions))) or 0
    rows = (
        await db.execute(
            select(OverviewReport)
            .where(*conditions)
            .order_by(OverviewReport.date.desc(), OverviewReport.id)
            .limit(limit)
            .offset(offset)
        )
    ).scalars().all()

    return ApiReportResponse(
        data=[
            ApiReportRow(
                date=row.date,
                network=row.network.value,
                domain=row.domain,
                revenue=_money(row.net_revenue),
                impressions=row.impressions,
                clicks=row.clicks,
                ctr=row.ctr,
                rpm=row.rpm,
                currency=row.currency,
            )
            for row in rows
        ],
        pagination=Pagination(total=total, limit=limit, offset=offset, has_more=offset + len(rows) < total),
        filters=ApiReportFilters(start_date=period.start, end_date=period.end, domain=domain),
    )


async def get_api_summary(
    db: AsyncSession,
    user_id: int,
    period: DateRange,
    group_by: str = "none",
) -> ApiSummaryResponse:
    """
    Net revenue totals for a user over a period.

    group_by="none" gives one total with the row count; "day" is ordered
    by date, "domain" and "network" by revenue descending.

    Raises:
        ValueError: unknown group_by
    """
    if group_by not in SUMMARY_GROUPS:
        raise ValueError(f"Invalid groupBy. Use one of: {', '.join(SUMMARY_GROUPS)}")

    conditions = _user_period(user_id, period)
    sums = (
        func.sum(OverviewReport.net_revenue),
        func.sum(OverviewReport.impressions),
        func.sum(OverviewReport.clicks),
    )
    response_period = ApiPeriod(start_date=period.start, end_date=period.end)

    if group_by == "none":
        net, impressions, clicks, count = (
            await db.execute(select(*sums, func.count(OverviewReport.id)).where(*conditions))
        ).one()
        return ApiSummaryResponse(
            summary=ApiSummaryTotals(
                revenue=_money(net),
                impressions=int(impressions or 0),
                clicks=int(clicks or 0),
                record_count=count or 0,
            ),
            period=response_period,
        )

    column = {
        "day": OverviewReport.date,
        "domain": OverviewReport.domain,
        "network": OverviewReport.network,
    }[group_by]
    query = select(column, *sums).where(*conditions).group_by(column)
    if group_by == "day":
        query = query.order_by(column)
    else:
        query = query.order_by(func.sum(OverviewReport.net_revenue).desc())

    data = []
    for key, net, impressions, clicks in (await db.execute(query)).all():
        group = ApiSummaryGroup(revenue=_money(net), impressions=int(impressions or 0), clicks=int(clicks or 0))
        if group_by == "day":
            group.date = key
        elif group_by == "domain":
            group.domain = key or "Unknown"
        else:
            group.network = key.value if isinstance(key, AdNetwork) else key
        data.append(group)

    return ApiSummaryResponse(group_by=group_by, data=data, period=response_period)
