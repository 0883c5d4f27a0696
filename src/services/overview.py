"""
Overview folding: network ledgers -> overview_reports.

Every run re-derives the overview rows of one network (optionally one
user) from the full ledger, so it can be repeated safely.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import AdNetwork, OverviewReport
from src.services.cache import RevenueCache
from src.services.reconciliation import (
    LEDGER_CURRENCIES,
    LEDGER_MODELS,
    calculate_ctr,
    calculate_rpm,
    invalidate_revenue_caches,
    match_nullable,
)
from src.services.revenue_share import CENT

logger = logging.getLogger(__name__)


@dataclass
class OverviewResult:
    synced: int = 0
    removed: int = 0
    errors: List[str] = field(default_factory=list)

    def merge(self, other: "OverviewResult") -> "OverviewResult":
        self.synced += other.synced
        self.removed += other.removed
        self.errors.extend(other.errors)
        return self


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


async def sync_overview(
    db: AsyncSession,
    network: AdNetwork,
    user_id: Optional[int] = None,
    cache: Optional[RevenueCache] = None,
) -> OverviewResult:
    """
    Rebuild overview rows for a network from its ledger.

    Ledger rows sharing (user, date, domain) are summed; CTR and RPM are
    recomputed from the sums. user_id=None folds every user. Overview
    rows in scope with no remaining ledger rows are deleted. Dashboard
    and sync-status cache entries are dropped once the fold has written.
    """
    model = LEDGER_MODELS[network]
    result = OverviewResult()

    query = select(
        model.user_id,
        model.date,
        model.domain,
        func.sum(model.gross_revenue),
        func.sum(model.net_revenue),
        func.sum(model.impressions),
        func.sum(model.clicks),
    ).group_by(model.user_id, model.date, model.domain)
    if user_id is not None:
        query = query.where(model.user_id == user_id)

    groups = (await db.execute(query)).all()
    folded_keys = set()

    for owner_id, day, domain, gross, net, impressions, clicks in groups:
        folded_keys.add((owner_id, day, domain))
        impressions = int(impressions or 0)
        clicks = int(clicks or 0)
        gross = _money(gross)
        try:
            existing = await db.execute(
                select(OverviewReport).where(
                    OverviewReport.network == network,
                    OverviewReport.user_id == owner_id,
                    OverviewReport.date == day,
                    match_nullable(OverviewReport.domain, domain),
                )
            )
            row = existing.scalars().first()
            if row is None:
                row = OverviewReport(network=network, user_id=owner_id, date=day, domain=domain)
                db.add(row)

            row.currency = LEDGER_CURRENCIES[network]
            row.gross_revenue = gross
            row.net_revenue = _money(net)
            row.impressions = impressions
            row.clicks = clicks
            row.ctr = calculate_ctr(clicks, impressions)
            row.rpm = calculate_rpm(gross, impressions)
            await db.commit()
            result.synced += 1
        except Exception as e:
            await db.rollback()
            message = f"Failed to sync {network.value} overview {day} {domain or '(aggregate)'} for user {owner_id}: {e}"
            logger.error(message)
            result.errors.append(message)

    result.removed = await _remove_orphans(db, network, user_id, folded_keys)
    if result.synced or result.removed:
        invalidate_revenue_caches(cache)

    logger.info(
        f"{network.value} overview: {result.synced} synced, {result.removed} removed, "
        f"{len(result.errors)} errors"
    )
    return result


async def _remove_orphans(
    db: AsyncSession,
    network: AdNetwork,
    user_id: Optional[int],
    folded_keys: set,
) -> int:
    query = select(OverviewReport.id, OverviewReport.user_id, OverviewReport.date, OverviewReport.domain).where(
        OverviewReport.network == network
    )
    if user_id is not None:
        query = query.where(OverviewReport.user_id == user_id)

    orphan_ids = [
        row_id
        for row_id, owner_id, day, domain in (await db.execute(query)).all()
        if (owner_id, day, domain) not in folded_keys
    ]
    if not orphan_ids:
        return 0

    await db.execute(delete(OverviewReport).where(OverviewReport.id.in_(orphan_ids)))
    await db.commit()
    return len(orphan_ids)
