"""
Admin data cleanup: bulk removal of ledger and overview rows.

Overview rows are only ever a fold of the ledger, so deleting a
network's ledger rows also deletes that network's overview rows in the
same scope.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import AdNetwork, OverviewReport, User
from src.services.cache import RevenueCache
from src.services.reconciliation import LEDGER_MODELS, invalidate_revenue_caches

logger = logging.getLogger(__name__)

CLEANUP_TYPES = ("sedo", "yandex", "all")


def _networks(data_type: str) -> List[AdNetwork]:
    if data_type == "all":
        return list(LEDGER_MODELS)
    return [AdNetwork(data_type)]


async def cleanup_revenue_data(
    db: AsyncSession,
    data_type: str,
    user_id: Optional[int] = None,
    cache: Optional[RevenueCache] = None,
) -> Dict[str, int]:
    """
    Delete revenue rows for one network or all of them.

    Args:
        db: Database session. Committed here.
        data_type: "sedo", "yandex" or "all"
        user_id: Limit deletion to one user's rows; None is every user
        cache: Dashboard/sync-status entries are dropped afterwards

    Returns:
        Deleted row counts keyed "sedo", "yandex" and "overview"

    Raises:
        ValueError: unknown data_type
    """
    if data_type not in CLEANUP_TYPES:
        raise ValueError(f"Invalid type. Use one of: {', '.join(CLEANUP_TYPES)}")

    deleted = {"sedo": 0, "yandex": 0, "overview": 0}
    for network in _networks(data_type):
        model = LEDGER_MODELS[network]
        ledger_query = delete(model)
        overview_query = delete(OverviewReport).where(OverviewReport.network == network)
        if user_id is not None:
            ledger_query = ledger_query.where(model.user_id == user_id)
            overview_query = overview_query.where(OverviewReport.user_id == user_id)

        deleted[network.value] = (await db.execute(ledger_query)).rowcount or 0
        deleted["overview"] += (await db.execute(overview_query)).rowcount or 0

    await db.commit()
    invalidate_revenue_caches(cache)

    scope = f"user {user_id}" if user_id is not None else "all users"
    logger.warning(
        f"Cleanup '{data_type}' for {scope}: {deleted['sedo']} sedo, {deleted['yandex']} yandex, "
        f"{deleted['overview']} overview rows deleted"
    )
    return deleted


async def _counts_by_user(db: AsyncSession, model) -> Dict[int, int]:
    result = await db.execute(select(model.user_id, func.count(model.id)).group_by(model.user_id))
    return {user_id: count for user_id, count in result.all()}


async def get_data_counts(db: AsyncSession) -> Dict:
    """Row counts per user and in total, for review before a cleanup."""
    per_table = {
        "sedo_records": await _counts_by_user(db, LEDGER_MODELS[AdNetwork.SEDO]),
        "yandex_records": await _counts_by_user(db, LEDGER_MODELS[AdNetwork.YANDEX]),
        "overview_records": await _counts_by_user(db, OverviewReport),
    }

    user_ids = sorted(set().union(*per_table.values()))
    users = {}
    if user_ids:
        result = await db.execute(select(User).where(User.id.in_(user_ids)))
        users = {u.id: u for u in result.scalars().all()}

    data_by_user = [
        {
            "user_id": user_id,
            "username": users[user_id].username if user_id in users else None,
            "role": users[user_id].role.value if user_id in users else None,
            **{name: counts.get(user_id, 0) for name, counts in per_table.items()},
        }
        for user_id in user_ids
    ]
    return {
        "data_by_user": data_by_user,
        "totals": {name: sum(counts.values()) for name, counts in per_table.items()},
    }
