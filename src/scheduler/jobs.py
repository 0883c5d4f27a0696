"""
Background job definitions using APScheduler.

Jobs include:
- Cache cleanup (hourly)
- Daily Sedo and Yandex syncs (only with SCHEDULER_ENABLED, for
  deployments without an external cron calling /api/cron/*)
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from src.config import settings
from src.db import get_db_context
from src.models import AdNetwork
from src.services.cache import RevenueCache
from src.services.sync import run_network_sync

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def cache_cleanup_job(cache: RevenueCache):
    removed = cache.cleanup()
    if removed:
        logger.debug(f"Cache cleanup: removed {removed} entries")


async def network_sync_job(network: AdNetwork, cache: RevenueCache):
    """Same run as GET /api/cron/sync-{network}."""
    logger.info(f"Scheduled {network.value} sync starting")
    try:
        async with get_db_context() as db:
            result = await run_network_sync(db, network, cache)
        logger.info(f"Scheduled {network.value} sync finished: success={result['success']}")
    except Exception as e:
        logger.error(f"Scheduled {network.value} sync error: {e}")


def setup_scheduler(cache: RevenueCache):
    """
    Configure and add all scheduled jobs.

    Called during application startup.
    """
    scheduler.add_job(
        cache_cleanup_job,
        trigger=IntervalTrigger(hours=1),
        args=[cache],
        id="cache_cleanup",
        name="Drop expired cache entries",
        replace_existing=True,
    )

    if settings.scheduler_enabled:
        for network, hour in (
            (AdNetwork.SEDO, settings.sedo_sync_hour),
            (AdNetwork.YANDEX, settings.yandex_sync_hour),
        ):
            scheduler.add_job(
                network_sync_job,
                trigger=CronTrigger(hour=hour, minute=0, timezone="UTC"),
                args=[network, cache],
                id=f"{network.value}_sync",
                name=f"Daily {network.value} sync",
                replace_existing=True,
            )

    logger.info(f"Scheduler configured (daily syncs: {settings.scheduler_enabled})")
