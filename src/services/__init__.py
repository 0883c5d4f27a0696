"""Business logic services."""

from src.services.cache import CacheKeys, CacheTTL, RevenueCache
from src.services.overview import sync_overview
from src.services.reconciliation import save_revenue, save_sedo_revenue, save_yandex_revenue
from src.services.sync import run_manual_sync, run_network_sync

__all__ = [
    "RevenueCache",
    "CacheKeys",
    "CacheTTL",
    "save_revenue",
    "save_sedo_revenue",
    "save_yandex_revenue",
    "sync_overview",
    "run_network_sync",
    "run_manual_sync",
]
