"""
In-process TTL cache for dashboard and sync-status queries.

One RevenueCache instance is created per process (in the app lifespan)
and passed to whatever needs it. It is not shared between instances.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from cachetools import TLRUCache
from fastapi import Request

logger = logging.getLogger(__name__)


class CacheTTL:
    """TTL classes in seconds."""
    SHORT = 30       # sync-status polling
    MEDIUM = 300     # dashboard aggregates


class CacheKeys:
    """Key builders. Invalidation works on the prefixes."""

    DASHBOARD_PREFIX = "dashboard:"
    SYNC_STATUS_PREFIX = "sync-status:"

    @staticmethod
    def dashboard_summary(user_id: int, period: str) -> str:
        return f"dashboard:{user_id}:{period}"

    @staticmethod
    def revenue_comparison(user_id: int) -> str:
        return f"dashboard:{user_id}:comparison"

    @staticmethod
    def sync_status(user_id: Optional[int] = None) -> str:
        return f"sync-status:{user_id if user_id is not None else 'all'}"


@dataclass
class _Entry:
    value: Any
    ttl: int


def _time_to_use(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class RevenueCache:
    """
    TLRU cache (cachetools) with per-entry TTL and prefix invalidation.

    When full, the entry closest to expiry is evicted first.

    Usage:
        summary = await cache.get_or_compute(
            CacheKeys.dashboard_summary(user.id, "current"),
            lambda: build_summary(db, user.id),
            CacheTTL.MEDIUM,
        )
    """

    def __init__(self, max_size: int = 1000, clock: Callable[[], float] = time.monotonic):
        self.max_size = max_size
        self._cache: TLRUCache = TLRUCache(maxsize=max_size, ttu=_time_to_use, timer=clock)

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None when missing or expired."""
        entry = self._cache.get(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, ttl: int = CacheTTL.SHORT) -> None:
        self._cache[key] = _Entry(value=value, ttl=ttl)

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[Any]],
        ttl: int = CacheTTL.SHORT,
    ) -> Any:
        """Return the cached value or await compute() and store its result."""
        value = self.get(key)
        if value is not None:
            return value
        value = await compute()
        self.set(key, value, ttl)
        return value

    def invalidate(self, key: str) -> None:
        self._cache.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every live key starting with prefix. Returns how many were dropped."""
        self._cache.expire()
        keys = [key for key in list(self._cache.keys()) if key.startswith(prefix)]
        for key in keys:
            del self._cache[key]
        if keys:
            logger.debug(f"Invalidated {len(keys)} cache entries under '{prefix}'")
        return len(keys)

    def clear(self) -> None:
        self._cache.clear()

    def cleanup(self) -> int:
        """Remove expired entries. Returns how many were removed."""
        return len(self._cache.expire())


def get_cache(request: Request) -> RevenueCache:
    """FastAPI dependency: the process-wide cache created in the lifespan."""
    return request.app.state.cache
