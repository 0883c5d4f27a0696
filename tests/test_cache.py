"""
Tests for the revenue TTL cache:
- TTL expiry with an injected clock
- get_or_compute only computes on a miss
- Prefix invalidation used after ledger writes
- Size bound
"""

import pytest

from src.services.cache import CacheKeys, CacheTTL, RevenueCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestTTL:
    def test_ttl_values(self):
        assert CacheTTL.SHORT == 30
        assert CacheTTL.MEDIUM == 300
        assert not hasattr(CacheTTL, "LONG")

    def test_entry_expires(self, clock):
        cache = RevenueCache(clock=clock)
        cache.set("sync-status:all", {"ok": True}, CacheTTL.SHORT)

        clock.now += 29
        assert cache.get("sync-status:all") == {"ok": True}

        clock.now += 1
        assert cache.get("sync-status:all") is None
        assert len(cache) == 0

    def test_cleanup_removes_expired(self, clock):
        cache = RevenueCache(clock=clock)
        cache.set("a", 1, 10)
        cache.set("b", 2, 100)
        clock.now += 50

        assert cache.cleanup() == 1
        assert cache.get("b") == 2


class TestGetOrCompute:
    @pytest.mark.asyncio
    async def test_computes_once(self, clock):
        cache = RevenueCache(clock=clock)
        calls = []

        async def compute():
            calls.append(1)
            return {"total": 5}

        first = await cache.get_or_compute("dashboard:1:current", compute, CacheTTL.MEDIUM)
        second = await cache.get_or_compute("dashboard:1:current", compute, CacheTTL.MEDIUM)

        assert first == second == {"total": 5}
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_recomputes_after_expiry(self, clock):
        cache = RevenueCache(clock=clock)
        values = iter([1, 2])

        async def compute():
            return next(values)

        assert await cache.get_or_compute("k", compute, 10) == 1
        clock.now += 10
        assert await cache.get_or_compute("k", compute, 10) == 2


class TestInvalidation:
    def test_prefix_invalidation(self):
        cache = RevenueCache()
        cache.set(CacheKeys.dashboard_summary(1, "current"), "a")
        cache.set(CacheKeys.revenue_comparison(2), "b")
        cache.set(CacheKeys.sync_status(None), "c")
        cache.set("reports:1", "d")

        assert cache.invalidate_prefix(CacheKeys.DASHBOARD_PREFIX) == 2
        assert cache.invalidate_prefix(CacheKeys.SYNC_STATUS_PREFIX) == 1
        assert cache.get("reports:1") == "d"

    def test_key_formats(self):
        assert CacheKeys.dashboard_summary(3, "last") == "dashboard:3:last"
        assert CacheKeys.sync_status(4) == "sync-status:4"
        assert CacheKeys.sync_status() == "sync-status:all"


def test_max_size_evicts_soonest_expiring(clock):
    cache = RevenueCache(max_size=2, clock=clock)
    cache.set("short", 1, 10)
    cache.set("long", 2, 100)
    cache.set("medium", 3, 50)

    assert len(cache) == 2
    assert cache.get("short") is None
    assert cache.get("long") == 2
