"""
HostelHub Finance - Cache Service Tests

Tests for the report cache (in-process and Redis backends).
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.services import cache_service
from app.services.cache_service import CacheService, InMemoryTTLCache, close_cache_service, get_cache_service


class _Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestInMemoryTTLCache:
    """Test the in-process TTL map."""

    def test_set_and_get(self):
        cache = InMemoryTTLCache(default_ttl=60)
        cache.set("a", "1")
        assert cache.get("a") == "1"
        assert cache.exists("a")
        assert cache.get("missing") is None

    def test_entries_expire(self):
        cache = InMemoryTTLCache(default_ttl=60)
        clock = _Clock()
        with patch.object(cache, "_now", clock):
            cache.set("a", "1")
            cache.set("b", "2", ttl=600)
            clock.now += 61
            assert cache.get("a") is None
            assert cache.get("b") == "2"
            assert len(cache) == 1

    def test_eviction_prefers_expired_entries(self):
        cache = InMemoryTTLCache(default_ttl=60, max_entries=2)
        clock = _Clock()
        with patch.object(cache, "_now", clock):
            cache.set("old", "1", ttl=10)
            cache.set("keep", "2", ttl=600)
            clock.now += 20
            cache.set("new", "3")
            assert cache.get("keep") == "2"
            assert cache.get("new") == "3"
            assert cache.get("old") is None

    def test_eviction_drops_oldest_when_full(self):
        cache = InMemoryTTLCache(default_ttl=60, max_entries=2)
        cache.set("first", "1")
        cache.set("second", "2")
        cache.set("third", "3")
        assert len(cache) == 2
        assert cache.get("first") is None
        assert cache.get("third") == "3"

    def test_overwrite_does_not_evict(self):
        cache = InMemoryTTLCache(max_entries=2)
        cache.set("a", "1")
        cache.set("b", "2")
        cache.set("a", "10")
        assert cache.get("a") == "10"
        assert cache.get("b") == "2"

    def test_delete_pattern(self):
        cache = InMemoryTTLCache()
        cache.set("report:income_statement:all:abc", "1")
        cache.set("report:balance_sheet:all:def", "2")
        cache.set("report:balance_sheet:r1:ghi", "3")

        assert cache.delete_pattern("report:*:all:*") == 2
        assert cache.get("report:balance_sheet:r1:ghi") == "3"
        assert cache.delete("report:balance_sheet:r1:ghi")
        assert not cache.delete("report:balance_sheet:r1:ghi")


class TestReportKeys:
    """Test report cache key format."""

    def test_key_format(self):
        key = CacheService.report_key("income_statement", "all", {"year": 2025, "basis": "cash", "month": None})
        prefix, report_type, scope, digest = key.split(":")

        assert (prefix, report_type, scope) == ("report", "income_statement", "all")
        assert len(digest) == 16

    def test_param_order_does_not_matter(self):
        a = CacheService.report_key("trial_balance", "all", {"as_of": "2025-12-31", "basis": "cash"})
        b = CacheService.report_key("trial_balance", "all", {"basis": "cash", "as_of": "2025-12-31"})
        c = CacheService.report_key("trial_balance", "all", {"basis": "accrual", "as_of": "2025-12-31"})
        assert a == b
        assert a != c

    def test_scope_for(self):
        assert CacheService.scope_for(None) == "all"
        assert CacheService.scope_for("r1") == "r1"


class TestReportCacheMemory:
    """Test report caching on the in-process backend."""

    @pytest.mark.asyncio
    async def test_set_and_get_report(self):
        cache = CacheService(backend="memory", default_ttl=60)
        params = {"year": 2025, "basis": "cash"}

        assert await cache.get_report("income_statement", "all", params) is None
        await cache.set_report("income_statement", "all", params, {"net_income": 530.0})
        assert await cache.get_report("income_statement", "all", params) == {"net_income": 530.0}

    @pytest.mark.asyncio
    async def test_invalidate_by_scope(self):
        cache = CacheService(backend="memory")
        await cache.set_report("income_statement", "r1", {"year": 2025}, {"a": 1})
        await cache.set_report("balance_sheet", "r1", {"year": 2025}, {"b": 2})
        await cache.set_report("income_statement", "all", {"year": 2025}, {"c": 3})

        assert await cache.invalidate_reports(scope="r1") == 2
        assert await cache.get_report("income_statement", "all", {"year": 2025}) == {"c": 3}

    @pytest.mark.asyncio
    async def test_invalidate_by_type(self):
        cache = CacheService(backend="memory")
        await cache.set_report("income_statement", "r1", {"year": 2025}, {"a": 1})
        await cache.set_report("balance_sheet", "all", {"year": 2025}, {"b": 2})

        assert await cache.invalidate_reports(report_type="balance_sheet") == 1
        assert await cache.invalidate_reports() == 1

    @pytest.mark.asyncio
    async def test_invalid_json_is_a_miss(self):
        cache = CacheService(backend="memory")
        await cache.set("report:x", "{not json")
        assert await cache.get_json("report:x") is None

    @pytest.mark.asyncio
    async def test_health_check(self):
        cache = CacheService(backend="memory")
        await cache.set("k", "v")
        health = await cache.health_check()
        assert health == {"status": "healthy", "backend": "memory", "entries": 1}


class TestReportCacheRedis:
    """Test the Redis backend with a mocked client."""

    @pytest.mark.asyncio
    async def test_set_and_get_report(self):
        cache = CacheService(backend="redis", redis_url="redis://localhost:6379/0", default_ttl=120)

        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value='{"net_income": 530.0}')
        mock_client.setex = AsyncMock()

        with patch.object(cache, "get_client", return_value=mock_client):
            await cache.set_report("income_statement", "all", {"year": 2025}, {"net_income": 530.0})
            key, ttl, _ = mock_client.setex.call_args.args
            assert key.startswith("report:income_statement:all:")
            assert ttl == 120

            report = await cache.get_report("income_statement", "all", {"year": 2025})
            assert report == {"net_income": 530.0}

    @pytest.mark.asyncio
    async def test_invalidate_scans_matching_keys(self):
        cache = CacheService(backend="redis")

        async def scan(match):
            for key in ("report:income_statement:all:1", "report:balance_sheet:all:2"):
                yield key

        mock_client = AsyncMock()
        mock_client.scan_iter = MagicMock(side_effect=scan)
        mock_client.delete = AsyncMock(return_value=2)

        with patch.object(cache, "get_client", return_value=mock_client):
            count = await cache.invalidate_reports(scope="all")

        assert count == 2
        mock_client.scan_iter.assert_called_once_with(match="report:*:all:*")
        mock_client.delete.assert_awaited_once_with("report:income_statement:all:1", "report:balance_sheet:all:2")

    @pytest.mark.asyncio
    async def test_failures_are_a_miss(self, caplog):
        cache = CacheService(backend="redis")

        mock_client = AsyncMock()
        mock_client.get = AsyncMock(side_effect=ConnectionError("refused"))
        mock_client.setex = AsyncMock(side_effect=ConnectionError("refused"))

        with patch.object(cache, "get_client", return_value=mock_client):
            assert await cache.get_report("income_statement", "all", {}) is None
            assert await cache.set_report("income_statement", "all", {}, {"a": 1}) is False

        assert "Cache get failed" in caplog.text

    @pytest.mark.asyncio
    async def test_health_check_unhealthy(self):
        cache = CacheService(backend="redis")

        mock_client = AsyncMock()
        mock_client.ping = AsyncMock(side_effect=ConnectionError("refused"))

        with patch.object(cache, "get_client", return_value=mock_client):
            health = await cache.health_check()

        assert health["status"] == "unhealthy"
        assert health["connected"] is False


class TestGlobalCache:
    """Test the module-level instance."""

    @pytest.mark.asyncio
    async def test_singleton_and_close(self, fresh_cache):
        assert get_cache_service() is fresh_cache
        await close_cache_service()
        assert cache_service._cache_service is None
