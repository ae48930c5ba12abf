"""
HostelHub Finance - Cache Service

Short-lived caching for generated financial reports.
Backends:
- memory: in-process TTL map (default, single worker)
- redis: shared cache via redis.asyncio (multiple workers)

Cache failures never break a request: they are logged and treated as a miss.
"""

import fnmatch
import hashlib
import json
import logging
import time
from collections import OrderedDict
from typing import Any, Dict, Optional, Tuple

import redis.asyncio as redis

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class InMemoryTTLCache:
    """Process-local key/value store with per-key expiry."""

    def __init__(self, default_ttl: int = 300, max_entries: int = 500):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._data: "OrderedDict[str, Tuple[float, str]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    @staticmethod
    def _now() -> float:
        return time.monotonic()

    def get(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        expires_at, value = item
        if expires_at <= self._now():
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        if key in self._data:
            del self._data[key]
        elif len(self._data) >= self.max_entries:
            self._evict()
        self._data[key] = (self._now() + ttl, value)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching a glob pattern (``report:*:all:*``)."""
        keys = [key for key in self._data if fnmatch.fnmatchcase(key, pattern)]
        for key in keys:
            del self._data[key]
        return len(keys)

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self) -> None:
        self._data.clear()

    def purge_expired(self) -> int:
        now = self._now()
        expired = [key for key, (expires_at, _) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]
        return len(expired)

    def _evict(self) -> None:
        # Expired entries go first, then the oldest insertion
        if self.purge_expired():
            return
        if self._data:
            self._data.popitem(last=False)


class CacheService:
    """Async cache API over the configured backend."""

    PREFIX_REPORT = "report"
    SCOPE_ALL = "all"

    # Default TTL values (in seconds)
    TTL_REPORT = 300

    def __init__(
        self,
        backend: Optional[str] = None,
        redis_url: Optional[str] = None,
        default_ttl: Optional[int] = None,
        max_entries: Optional[int] = None,
    ):
        self.backend = (backend or settings.cache_backend).lower()
        self.redis_url = redis_url or settings.redis_url
        self.default_ttl = default_ttl or settings.report_cache_ttl_seconds or self.TTL_REPORT
        self._client: Optional[redis.Redis] = None
        self._memory: Optional[InMemoryTTLCache] = None
        if self.backend != "redis":
            self.backend = "memory"
            self._memory = InMemoryTTLCache(
                default_ttl=self.default_ttl,
                max_entries=max_entries or settings.report_cache_max_entries,
            )

    async def get_client(self) -> redis.Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def close(self):
        """Close Redis connection / drop in-process entries."""
        if self._client:
            await self._client.close()
            self._client = None
        if self._memory is not None:
            self._memory.clear()

    # =========================================================================
    # GENERIC CACHE OPERATIONS
    # =========================================================================

    async def get(self, key: str) -> Optional[str]:
        """Get a value from cache."""
        try:
            if self._memory is not None:
                return self._memory.get(key)
            client = await self.get_client()
            return await client.get(key)
        except Exception as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None

    async def set(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
    ) -> bool:
        """Set a value in cache with optional TTL."""
        ttl = ttl or self.default_ttl
        try:
            if self._memory is not None:
                self._memory.set(key, value, ttl)
                return True
            client = await self.get_client()
            await client.setex(key, ttl, value)
            return True
        except Exception as e:
            logger.warning(f"Cache set failed for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete a key from cache."""
        try:
            if self._memory is not None:
                return self._memory.delete(key)
            client = await self.get_client()
            await client.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Cache delete failed for {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a pattern."""
        try:
            if self._memory is not None:
                return self._memory.delete_pattern(pattern)
            client = await self.get_client()
            keys = []
            async for key in client.scan_iter(match=pattern):
                keys.append(key)
            if keys:
                return await client.delete(*keys)
            return 0
        except Exception as e:
            logger.warning(f"Cache delete_pattern failed for {pattern}: {e}")
            return 0

    async def exists(self, key: str) -> bool:
        """Check if a key exists in cache."""
        try:
            if self._memory is not None:
                return self._memory.exists(key)
            client = await self.get_client()
            return await client.exists(key) > 0
        except Exception as e:
            logger.warning(f"Cache exists check failed for {key}: {e}")
            return False

    async def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """Get a JSON value from cache."""
        value = await self.get(key)
        if value:
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON in cache for {key}")
        return None

    async def set_json(
        self,
        key: str,
        value: Dict[str, Any],
        ttl: Optional[int] = None,
    ) -> bool:
        """Set a JSON value in cache."""
        try:
            return await self.set(key, json.dumps(value, default=str), ttl)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache set_json failed for {key}: {e}")
            return False

    # =========================================================================
    # REPORT CACHING
    # =========================================================================

    @classmethod
    def scope_for(cls, residence_id: Optional[Any] = None) -> str:
        return str(residence_id) if residence_id else cls.SCOPE_ALL

    @classmethod
    def report_key(
        cls,
        report_type: str,
        scope: str,
        params: Dict[str, Any],
    ) -> str:
        """Generate cache key for report."""
        encoded = json.dumps(params, sort_keys=True, default=str)
        params_hash = hashlib.sha256(encoded.encode("utf-8")).hexdigest()[:16]
        return f"{cls.PREFIX_REPORT}:{report_type}:{scope}:{params_hash}"

    async def get_report(
        self,
        report_type: str,
        scope: str,
        params: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """Get cached report data."""
        key = self.report_key(report_type, scope, params)
        cached = await self.get_json(key)
        if cached is None:
            logger.debug(f"Report cache miss: {key}")
        else:
            logger.debug(f"Report cache hit: {key}")
        return cached

    async def set_report(
        self,
        report_type: str,
        scope: str,
        params: Dict[str, Any],
        data: Dict[str, Any],
        ttl: Optional[int] = None,
    ) -> bool:
        """Cache report data."""
        key = self.report_key(report_type, scope, params)
        return await self.set_json(key, data, ttl or self.default_ttl)

    async def invalidate_reports(
        self,
        scope: Optional[str] = None,
        report_type: Optional[str] = None,
    ) -> int:
        """Invalidate report cache."""
        if scope and report_type:
            pattern = f"{self.PREFIX_REPORT}:{report_type}:{scope}:*"
        elif scope:
            pattern = f"{self.PREFIX_REPORT}:*:{scope}:*"
        elif report_type:
            pattern = f"{self.PREFIX_REPORT}:{report_type}:*"
        else:
            pattern = f"{self.PREFIX_REPORT}:*"
        count = await self.delete_pattern(pattern)
        if count:
            logger.info(f"Invalidated {count} cached report(s) matching {pattern}")
        return count

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    async def health_check(self) -> Dict[str, Any]:
        """Check cache health."""
        if self._memory is not None:
            return {
                "status": "healthy",
                "backend": "memory",
                "entries": len(self._memory),
            }
        try:
            client = await self.get_client()
            await client.ping()
            return {"status": "healthy", "backend": "redis", "connected": True}
        except Exception as e:
            return {
                "status": "unhealthy",
                "backend": "redis",
                "connected": False,
                "error": str(e),
            }


# =========================================================================
# GLOBAL CACHE INSTANCE
# =========================================================================

_cache_service: Optional[CacheService] = None


def get_cache_service() -> CacheService:
    """Get global cache service instance."""
    global _cache_service
    if _cache_service is None:
        _cache_service = CacheService()
    return _cache_service


async def close_cache_service():
    """Close global cache service."""
    global _cache_service
    if _cache_service:
        await _cache_service.close()
        _cache_service = None
