"""Key/value cache stores with per-key TTL."""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Annotated, Any

import redis.asyncio as redis
from fastapi import Depends
from redis.exceptions import RedisError

from src.config import settings

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Abstract cache interface used in front of catalog reads.

    Values must be JSON-compatible. Concurrent writers are not coordinated;
    the last write wins.
    """

    async def connect(self) -> None:
        """Acquire any underlying resources."""

    async def close(self) -> None:
        """Release any underlying resources."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value or None on a miss."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""

    @abstractmethod
    async def invalidate(self, key: str) -> None:
        """Drop ``key`` from the cache."""

    async def ping(self) -> bool:
        return True


class RedisCacheStore(CacheStore):
    """Cache store backed by Redis ``SET ... EX``."""

    def __init__(
        self,
        client: redis.Redis | None = None,
        *,
        url: str | None = None,
        key_prefix: str | None = None,
    ) -> None:
        self._client = client
        self._url = url or settings.REDIS_URL
        self._prefix = settings.CACHE_KEY_PREFIX if key_prefix is None else key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("RedisCacheStore used before connect()")
        return self._client

    async def connect(self) -> None:
        if self._client is None:
            self._client = redis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
                health_check_interval=30,
            )
        logger.info("Product cache connected", extra={"backend": "redis"})

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self.client.get(self._key(key))
        except RedisError as exc:
            logger.warning("Cache read failed for %s, treating as miss: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.warning("Discarding undecodable cache entry %s: %s", key, exc)
            await self.invalidate(key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self.client.set(self._key(key), json.dumps(value), ex=ttl_seconds)
        except RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    async def invalidate(self, key: str) -> None:
        try:
            await self.client.delete(self._key(key))
        except RedisError as exc:
            logger.warning("Cache invalidation failed for %s: %s", key, exc)

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except (RedisError, RuntimeError):
            return False


class InMemoryCacheStore(CacheStore):
    """Process-local cache suitable for tests and local development."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        # Stored serialized so callers never share mutable state with the cache
        self._entries[key] = (json.dumps(value), self._clock() + ttl_seconds)

    async def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


_cache_store: CacheStore | None = None


def create_cache_store() -> CacheStore:
    """Build the cache store selected by configuration."""

    if settings.uses_redis_cache:
        return RedisCacheStore()
    return InMemoryCacheStore()


def get_cache_store() -> CacheStore:
    """Return the process-wide cache store (FastAPI dependency)."""

    global _cache_store
    if _cache_store is None:
        _cache_store = create_cache_store()
    return _cache_store


CacheStoreDependency = Annotated[CacheStore, Depends(get_cache_store)]
