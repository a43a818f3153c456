"""Lookup cache for assembled extraction responses.

The cache is advisory: every read or write failure is logged and treated as
a miss (or a skipped store), never as a request failure. Concurrent misses
for the same URL may both recompute and overwrite the entry; last write wins.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple

import structlog
from cachetools import TLRUCache
from redis import asyncio as aioredis

from extractor_api.core.config import CacheConfig
from extractor_api.core.metrics import MetricsCollector

logger = structlog.get_logger(__name__)

DEFAULT_NAMESPACE = "extract:"
DEFAULT_TTL = 300


class LookupCache(ABC):
    """Base class for response caches keyed by the requested page URL."""

    backend = "abstract"

    def __init__(self, ttl: int = DEFAULT_TTL, namespace: str = DEFAULT_NAMESPACE):
        self.ttl = ttl
        self.namespace = namespace

    def key_for(self, url: str) -> str:
        return f"{self.namespace}{url}"

    async def get(self, url: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a cached payload.

        Args:
            url: Requested page URL (without namespace)

        Returns:
            The cached payload, or None on miss or any cache failure
        """
        key = self.key_for(url)
        try:
            raw = await self._read(key)
        except Exception as e:
            logger.warning("Cache read failed", backend=self.backend, key=key, error=str(e))
            MetricsCollector.record_cache_lookup("error")
            return None

        if raw is None:
            MetricsCollector.record_cache_lookup("miss")
            return None

        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Cached value is not valid JSON", key=key, error=str(e))
            MetricsCollector.record_cache_lookup("error")
            return None

        if not isinstance(payload, dict):
            MetricsCollector.record_cache_lookup("error")
            return None

        MetricsCollector.record_cache_lookup("hit")
        return payload

    async def set(self, url: str, payload: Dict[str, Any], ttl: Optional[int] = None) -> None:
        """
        Store a payload under the namespaced URL key.

        Args:
            url: Requested page URL (without namespace)
            payload: JSON-serializable response payload
            ttl: Seconds to keep the entry; defaults to the configured TTL
        """
        key = self.key_for(url)
        try:
            await self._write(key, json.dumps(payload), ttl or self.ttl)
        except Exception as e:
            logger.warning("Cache write failed", backend=self.backend, key=key, error=str(e))

    async def ping(self) -> bool:
        """Return True if the backing store is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def _read(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def _write(self, key: str, value: str, ttl: int) -> None:
        pass


class NullLookupCache(LookupCache):
    """Cache used when caching is disabled: never stores, always misses."""

    backend = "none"

    async def get(self, url: str) -> Optional[Dict[str, Any]]:
        return None

    async def set(self, url: str, payload: Dict[str, Any], ttl: Optional[int] = None) -> None:
        return None

    async def _read(self, key: str) -> Optional[str]:
        return None

    async def _write(self, key: str, value: str, ttl: int) -> None:
        return None


class MemoryLookupCache(LookupCache):
    """In-process cache with per-entry expiry, for single-instance deployments."""

    backend = "memory"

    def __init__(
        self,
        ttl: int = DEFAULT_TTL,
        namespace: str = DEFAULT_NAMESPACE,
        max_entries: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ):
        super().__init__(ttl=ttl, namespace=namespace)
        self._entries: TLRUCache = TLRUCache(
            maxsize=max_entries,
            ttu=self._expires_at,
            timer=timer,
        )

    @staticmethod
    def _expires_at(key: str, value: Tuple[str, int], now: float) -> float:
        return now + value[1]

    async def _read(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        return entry[0] if entry is not None else None

    async def _write(self, key: str, value: str, ttl: int) -> None:
        self._entries[key] = (value, ttl)


class RedisLookupCache(LookupCache):
    """Redis-backed cache using ``GET`` and ``SET key value EX ttl``."""

    backend = "redis"

    def __init__(
        self,
        client: aioredis.Redis,
        ttl: int = DEFAULT_TTL,
        namespace: str = DEFAULT_NAMESPACE,
    ):
        super().__init__(ttl=ttl, namespace=namespace)
        self._client = client

    @classmethod
    def from_url(
        cls, redis_url: str, ttl: int = DEFAULT_TTL, namespace: str = DEFAULT_NAMESPACE
    ) -> "RedisLookupCache":
        client = aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2.0,
            socket_timeout=2.0,
        )
        return cls(client, ttl=ttl, namespace=namespace)

    async def _read(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    async def _write(self, key: str, value: str, ttl: int) -> None:
        await self._client.set(key, value, ex=ttl)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.warning("Redis ping failed", error=str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()


def build_cache(config: CacheConfig) -> LookupCache:
    """
    Create the lookup cache selected by configuration.

    A Redis URL takes precedence; otherwise ``backend`` picks the in-memory
    cache or disables caching altogether.
    """
    if config.redis_url:
        logger.info("Lookup cache enabled", backend="redis", ttl=config.ttl)
        return RedisLookupCache.from_url(config.redis_url, ttl=config.ttl, namespace=config.namespace)

    if config.backend == "memory":
        logger.info("Lookup cache enabled", backend="memory", ttl=config.ttl)
        return MemoryLookupCache(
            ttl=config.ttl, namespace=config.namespace, max_entries=config.max_entries
        )

    logger.info("Lookup cache disabled")
    return NullLookupCache(ttl=config.ttl, namespace=config.namespace)
