"""Tests for the lookup cache backends"""

import json
from unittest.mock import AsyncMock

import pytest

from extractor_api.core.config import CacheConfig
from extractor_api.services.cache import (
    MemoryLookupCache,
    NullLookupCache,
    RedisLookupCache,
    build_cache,
)

PAYLOAD = {"formats": [{"label": "720p", "size": "1.0 MB", "url": "https://a/v", "type": "video"}]}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestMemoryLookupCache:
    """Test the in-process cache"""

    @pytest.mark.asyncio
    async def test_miss_then_hit(self) -> None:
        cache = MemoryLookupCache()

        assert await cache.get("https://example.com/watch") is None
        await cache.set("https://example.com/watch", PAYLOAD)
        assert await cache.get("https://example.com/watch") == PAYLOAD

    @pytest.mark.asyncio
    async def test_entries_expire(self) -> None:
        clock = FakeClock()
        cache = MemoryLookupCache(ttl=300, timer=clock)

        await cache.set("https://example.com/watch", PAYLOAD)
        clock.now += 299
        assert await cache.get("https://example.com/watch") == PAYLOAD

        clock.now += 2
        assert await cache.get("https://example.com/watch") is None

    @pytest.mark.asyncio
    async def test_per_entry_ttl(self) -> None:
        clock = FakeClock()
        cache = MemoryLookupCache(ttl=300, timer=clock)

        await cache.set("https://a.example/short", PAYLOAD, ttl=10)
        await cache.set("https://a.example/long", PAYLOAD)
        clock.now += 11

        assert await cache.get("https://a.example/short") is None
        assert await cache.get("https://a.example/long") == PAYLOAD

    @pytest.mark.asyncio
    async def test_last_write_wins(self) -> None:
        cache = MemoryLookupCache()

        await cache.set("https://a.example/v", {"formats": []})
        await cache.set("https://a.example/v", PAYLOAD)

        assert await cache.get("https://a.example/v") == PAYLOAD

    def test_key_is_namespaced(self) -> None:
        cache = MemoryLookupCache(namespace="extract:")
        assert cache.key_for("https://a.example/v") == "extract:https://a.example/v"


class TestNullLookupCache:
    """Test the disabled cache"""

    @pytest.mark.asyncio
    async def test_never_stores(self) -> None:
        cache = NullLookupCache()

        await cache.set("https://a.example/v", PAYLOAD)

        assert await cache.get("https://a.example/v") is None
        assert await cache.ping() is True


class TestRedisLookupCache:
    """Test the Redis-backed cache with a mocked client"""

    @pytest.mark.asyncio
    async def test_get_hit(self) -> None:
        client = AsyncMock()
        client.get.return_value = json.dumps(PAYLOAD)
        cache = RedisLookupCache(client)

        assert await cache.get("https://a.example/v") == PAYLOAD
        client.get.assert_awaited_once_with("extract:https://a.example/v")

    @pytest.mark.asyncio
    async def test_set_uses_expiry(self) -> None:
        client = AsyncMock()
        cache = RedisLookupCache(client, ttl=300)

        await cache.set("https://a.example/v", PAYLOAD)

        client.set.assert_awaited_once_with(
            "extract:https://a.example/v", json.dumps(PAYLOAD), ex=300
        )

    @pytest.mark.asyncio
    async def test_read_failure_is_a_miss(self) -> None:
        client = AsyncMock()
        client.get.side_effect = ConnectionError("redis down")
        cache = RedisLookupCache(client)

        assert await cache.get("https://a.example/v") is None

    @pytest.mark.asyncio
    async def test_write_failure_is_ignored(self) -> None:
        client = AsyncMock()
        client.set.side_effect = ConnectionError("redis down")
        cache = RedisLookupCache(client)

        await cache.set("https://a.example/v", PAYLOAD)

    @pytest.mark.asyncio
    async def test_corrupt_value_is_a_miss(self) -> None:
        client = AsyncMock()
        client.get.return_value = "{not json"
        cache = RedisLookupCache(client)

        assert await cache.get("https://a.example/v") is None

    @pytest.mark.asyncio
    async def test_non_object_value_is_a_miss(self) -> None:
        client = AsyncMock()
        client.get.return_value = "[1, 2]"
        cache = RedisLookupCache(client)

        assert await cache.get("https://a.example/v") is None

    @pytest.mark.asyncio
    async def test_ping(self) -> None:
        client = AsyncMock()
        client.ping.return_value = True
        assert await RedisLookupCache(client).ping() is True

        client.ping.side_effect = ConnectionError("redis down")
        assert await RedisLookupCache(client).ping() is False

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        client = AsyncMock()

        await RedisLookupCache(client).close()

        client.aclose.assert_awaited_once()


class TestBuildCache:
    """Test backend selection from configuration"""

    def test_disabled_by_default(self) -> None:
        assert isinstance(build_cache(CacheConfig()), NullLookupCache)

    def test_memory_backend(self) -> None:
        cache = build_cache(CacheConfig(backend="memory", ttl=60))

        assert isinstance(cache, MemoryLookupCache)
        assert cache.ttl == 60

    def test_redis_url_takes_precedence(self) -> None:
        cache = build_cache(
            CacheConfig(redis_url="redis://localhost:6379/0", backend="memory", namespace="x:")
        )

        assert isinstance(cache, RedisLookupCache)
        assert cache.key_for("u") == "x:u"
