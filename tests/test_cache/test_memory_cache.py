"""Tests for the in-memory LRU cache backend."""

from __future__ import annotations

import time

from wallet_notify.cache.memory import MemoryCache
from wallet_notify.config.settings import CacheConfig


def _cache(max_size: int = 10000) -> MemoryCache:
    return MemoryCache(CacheConfig(), max_size=max_size)


class TestMemoryCache:
    async def test_set_get(self) -> None:
        cache = _cache()
        await cache.set("k", "v")
        assert await cache.get("k") == "v"

    async def test_get_nonexistent(self) -> None:
        assert await _cache().get("missing") is None

    async def test_delete_missing_is_noop(self) -> None:
        await _cache().delete("missing")

    async def test_ttl_expiry(self, monkeypatch) -> None:
        cache = _cache()
        now = time.time()
        monkeypatch.setattr(time, "time", lambda: now)
        await cache.set("k", "v", ttl=10)
        assert await cache.exists("k")

        monkeypatch.setattr(time, "time", lambda: now + 11)
        assert await cache.get("k") is None
        assert not await cache.exists("k")

    async def test_no_ttl_persists(self, monkeypatch) -> None:
        cache = _cache()
        now = time.time()
        await cache.set("k", "v")
        monkeypatch.setattr(time, "time", lambda: now + 10**6)
        assert await cache.get("k") == "v"

    async def test_lru_eviction(self) -> None:
        cache = _cache(max_size=2)
        await cache.set("a", "1")
        await cache.set("b", "2")
        await cache.set("c", "3")
        assert await cache.get("a") is None
        assert await cache.get("c") == "3"

    async def test_lru_access_updates_order(self) -> None:
        cache = _cache(max_size=2)
        await cache.set("a", "1")
        await cache.set("b", "2")
        await cache.get("a")
        await cache.set("c", "3")
        assert await cache.get("a") == "1"
        assert await cache.get("b") is None

    async def test_close_clears(self) -> None:
        cache = _cache()
        await cache.set("k", "v")
        await cache.close()
        assert await cache.get("k") is None
