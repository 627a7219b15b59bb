"""In-memory LRU cache backend with TTL support."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wallet_notify.config.settings import CacheConfig


class MemoryCache:
    """Single-process LRU cache for development, tests and one-node deployments."""

    def __init__(self, config: CacheConfig, max_size: int = 10000) -> None:
        self._config = config
        self._max_size = max_size
        # {key: (value, expiry_timestamp_or_none)}
        self._cache: OrderedDict[str, tuple[str, float | None]] = OrderedDict()

    async def connect(self) -> None:  # noqa: ASYNC910
        """Connect (no-op for in-memory)."""

    async def close(self) -> None:  # noqa: ASYNC910
        """Close and clear the cache."""
        self._cache.clear()

    def _live(self, key: str) -> tuple[str, float | None] | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry[1] is not None and time.time() > entry[1]:
            del self._cache[key]
            return None
        return entry

    async def get(self, key: str) -> str | None:  # noqa: ASYNC910
        """Get a value, or None if not found/expired."""
        entry = self._live(key)
        if entry is None:
            return None
        self._cache.move_to_end(key)
        return entry[0]

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:  # noqa: ASYNC910
        """Set a value; evicts the least recently used key when full."""
        expiry = None if ttl is None else time.time() + ttl
        self._cache.pop(key, None)
        self._cache[key] = (value, expiry)
        if len(self._cache) > self._max_size:
            self._cache.popitem(last=False)

    async def delete(self, key: str) -> None:  # noqa: ASYNC910
        """Delete a key."""
        self._cache.pop(key, None)

    async def exists(self, key: str) -> bool:  # noqa: ASYNC910
        """Check if a key exists and is not expired."""
        return self._live(key) is not None

    async def flush(self) -> None:  # noqa: ASYNC910
        """Clear all keys."""
        self._cache.clear()
