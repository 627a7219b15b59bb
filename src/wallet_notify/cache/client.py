"""Cache client abstraction with Redis and in-memory backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from wallet_notify.config.settings import CacheConfig


class CacheClient:
    """Cache abstraction that delegates to a Redis or in-memory LRU backend."""

    def __init__(self, config: CacheConfig) -> None:
        self._config = config
        self._backend: CacheBackend | None = None
        self._connected = False

    async def connect(self) -> None:
        """Connect to the cache backend.

        Raises:
            ValueError: If cache engine type is invalid.
        """
        from wallet_notify.cache.memory import MemoryCache
        from wallet_notify.cache.redis import RedisCache

        engine = self._config.engine.lower()

        if engine == "redis":
            self._backend = RedisCache(self._config)
        elif engine == "memory":
            self._backend = MemoryCache(self._config)
        else:
            msg = f"Unsupported cache engine: {engine}"
            raise ValueError(msg)

        await self._backend.connect()
        self._connected = True

    async def close(self) -> None:
        """Close the cache connection (idempotent)."""
        if self._backend is not None:
            await self._backend.close()
            self._backend = None
        self._connected = False

    @property
    def is_connected(self) -> bool:
        """Check if the cache is connected."""
        return self._connected and self._backend is not None

    @property
    def default_ttl(self) -> int:
        """Configured TTL in seconds for cached values."""
        return self._config.ttl_seconds

    async def get(self, key: str) -> str | None:
        """Get a value from the cache, or None if missing/expired."""
        return await self._ensure_connected().get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Set a value in the cache. ``ttl=None`` means no expiry."""
        await self._ensure_connected().set(key, value, ttl=ttl)

    async def delete(self, key: str) -> None:
        """Delete a key from the cache."""
        await self._ensure_connected().delete(key)

    async def exists(self, key: str) -> bool:
        """Check if a key exists in the cache."""
        return await self._ensure_connected().exists(key)

    async def flush(self) -> None:
        """Flush all keys from the cache (development/testing only)."""
        await self._ensure_connected().flush()

    def _ensure_connected(self) -> CacheBackend:
        """Return the backend, raising RuntimeError if not connected."""
        if not self._connected or self._backend is None:
            msg = "Cache not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._backend


class CacheBackend(Protocol):
    """Protocol for cache backend implementations."""

    async def connect(self) -> None: ...
    async def close(self) -> None: ...
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str, ttl: int | None = None) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def exists(self, key: str) -> bool: ...
    async def flush(self) -> None: ...
