"""Redis cache backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

from redis.asyncio import Redis

if TYPE_CHECKING:
    from wallet_notify.config.settings import CacheConfig


class RedisCache:
    """Redis-based cache shared by every server process."""

    def __init__(self, config: CacheConfig) -> None:
        self._config = config
        self._redis: Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis.

        Raises:
            ConnectionError: If Redis connection fails.
        """
        self._redis = Redis.from_url(
            self._config.url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=self._config.max_connections,
        )
        try:
            await self._redis.ping()
        except Exception as e:
            msg = f"Failed to connect to Redis at {self._config.url}"
            raise ConnectionError(msg) from e

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    def _conn(self) -> Redis:
        assert self._redis is not None
        return self._redis

    async def get(self, key: str) -> str | None:
        """Get a value from Redis."""
        return await self._conn().get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Set a value in Redis. ``ttl=None`` means no expiry."""
        if ttl is not None:
            await self._conn().setex(key, ttl, value)
        else:
            await self._conn().set(key, value)

    async def delete(self, key: str) -> None:
        """Delete a key from Redis."""
        await self._conn().delete(key)

    async def exists(self, key: str) -> bool:
        """Check if a key exists in Redis."""
        return bool(await self._conn().exists(key))

    async def flush(self) -> None:
        """Flush the selected Redis database."""
        await self._conn().flushdb()
