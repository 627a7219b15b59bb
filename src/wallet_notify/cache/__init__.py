"""Cache — read-through cache for per-wallet unread counts."""

from __future__ import annotations

from wallet_notify.cache.client import CacheClient

__all__ = ["CacheClient"]
