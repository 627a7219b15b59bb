"""History service — a wallet's delivered notifications and unread count."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select, update

from wallet_notify.engine.models.base import utcnow
from wallet_notify.engine.models.delivery_record import DeliveryRecord
from wallet_notify.engine.models.unread_counter import UnreadCounter
from wallet_notify.engine.reconciler import unread_cache_key
from wallet_notify.errors.definitions import ErrNotificationNotFound

if TYPE_CHECKING:
    from wallet_notify.engine.client import NotifyEngine

logger = logging.getLogger(__name__)

# A reconcile can land between the counter read and the cache write; this
# bounds how long such a stale count is served.
UNREAD_CACHE_TTL = 30


class HistoryService:
    """Read and acknowledge delivered notifications.

    The unread count is served from the cache when present and from
    ``unread_counters`` otherwise. Every write that moves the counter drops
    the cached value.
    """

    def __init__(self, engine: NotifyEngine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_notifications(
        self,
        wallet: str,
        *,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[DeliveryRecord]:
        """Newest first."""
        stmt = select(DeliveryRecord).where(DeliveryRecord.wallet_address == wallet)
        if unread_only:
            stmt = stmt.where(DeliveryRecord.is_read.is_(False))
        stmt = stmt.order_by(DeliveryRecord.sent_at.desc(), DeliveryRecord.id).limit(limit)
        async with self._engine.datastore.session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def unread_count(self, wallet: str) -> int:
        """Number of unread notifications for *wallet*."""
        cache = self._engine.cache
        key = unread_cache_key(wallet)
        if cache.is_connected:
            cached = await cache.get(key)
            if cached is not None:
                try:
                    return int(cached)
                except ValueError:
                    logger.warning("Discarding malformed cached unread count for %s", wallet)

        async with self._engine.datastore.session() as session:
            counter = await session.get(UnreadCounter, wallet)
        count = counter.unread_count if counter else 0

        if cache.is_connected:
            await cache.set(key, str(count), ttl=min(cache.default_ttl, UNREAD_CACHE_TTL))
        return count

    # ------------------------------------------------------------------
    # Acknowledgement
    # ------------------------------------------------------------------

    async def mark_read(self, wallet: str, record_id: str) -> DeliveryRecord:
        """Mark one notification read; already-read records are returned unchanged.

        Raises:
            NotifyError: ``notification-not-found`` (also when owned by another wallet).
        """
        async with self._engine.datastore.session() as session:
            stmt = (
                update(DeliveryRecord)
                .where(
                    DeliveryRecord.id == record_id,
                    DeliveryRecord.wallet_address == wallet,
                    DeliveryRecord.is_read.is_(False),
                )
                .values(is_read=True, read_at=utcnow())
            )
            result = await session.execute(stmt)
            if result.rowcount == 1:  # type: ignore[union-attr]
                await session.execute(
                    update(UnreadCounter)
                    .where(UnreadCounter.wallet_address == wallet, UnreadCounter.unread_count > 0)
                    .values(unread_count=UnreadCounter.unread_count - 1)
                )
            await session.commit()

            record = await session.get(DeliveryRecord, record_id)
        if record is None or record.wallet_address != wallet:
            raise ErrNotificationNotFound

        await self._invalidate(wallet)
        return record

    async def mark_all_read(self, wallet: str) -> int:
        """Mark every unread notification read.

        Returns:
            Number of records that changed.
        """
        async with self._engine.datastore.session() as session:
            stmt = (
                update(DeliveryRecord)
                .where(DeliveryRecord.wallet_address == wallet, DeliveryRecord.is_read.is_(False))
                .values(is_read=True, read_at=utcnow())
            )
            result = await session.execute(stmt)
            await session.execute(
                update(UnreadCounter)
                .where(UnreadCounter.wallet_address == wallet)
                .values(unread_count=0)
            )
            await session.commit()
        count = result.rowcount  # type: ignore[union-attr]

        await self._invalidate(wallet)
        return count

    async def _invalidate(self, wallet: str) -> None:
        cache = self._engine.cache
        if cache.is_connected:
            await cache.delete(unread_cache_key(wallet))
