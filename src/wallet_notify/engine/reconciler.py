"""Outcome reconciler — turn push tickets into durable state.

- ok tickets: one ``notifications`` row per (wallet, delivery key), inserted
  with ``ON CONFLICT DO NOTHING``; the wallet's unread counter moves only
  when a row was actually inserted
- permanent tickets: the token is deactivated
- transient tickets: counted, nothing else
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite

from wallet_notify.engine.models.base import new_id, utcnow
from wallet_notify.engine.models.delivery_record import DeliveryRecord
from wallet_notify.engine.models.unread_counter import UnreadCounter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from wallet_notify.cache.client import CacheClient
    from wallet_notify.datastore.client import Datastore
    from wallet_notify.engine.directory import EndpointDirectory
    from wallet_notify.metrics.collector import NotifyMetrics
    from wallet_notify.push.models import Endpoint, PushTicket

logger = logging.getLogger(__name__)

UNREAD_CACHE_PREFIX = "unread:"


def unread_cache_key(wallet: str) -> str:
    """Cache key holding a wallet's unread count."""
    return f"{UNREAD_CACHE_PREFIX}{wallet}"


@dataclass
class ReconcileResult:
    """Aggregate counts for one reconciliation.

    ``sent + failed`` always equals the number of tickets reconciled.
    """

    delivery_key: str
    sent: int = 0
    failed: int = 0
    records_created: int = 0
    deactivated: int = 0


class OutcomeReconciler:
    """Persist delivery results and deactivate dead endpoints."""

    def __init__(
        self,
        datastore: Datastore,
        endpoints: EndpointDirectory,
        *,
        cache: CacheClient | None = None,
        metrics: NotifyMetrics | None = None,
    ) -> None:
        self._ds = datastore
        self._endpoints = endpoints
        self._cache = cache
        self._metrics = metrics

    async def reconcile(
        self,
        intent_id: str | None,
        tickets: Sequence[tuple[Endpoint, PushTicket]],
        category: str,
        title: str,
        body: str,
        payload: dict[str, Any] | None = None,
    ) -> ReconcileResult:
        """Record the outcome of one dispatch.

        Args:
            intent_id: The queued intent, or None for a direct send (a fresh
                delivery key is generated).
            tickets: One ``(endpoint, ticket)`` pair per message sent.
        """
        result = ReconcileResult(delivery_key=intent_id or new_id())
        sent_wallets: dict[str, None] = {}
        dead_tokens: list[str] = []
        for endpoint, ticket in tickets:
            if ticket.ok:
                result.sent += 1
                sent_wallets.setdefault(endpoint.wallet_address, None)
            else:
                result.failed += 1
                if ticket.permanent:
                    dead_tokens.append(endpoint.token)

        if sent_wallets:
            created = await self._record_deliveries(
                result.delivery_key, list(sent_wallets), category, title, body, payload or {}
            )
            result.records_created = len(created)
            await self._invalidate_unread(created)

        if dead_tokens:
            result.deactivated = await self._endpoints.deactivate(dead_tokens)
            if self._metrics:
                self._metrics.record_deactivations(result.deactivated)

        logger.debug(
            "Reconciled %s: %d sent, %d failed, %d new records, %d deactivated",
            result.delivery_key,
            result.sent,
            result.failed,
            result.records_created,
            result.deactivated,
        )
        return result

    async def _record_deliveries(
        self,
        delivery_key: str,
        wallets: list[str],
        category: str,
        title: str,
        body: str,
        payload: dict[str, Any],
    ) -> list[str]:
        """Insert history rows; returns the wallets whose row is new."""
        insert = postgresql.insert if self._ds.dialect == "postgresql" else sqlite.insert
        sent_at = utcnow()
        created: list[str] = []
        async with self._ds.session() as session:
            for wallet in wallets:
                stmt = (
                    insert(DeliveryRecord)
                    .values(
                        id=new_id(),
                        wallet_address=wallet,
                        delivery_key=delivery_key,
                        type=category,
                        title=title,
                        body=body,
                        data=payload,
                        status="sent",
                        is_read=False,
                        sent_at=sent_at,
                    )
                    .on_conflict_do_nothing(index_elements=["wallet_address", "delivery_key"])
                )
                res = await session.execute(stmt)
                if res.rowcount == 1:  # type: ignore[union-attr]
                    await self._increment_unread(session, insert, wallet)
                    created.append(wallet)
            await session.commit()
        return created

    @staticmethod
    async def _increment_unread(session: AsyncSession, insert: Any, wallet: str) -> None:
        stmt = insert(UnreadCounter).values(wallet_address=wallet, unread_count=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=["wallet_address"],
            set_={"unread_count": UnreadCounter.unread_count + 1, "updated_at": func.now()},
        )
        await session.execute(stmt)

    async def _invalidate_unread(self, wallets: list[str]) -> None:
        if self._cache is None or not self._cache.is_connected:
            return
        for wallet in wallets:
            await self._cache.delete(unread_cache_key(wallet))
