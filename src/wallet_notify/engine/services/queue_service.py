"""Queue service — producer and operator access to ``notification_queue``."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update

from wallet_notify.engine.models.base import as_utc, utcnow
from wallet_notify.engine.models.notification_intent import IntentStatus, NotificationIntent
from wallet_notify.engine.targets import descriptor_columns
from wallet_notify.errors.definitions import ErrIntentNotFailed, ErrIntentNotFound

if TYPE_CHECKING:
    from datetime import datetime

    from wallet_notify.engine.client import NotifyEngine
    from wallet_notify.engine.targets import TargetDescriptor

logger = logging.getLogger(__name__)


class QueueService:
    """Create, look up and re-queue notification intents.

    The drainer owns every transition after ``pending``. The one exception
    is re-queueing a stalled intent, which fails the stuck row first.
    """

    def __init__(self, engine: NotifyEngine) -> None:
        self._engine = engine

    async def enqueue(
        self,
        descriptor: TargetDescriptor,
        category: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
        *,
        scheduled_for: datetime | None = None,
    ) -> NotificationIntent:
        """Queue a new intent.

        Args:
            descriptor: Who should receive it.
            category: Notification type (see ``Category``).
            scheduled_for: Not drained before this instant; defaults to now.

        Returns:
            The persisted pending intent.
        """
        intent = NotificationIntent(
            **descriptor_columns(descriptor),
            notification_type=category,
            title=title,
            body=body,
            data=dict(data or {}),
            status=IntentStatus.PENDING.value,
            scheduled_for=as_utc(scheduled_for) if scheduled_for else utcnow(),
        )
        async with self._engine.datastore.session() as session:
            session.add(intent)
            await session.commit()
            await session.refresh(intent)
        return intent

    async def get_intent(self, intent_id: str) -> NotificationIntent:
        """Fetch an intent by id.

        Raises:
            NotifyError: ``intent-not-found``.
        """
        async with self._engine.datastore.session() as session:
            intent = await session.get(NotificationIntent, intent_id)
        if intent is None:
            raise ErrIntentNotFound
        return intent

    async def list_intents(
        self,
        *,
        status: str | None = None,
        limit: int = 50,
    ) -> list[NotificationIntent]:
        """Most recently scheduled intents first, optionally filtered by status."""
        stmt = select(NotificationIntent)
        if status:
            stmt = stmt.where(NotificationIntent.status == status)
        stmt = stmt.order_by(NotificationIntent.scheduled_for.desc()).limit(limit)
        async with self._engine.datastore.session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def requeue(self, intent_id: str) -> NotificationIntent:
        """Queue a fresh pending copy of a failed or stalled intent.

        An intent counts as stalled once it has been in ``processing`` for
        longer than ``queue.stale_after`` seconds. A stalled row is failed
        first so that it still ends in exactly one terminal state; a failed
        row stays as it is.

        Raises:
            NotifyError: ``intent-not-found`` or ``intent-not-failed``.
        """
        original = await self.get_intent(intent_id)
        if original.status == IntentStatus.PROCESSING and await self._fail_stalled(original.id):
            logger.warning("Intent %s stalled in processing; re-queueing", original.id)
        elif original.status != IntentStatus.FAILED:
            raise ErrIntentNotFailed

        copy = NotificationIntent(
            target_type=original.target_type,
            target_wallets=list(original.target_wallets) if original.target_wallets else None,
            target_kol_wallet=original.target_kol_wallet,
            notification_type=original.notification_type,
            title=original.title,
            body=original.body,
            data=dict(original.data or {}),
            status=IntentStatus.PENDING.value,
            scheduled_for=utcnow(),
        )
        async with self._engine.datastore.session() as session:
            session.add(copy)
            await session.commit()
            await session.refresh(copy)
        return copy

    async def _fail_stalled(self, intent_id: str) -> bool:
        cutoff = utcnow() - timedelta(seconds=self._engine.config.queue.stale_after)
        async with self._engine.datastore.session() as session:
            stmt = (
                update(NotificationIntent)
                .where(
                    NotificationIntent.id == intent_id,
                    NotificationIntent.status == IntentStatus.PROCESSING.value,
                    NotificationIntent.started_at <= cutoff,
                )
                .values(
                    status=IntentStatus.FAILED.value,
                    error_message="stalled in processing",
                    completed_at=utcnow(),
                )
            )
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount == 1  # type: ignore[union-attr]
