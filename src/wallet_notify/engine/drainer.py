"""Queue drainer — the per-intent pipeline and its state machine.

``pending → processing`` happens through a conditional UPDATE so that two
overlapping drains can never both own an intent. Every claimed intent
ends in exactly one of ``completed`` or ``failed``.

Cancellation is cooperative: the intent being processed when the drain is
cancelled runs to completion (its chunks may already be on the wire),
then the cancellation propagates and no further intent is claimed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from wallet_notify.engine.models.base import utcnow
from wallet_notify.engine.models.notification_intent import IntentStatus, NotificationIntent
from wallet_notify.engine.reconciler import ReconcileResult
from wallet_notify.engine.targets import descriptor_from_intent
from wallet_notify.errors.notify_errors import LookupTimeoutError
from wallet_notify.push.channels import channel_for
from wallet_notify.push.models import PushTicket

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from wallet_notify.datastore.client import Datastore
    from wallet_notify.engine.directory import EndpointDirectory
    from wallet_notify.engine.eligibility import EligibilityFilter
    from wallet_notify.engine.reconciler import OutcomeReconciler
    from wallet_notify.engine.targets import TargetResolver
    from wallet_notify.metrics.collector import NotifyMetrics
    from wallet_notify.push.dispatcher import BatchDispatcher

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_CATEGORY = "system"
FINISH_ATTEMPTS = 3
FINISH_RETRY_DELAY = 0.05


@dataclass
class DrainResult:
    """Intent-level counts for one drain invocation."""

    processed: int = 0
    failed: int = 0
    skipped: int = 0


@dataclass
class SendResult:
    """Message-level counts for one direct send."""

    sent: int = 0
    failed: int = 0


class QueueDrainer:
    """Claim due intents and push them through resolve, filter, dispatch, reconcile."""

    def __init__(
        self,
        datastore: Datastore,
        resolver: TargetResolver,
        endpoints: EndpointDirectory,
        eligibility: EligibilityFilter,
        dispatcher: BatchDispatcher,
        reconciler: OutcomeReconciler,
        *,
        metrics: NotifyMetrics | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._ds = datastore
        self._resolver = resolver
        self._endpoints = endpoints
        self._eligibility = eligibility
        self._dispatcher = dispatcher
        self._reconciler = reconciler
        self._metrics = metrics
        self._clock = clock
        self._stop = asyncio.Event()

    # ------------------------------------------------------------------
    # Stop control
    # ------------------------------------------------------------------

    def request_stop(self) -> None:
        """Stop claiming new intents; the in-flight one still finishes."""
        self._stop.set()

    @property
    def stopping(self) -> bool:
        """Whether a stop has been requested."""
        return self._stop.is_set()

    # ------------------------------------------------------------------
    # Scheduled entry point
    # ------------------------------------------------------------------

    async def drain_queue(self, max_items: int = DEFAULT_BATCH_SIZE) -> DrainResult:
        """Process up to *max_items* due intents, oldest ``scheduled_for`` first.

        A single intent's failure never escapes this method; it is recorded on
        the intent and counted in ``failed``.
        """
        result = DrainResult()
        if self._metrics:
            with self._metrics.track_drain():
                await self._drain(max_items, result)
        else:
            await self._drain(max_items, result)
        if result.processed or result.failed:
            logger.info(
                "Drained queue: %d completed, %d failed, %d lost to another drainer",
                result.processed,
                result.failed,
                result.skipped,
            )
        return result

    async def _drain(self, max_items: int, result: DrainResult) -> None:
        for intent in await self.fetch_due(max_items):
            if self._stop.is_set():
                break
            if not await self.claim(intent.id):
                result.skipped += 1
                continue
            task = asyncio.ensure_future(self._run_claimed(intent))
            try:
                completed = await asyncio.shield(task)
            except asyncio.CancelledError:
                # This invocation claims nothing further.
                await task
                raise
            if completed:
                result.processed += 1
            else:
                result.failed += 1

    async def fetch_due(self, max_items: int) -> list[NotificationIntent]:
        """Pending intents whose ``scheduled_for`` has passed."""
        async with self._ds.session() as session:
            stmt = (
                select(NotificationIntent)
                .where(
                    NotificationIntent.status == IntentStatus.PENDING.value,
                    NotificationIntent.scheduled_for <= self._clock(),
                )
                .order_by(NotificationIntent.scheduled_for.asc())
                .limit(max_items)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def claim(self, intent_id: str) -> bool:
        """Move *intent_id* from pending to processing.

        Returns:
            True for exactly one caller per pending row.
        """
        async with self._ds.session() as session:
            stmt = (
                update(NotificationIntent)
                .where(
                    NotificationIntent.id == intent_id,
                    NotificationIntent.status == IntentStatus.PENDING.value,
                )
                .values(status=IntentStatus.PROCESSING.value, started_at=self._clock())
            )
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount == 1  # type: ignore[union-attr]

    async def _run_claimed(self, intent: NotificationIntent) -> bool:
        """Process a claimed intent and record its terminal state.

        Returns:
            True only when the intent was recorded as completed.
        """
        try:
            outcome = await self.process_intent(intent)
        except Exception as exc:
            logger.exception("Notification intent %s failed", intent.id)
            await self._finish(intent.id, IntentStatus.FAILED, error=str(exc) or type(exc).__name__)
            return False
        return await self._finish(
            intent.id,
            IntentStatus.COMPLETED,
            processed=outcome.sent,
            failed=outcome.failed,
        )

    async def process_intent(self, intent: NotificationIntent) -> ReconcileResult:
        """Run the pipeline for one intent already in ``processing``."""
        payload = dict(intent.data or {})
        wallets = await self._resolver.resolve(descriptor_from_intent(intent), payload)
        return await self._deliver(
            intent.id,
            wallets,
            intent.notification_type,
            intent.title,
            intent.body,
            payload,
            None,
        )

    async def _finish(
        self,
        intent_id: str,
        status: IntentStatus,
        *,
        processed: int = 0,
        failed: int = 0,
        error: str | None = None,
    ) -> bool:
        """Write the terminal state, retrying a failed write a few times.

        A row no longer in processing is left alone. When every attempt
        fails the intent stays in processing until ``QueueService.requeue``
        picks it up as stalled.

        Returns:
            True when this call moved the row into *status*.
        """
        values: dict[str, Any] = {"status": status.value, "completed_at": self._clock()}
        if status is IntentStatus.COMPLETED:
            values.update(processed_count=processed, failed_count=failed)
        else:
            values["error_message"] = error
        stmt = (
            update(NotificationIntent)
            .where(
                NotificationIntent.id == intent_id,
                NotificationIntent.status == IntentStatus.PROCESSING.value,
            )
            .values(**values)
        )
        for attempt in range(1, FINISH_ATTEMPTS + 1):
            try:
                async with self._ds.session() as session:
                    result = await session.execute(stmt)
                    await session.commit()
            except SQLAlchemyError:
                if attempt == FINISH_ATTEMPTS:
                    logger.exception(
                        "Could not record %s for intent %s after %d attempts",
                        status,
                        intent_id,
                        attempt,
                    )
                    return False
                logger.warning("Recording %s for intent %s failed; retrying", status, intent_id)
                await asyncio.sleep(FINISH_RETRY_DELAY * attempt)
                continue
            break
        if result.rowcount != 1:  # type: ignore[union-attr]
            logger.warning("Intent %s left processing before it could be marked %s", intent_id, status)
            return False
        if self._metrics:
            self._metrics.record_intent(status.value)
        return True

    # ------------------------------------------------------------------
    # Synchronous entry point
    # ------------------------------------------------------------------

    async def send_now(
        self,
        wallets: Iterable[str],
        title: str,
        body: str,
        *,
        category: str = DEFAULT_CATEGORY,
        payload: dict[str, Any] | None = None,
        channel: str | None = None,
    ) -> SendResult:
        """Deliver to *wallets* immediately, without a queue row."""
        outcome = await self._deliver(
            None,
            {w for w in wallets if w},
            category or DEFAULT_CATEGORY,
            title,
            body,
            dict(payload or {}),
            channel,
        )
        return SendResult(sent=outcome.sent, failed=outcome.failed)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _deliver(
        self,
        intent_id: str | None,
        wallets: set[str],
        category: str,
        title: str,
        body: str,
        payload: dict[str, Any],
        channel: str | None,
    ) -> ReconcileResult:
        endpoints = await self._endpoints.active_endpoints(wallets)
        if not endpoints:
            return ReconcileResult(delivery_key=intent_id or "")

        try:
            eligible = await self._eligibility.filter(endpoints, category, payload)
        except LookupTimeoutError as exc:
            logger.warning("Preference lookup timed out; %d endpoints not sent", len(endpoints))
            tickets = [(e, PushTicket.transient("LookupTimeout", exc.message)) for e in endpoints]
            return await self._reconciler.reconcile(intent_id, tickets, category, title, body, payload)

        if not eligible:
            return ReconcileResult(delivery_key=intent_id or "")

        dispatch = await self._dispatcher.dispatch(
            eligible,
            title,
            body,
            {**payload, "type": category},
            channel or channel_for(category),
        )
        return await self._reconciler.reconcile(
            intent_id, dispatch.tickets, category, title, body, payload
        )
