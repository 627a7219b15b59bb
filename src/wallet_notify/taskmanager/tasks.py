"""Background task definitions — cron job handlers.

- ``drain_notification_queue`` (``queue.drain_period``) — claim and deliver
  up to ``queue.batch_size`` due intents
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wallet_notify.engine.client import NotifyEngine

logger = logging.getLogger(__name__)

DRAIN_QUEUE_JOB = "drain_notification_queue"


async def task_drain_queue(engine: NotifyEngine) -> None:
    """Drain one batch of the notification queue."""
    drainer = engine.drainer
    if drainer.stopping:
        return
    result = await drainer.drain_queue(engine.config.queue.batch_size)
    if result.skipped:
        logger.debug("%d intents were claimed by another drainer", result.skipped)
