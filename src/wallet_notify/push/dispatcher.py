"""Batch dispatcher — chunked, bounded-concurrency push delivery.

Endpoints are split into provider-sized chunks; each chunk is one HTTP
call. A failed chunk turns into transient failure tickets for exactly the
endpoints it carried, so results already obtained from other chunks are
kept.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from wallet_notify.errors.push_errors import PushTransportError
from wallet_notify.push.models import Endpoint, PushMessage, PushTicket

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from wallet_notify.metrics.collector import NotifyMetrics
    from wallet_notify.push.client import ExpoPushClient

logger = logging.getLogger(__name__)

MAX_CHUNK_SIZE = 100
DEFAULT_WORKERS = 4


def chunked(items: Sequence[Endpoint], size: int) -> Iterator[list[Endpoint]]:
    """Yield consecutive slices of *items* of at most *size* elements."""
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


@dataclass
class DispatchResult:
    """All tickets produced by one dispatch, paired with their endpoints."""

    tickets: list[tuple[Endpoint, PushTicket]] = field(default_factory=list)
    chunks: int = 0
    failed_chunks: int = 0

    @property
    def ok_count(self) -> int:
        """Messages accepted by the provider."""
        return sum(1 for _, t in self.tickets if t.ok)

    @property
    def failed_count(self) -> int:
        """Messages not delivered (transient or permanent)."""
        return len(self.tickets) - self.ok_count


class BatchDispatcher:
    """Deliver one notification to many endpoints.

    Usage::

        dispatcher = BatchDispatcher(client, chunk_size=100, workers=4)
        result = await dispatcher.dispatch(endpoints, "Title", "Body", {}, "trades")
    """

    def __init__(
        self,
        client: ExpoPushClient,
        *,
        chunk_size: int = MAX_CHUNK_SIZE,
        workers: int = DEFAULT_WORKERS,
        ttl: int = 86400,
        priority: str = "high",
        sound: str | None = "default",
        metrics: NotifyMetrics | None = None,
    ) -> None:
        if not 1 <= chunk_size <= MAX_CHUNK_SIZE:
            msg = f"chunk_size must be between 1 and {MAX_CHUNK_SIZE}"
            raise ValueError(msg)
        self._client = client
        self._chunk_size = chunk_size
        self._workers = max(1, workers)
        self._ttl = ttl
        self._priority = priority
        self._sound = sound
        self._metrics = metrics

    @property
    def chunk_size(self) -> int:
        """Maximum endpoints per provider call."""
        return self._chunk_size

    async def dispatch(
        self,
        endpoints: Sequence[Endpoint],
        title: str,
        body: str,
        payload: dict[str, Any],
        channel: str,
    ) -> DispatchResult:
        """Send the same message to every endpoint.

        Returns:
            A ``DispatchResult`` with exactly one ticket per endpoint.
        """
        result = DispatchResult()
        if not endpoints:
            return result

        chunks = list(chunked(endpoints, self._chunk_size))
        result.chunks = len(chunks)
        semaphore = asyncio.Semaphore(self._workers)

        async def run(index: int, chunk: list[Endpoint]) -> tuple[list[PushTicket], bool]:
            async with semaphore:
                return await self._send_chunk(index, chunk, title, body, payload, channel)

        start = time.monotonic()
        per_chunk = await asyncio.gather(*(run(i, c) for i, c in enumerate(chunks)))
        if self._metrics:
            self._metrics.observe_dispatch(time.monotonic() - start)

        for chunk, (tickets, transport_failed) in zip(chunks, per_chunk, strict=True):
            if transport_failed:
                result.failed_chunks += 1
            result.tickets.extend(zip(chunk, tickets, strict=True))

        if self._metrics:
            for _, ticket in result.tickets:
                self._metrics.record_ticket(ticket.outcome)

        logger.debug(
            "Dispatched %d messages in %d chunks (%d ok, %d failed chunks)",
            len(endpoints),
            result.chunks,
            result.ok_count,
            result.failed_chunks,
        )
        return result

    async def _send_chunk(
        self,
        index: int,
        chunk: list[Endpoint],
        title: str,
        body: str,
        payload: dict[str, Any],
        channel: str,
    ) -> tuple[list[PushTicket], bool]:
        """Send one chunk; returns its tickets and whether the call itself failed."""
        messages = [
            PushMessage(
                to=e.token,
                title=title,
                body=body,
                data=payload,
                sound=self._sound,
                channel_id=channel,
                priority=self._priority,
                ttl=self._ttl,
            )
            for e in chunk
        ]
        try:
            return await self._client.send(messages), False
        except PushTransportError as exc:
            logger.warning("Push chunk %d (%d messages) failed: %s", index, len(chunk), exc.message)
            return [PushTicket.transient("TransportError", exc.message) for _ in chunk], True
        except Exception as exc:
            logger.exception("Push chunk %d (%d messages) raised unexpectedly", index, len(chunk))
            detail = str(exc) or type(exc).__name__
            return [PushTicket.transient("TransportError", detail) for _ in chunk], True
