"""Metrics collector — Prometheus counters, gauges, histograms.

- ``notify_intents_total`` counter (status: completed | failed)
- ``notify_messages_total`` counter (outcome: ok | transient | permanent)
- ``notify_endpoints_deactivated_total`` counter
- ``notify_dispatch_histogram`` / ``notify_drain_histogram``
- ``notify_cron_histogram`` / ``notify_cron_last_execution_gauge``
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator

_PREFIX = "notify"


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`NotifyMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def gauge(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Gauge:
        """Register and return a Gauge."""
        return Gauge(name, doc, labels, registry=self._registry)

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class NotifyMetrics:
    """High-level pipeline metrics."""

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._intents = self._collector.counter(
            f"{_PREFIX}_intents_total",
            "Notification intents reaching a terminal state",
            ("status",),
        )
        self._messages = self._collector.counter(
            f"{_PREFIX}_messages_total",
            "Push messages by delivery outcome",
            ("outcome",),
        )
        self._deactivated = self._collector.counter(
            f"{_PREFIX}_endpoints_deactivated_total",
            "Push tokens deactivated after a permanent provider error",
        )
        self._dispatch = self._collector.histogram(
            f"{_PREFIX}_dispatch_histogram",
            "Duration of one batch dispatch (all chunks)",
        )
        self._drain = self._collector.histogram(
            f"{_PREFIX}_drain_histogram",
            "Duration of one queue drain",
        )

        # Cron metrics
        self._cron_histogram = self._collector.histogram(
            f"{_PREFIX}_cron_histogram",
            "Duration of cron job executions",
            ("job_name",),
        )
        self._cron_last = self._collector.gauge(
            f"{_PREFIX}_cron_last_execution_gauge",
            "Timestamp of last cron execution",
            ("job_name",),
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    def record_intent(self, status: str) -> None:
        """Count an intent reaching *status*."""
        self._intents.labels(status=status).inc()

    def record_ticket(self, outcome: str) -> None:
        """Count one push ticket by outcome."""
        self._messages.labels(outcome=str(outcome)).inc()

    def record_deactivations(self, count: int) -> None:
        """Count deactivated push tokens."""
        if count:
            self._deactivated.inc(count)

    def observe_dispatch(self, seconds: float) -> None:
        """Record the duration of a dispatch."""
        self._dispatch.observe(seconds)

    @contextmanager
    def track_drain(self) -> Iterator[None]:
        """Track the duration of a queue drain."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._drain.observe(time.monotonic() - start)

    @contextmanager
    def track_cron(self, job_name: str) -> Iterator[None]:
        """Track the duration of a cron job and stamp its last execution."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._cron_histogram.labels(job_name=job_name).observe(time.monotonic() - start)
            self._cron_last.labels(job_name=job_name).set(time.time())
