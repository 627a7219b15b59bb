"""Metrics — Prometheus metrics collection and exposure."""

from __future__ import annotations

from wallet_notify.metrics.collector import MetricsCollector, NotifyMetrics

__all__ = ["MetricsCollector", "NotifyMetrics"]
