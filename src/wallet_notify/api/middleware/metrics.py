"""Prometheus metrics middleware — re-exports from metrics package."""

from __future__ import annotations

from wallet_notify.metrics.middleware import PrometheusMiddleware

__all__ = ["PrometheusMiddleware"]
