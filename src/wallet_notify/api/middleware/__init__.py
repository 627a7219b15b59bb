"""API middleware — CORS, metrics."""

from wallet_notify.api.middleware.cors import setup_cors
from wallet_notify.api.middleware.metrics import PrometheusMiddleware

__all__ = ["PrometheusMiddleware", "setup_cors"]
