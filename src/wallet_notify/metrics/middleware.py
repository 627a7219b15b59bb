"""Prometheus HTTP request metrics middleware.

Tracks, per route template (never the raw path, so wallet addresses in
``/v1/wallets/{wallet}/...`` do not explode label cardinality):

- ``http_request_total`` (counter) by method, route and status
- ``http_request_duration_seconds`` (histogram) by method and route

Requests that match no route are recorded under ``<unmatched>``. The
scrape endpoint itself is not recorded.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from prometheus_client import CollectorRegistry
    from starlette.requests import Request
    from starlette.responses import Response

UNMATCHED_ROUTE = "<unmatched>"
DEFAULT_EXCLUDED = ("/metrics",)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that records request count and duration."""

    def __init__(
        self,
        app: object,
        *,
        registry: CollectorRegistry,
        exclude_paths: Iterable[str] = DEFAULT_EXCLUDED,
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._exclude = frozenset(exclude_paths)
        self._requests = Counter(
            "http_request_total",
            "Total HTTP requests",
            ("method", "route", "status"),
            registry=registry,
        )
        self._latency = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ("method", "route"),
            registry=registry,
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[type-arg]
        """Time the request and count it under its route template."""
        if request.url.path in self._exclude:
            return await call_next(request)

        start = time.monotonic()
        response: Response = await call_next(request)
        elapsed = time.monotonic() - start

        route = getattr(request.scope.get("route"), "path", UNMATCHED_ROUTE)
        self._requests.labels(request.method, route, str(response.status_code)).inc()
        self._latency.labels(request.method, route).observe(elapsed)
        return response
