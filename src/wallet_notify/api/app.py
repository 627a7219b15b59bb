"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response

from wallet_notify import __version__
from wallet_notify.api.middleware.cors import setup_cors
from wallet_notify.api.middleware.metrics import PrometheusMiddleware
from wallet_notify.api.v1 import v1_router
from wallet_notify.config.settings import AppConfig
from wallet_notify.engine.client import NotifyEngine
from wallet_notify.errors.notify_errors import NotifyError
from wallet_notify.metrics.collector import NotifyMetrics

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle hooks.

    Initialises the engine (datastore, cache, push client, cron jobs) on
    startup and gracefully shuts down on exit.
    """
    config: AppConfig = app.state.config
    engine = NotifyEngine(config, metrics=app.state.metrics)

    try:
        await engine.initialize()
        app.state.engine = engine
        logger.info("Notification engine initialized")
        yield
    finally:
        await engine.close()
        logger.info("Notification engine shut down")


def create_app(*, config: AppConfig | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables.
    """
    if config is None:
        config = AppConfig()

    app = FastAPI(
        title="wallet-notify",
        version=__version__,
        description="Notification fan-out and push delivery for wallet activity",
        lifespan=_lifespan,
    )

    # Store config and metrics on app.state for lifespan access
    app.state.config = config
    app.state.metrics = NotifyMetrics() if config.metrics.enabled else None

    # -- Middleware --
    setup_cors(app)
    if app.state.metrics is not None:
        app.add_middleware(PrometheusMiddleware, registry=app.state.metrics.registry)

    # -- Error handler --
    @app.exception_handler(NotifyError)
    async def _notify_error_handler(request: Request, exc: NotifyError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health(request: Request) -> dict:
        engine: NotifyEngine | None = getattr(request.app.state, "engine", None)
        components = await engine.health_check() if engine else {"engine": "not_initialized"}
        return {"status": "ok", "version": __version__, "components": components}

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        metrics: NotifyMetrics | None = app.state.metrics
        body = generate_latest(metrics.registry) if metrics else generate_latest()
        return Response(
            content=body,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    # -- Mount v1 API --
    app.include_router(v1_router)

    return app
