"""Application entry point for the notification server."""

from __future__ import annotations

import os

import uvicorn

from wallet_notify.config.settings import AppConfig


def main() -> None:
    """Start the notification server.

    Host, port and verbosity come from :class:`AppConfig`, so the
    ``WALLETNOTIFY_SERVER__*`` variables and ``WALLETNOTIFY_CONFIG_PATH`` both apply.
    """
    config = AppConfig()
    reload = os.getenv("WALLETNOTIFY_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "wallet_notify.api.app:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=reload,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
