"""Async engine construction for the notification store.

PostgreSQL (asyncpg) is the production target. SQLite (aiosqlite) backs
local runs and tests; file databases are switched to WAL so the drainer's
reads are not blocked while another drainer holds the write lock for a
claim.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from wallet_notify.config.settings import DatabaseConfig

_APPLICATION_NAME = "wallet-notify"


def is_sqlite(dsn: str) -> bool:
    """Whether *dsn* points at SQLite."""
    return dsn.startswith("sqlite")


def is_memory_sqlite(dsn: str) -> bool:
    """Whether *dsn* is a private in-memory SQLite database."""
    return is_sqlite(dsn) and (":memory:" in dsn or dsn.rstrip("/").endswith("sqlite+aiosqlite:"))


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Build the async engine for *config*.

    Returns:
        A configured ``AsyncEngine``; nothing is connected yet.
    """
    if is_sqlite(config.dsn):
        return _create_sqlite_engine(config)

    kwargs: dict[str, Any] = {
        "echo": config.debug_sql,
        "pool_size": config.max_idle_connections,
        "max_overflow": max(0, config.max_open_connections - config.max_idle_connections),
        "pool_pre_ping": True,
    }
    if config.dsn.startswith("postgresql+asyncpg"):
        kwargs["connect_args"] = {"server_settings": {"application_name": _APPLICATION_NAME}}
    return create_async_engine(config.dsn, **kwargs)


def _create_sqlite_engine(config: DatabaseConfig) -> AsyncEngine:
    engine = create_async_engine(
        config.dsn,
        echo=config.debug_sql,
        connect_args={"timeout": config.busy_timeout_seconds},
    )
    if not is_memory_sqlite(config.dsn):

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection: Any, _record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.close()

    return engine
