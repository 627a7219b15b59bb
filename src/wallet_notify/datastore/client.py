"""Datastore client — the one transactional store behind the pipeline.

The notification queue, preferences, push tokens, follow graph and
delivery history all live here. Callers open short sessions and commit
explicitly; conditional UPDATEs and ``ON CONFLICT`` inserts carry the
concurrency guarantees, not long transactions.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from wallet_notify.datastore.engines import create_engine

if TYPE_CHECKING:
    from wallet_notify.config.settings import DatabaseConfig

logger = logging.getLogger(__name__)

_ERR_NOT_OPEN = "Datastore is not open. Call open() first."


class Datastore:
    """Async engine plus session factory.

    Usage::

        ds = Datastore(db_config)
        await ds.open()
        async with ds.session() as session:
            ...
            await session.commit()
        await ds.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Return the underlying async engine.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._engine is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._engine

    @property
    def dialect(self) -> str:
        """Name of the SQL dialect in use (``sqlite`` or ``postgresql``)."""
        return self.engine.dialect.name

    @property
    def is_open(self) -> bool:
        """Check if the datastore is open."""
        return self._engine is not None

    async def open(self) -> None:
        """Create the engine and session factory (no connection is made yet)."""
        if self._engine is not None:
            return
        self._engine = create_engine(self._config)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.debug("Datastore opened (%s)", self.dialect)

    async def close(self) -> None:
        """Dispose the engine and release all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def session(self) -> AsyncSession:
        """Create a new async session.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._session_factory is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._session_factory()

    async def ping(self) -> bool:
        """Run ``SELECT 1``; False when the database cannot be reached."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning("Datastore ping failed: %s", exc)
            return False
        return True
