"""Schema bootstrap for development and tests.

Production deployments run the Alembic environment in ``alembic/`` instead.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import inspect

from wallet_notify.engine.models import ALL_MODELS, Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

PIPELINE_TABLES = frozenset(model.__tablename__ for model in ALL_MODELS)


async def existing_tables(engine: AsyncEngine) -> set[str]:
    """Names of the pipeline tables already present in the database."""
    async with engine.connect() as conn:
        names = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    return PIPELINE_TABLES.intersection(names)


async def run_auto_migrate(engine: AsyncEngine) -> list[str]:
    """Create any missing pipeline table.

    Returns:
        The tables that were created, sorted by name.
    """
    before = await existing_tables(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    created = sorted(PIPELINE_TABLES - before)
    if created:
        logger.info("Created notification tables: %s", ", ".join(created))
    return created
