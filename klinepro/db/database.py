"""
Database engine management.

Uses SQLite with aiosqlite for async support. The engine is created by
the application lifespan and passed to whatever needs it; nothing here
holds a connection at import time.
"""

import logging
import os

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the kline store.

    For file-backed SQLite the parent directory is created on demand.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            directory = os.path.dirname(os.path.abspath(url.database))
            os.makedirs(directory, exist_ok=True)

        # Note: SQLite requires check_same_thread=False for async
        return create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,  # Recommended for SQLite
        )

    return create_async_engine(database_url, echo=echo)


async def close_db(engine: AsyncEngine) -> None:
    """
    Close database connections.
    Called on application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")
