"""Async database engine and session management.

Uses SQLAlchemy 2.0 async with the asyncpg driver in production.
Graceful degradation: if PostgreSQL is unavailable at boot, the app still starts
and requests fail individually until the store comes back.
"""

import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from serp_collector.config import settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, ssl: bool = False) -> AsyncEngine:
    """Create an async engine for ``url``.

    SQLite engines get ``PRAGMA foreign_keys=ON`` on every connection so that
    ``ON DELETE CASCADE`` behaves like it does on PostgreSQL.
    """
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=False)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    connect_args = {"ssl": "require"} if ssl else {}
    return create_async_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = build_engine(settings.sqlalchemy_url, ssl=settings.is_production)
async_session_factory = build_session_factory(engine)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency — the process-wide session factory.

    Overridden in tests to point at a throwaway database.
    """
    return async_session_factory


async def init_db(target: AsyncEngine | None = None) -> bool:
    """Create tables if they don't exist. Returns True on success."""
    from serp_collector.models import Base

    target = target or engine
    try:
        async with target.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")
        return True
    except Exception as e:
        logger.warning("Database unavailable — continuing without it: %s", str(e)[:200])
        return False


async def close_db():
    """Dispose engine connections on shutdown."""
    await engine.dispose()
    logger.info("Database connections closed")
