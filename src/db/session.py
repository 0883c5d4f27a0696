"""
Async SQLAlchemy database session configuration.

Ledger writes are committed record by record by the reconciliation
engine, so sessions here never wrap a whole sync in one transaction.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.config import settings

logger = logging.getLogger(__name__)


def _connect_args(database_url: str) -> dict:
    """Driver specific connection arguments."""
    if "+asyncpg" in database_url:
        # pgbouncer transaction mode cannot keep prepared statements
        return {"statement_cache_size": 0}
    return {}


# NullPool: connections go back to the external pooler after each session
engine = create_async_engine(
    settings.database_url,
    poolclass=NullPool,
    echo=not settings.is_production,  # SQL logging in dev
    connect_args=_connect_args(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.
    Usage:
        @router.get("/domains")
        async def list_domains(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions outside of request handling
    (scheduler jobs, startup seeding).
    Usage:
        async with get_db_context() as db:
            await run_network_sync(db, AdNetwork.SEDO, cache)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Database session rolled back")
            raise
