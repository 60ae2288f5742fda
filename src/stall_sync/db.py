"""Async engine and sessions for the stall catalog store."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from stall_sync.config import settings
from stall_sync.models import Base

logger = logging.getLogger(__name__)

# Scheduled runs are hours apart, so pooled connections may have gone stale.
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session for read-only API routes."""
    async with async_session_factory() as session:
        yield session


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create the stalls, locations and sync-run tables if missing."""
    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug("Schema ready on %s", bind.url.render_as_string(hide_password=True))


async def dispose_db() -> None:
    await engine.dispose()
