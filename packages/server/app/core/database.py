"""
Engine, sessions and units of work.

Request handlers get a bare session from ``get_session``; the services decide
when to commit by wrapping their writes in ``transaction``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings

settings = get_settings()
log = structlog.get_logger()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=not settings.database_url.startswith("sqlite"),
)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db():
    """Create missing tables from SQLModel metadata (``FC_CREATE_SCHEMA_ON_STARTUP``)."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    log.info("database.schema_ready", tables=len(SQLModel.metadata.tables))


async def dispose_db():
    await engine.dispose()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, rolled back if the handler fails."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def transaction(session: AsyncSession):
    """Commit the work done inside the block, or roll all of it back."""
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
