"""
Snapshot store engine and sessions.

One async engine per process, built from settings.database_url. Request
handlers get their session from get_session; the pruning job opens its own
through async_session_factory.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cardlistcompare.config import settings
from cardlistcompare.models.db import Base

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Rows stay readable after commit; handlers serialize them after the
# session has closed.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency: one session per request, committed once at the end.

    A snapshot insert, the retention prune it triggers and the commander
    backfill on the tracked deck land in the same transaction. A database
    error anywhere in the request rolls all of them back.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the tracked deck and snapshot tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
