"""Database configuration and session management.

Provides async SQLAlchemy engine and session factory.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from obras.infrastructure.config import settings


def create_engine_from_url(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given URL.

    SQLite databases get a fresh connection per checkout so that a
    file database can be shared across event loops.

    Args:
        url: Async database URL.
        echo: Whether to log SQL statements.

    Returns:
        Configured AsyncEngine.
    """
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo, poolclass=NullPool)
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# Create async engine
engine = create_engine_from_url(settings.database_url, echo=settings.debug)

# Session factory
async_session_factory = create_session_factory(engine)

# Base class for models
Base = declarative_base()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    One session is one transaction: everything a request writes is
    committed together or rolled back together.

    Yields:
        AsyncSession for database operations.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ping(session: AsyncSession) -> bool:
    """Check database connectivity.

    Returns:
        True if a trivial query succeeds.
    """
    result = await session.execute(text("SELECT 1"))
    return result.scalar_one() == 1
