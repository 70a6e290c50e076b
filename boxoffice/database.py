"""
Database connection and session management.
Uses SQLAlchemy async with asyncpg (Postgres) or aiosqlite (SQLite).
"""

import logging
from typing import Any, AsyncGenerator, Dict, Optional, Tuple

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from boxoffice.config import settings
from boxoffice.errors import PersistenceError

logger = logging.getLogger(__name__)

ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}

SSL_MODES = {"require", "verify-ca", "verify-full"}


def get_database_url(raw_url: str) -> Tuple[str, Dict[str, Any]]:
    """
    Normalise a database URL for the async drivers.
    Returns the URL and the connect_args the driver needs.
    """
    url = make_url(raw_url)
    connect_args: Dict[str, Any] = {}

    if url.drivername in ASYNC_DRIVERS:
        url = url.set(drivername=ASYNC_DRIVERS[url.drivername])

    # asyncpg doesn't accept sslmode as a query param
    sslmode = url.query.get("sslmode")
    if sslmode is not None:
        url = url.difference_update_query(["sslmode"])
        if sslmode in SSL_MODES:
            connect_args["ssl"] = True

    return url.render_as_string(hide_password=False), connect_args


def create_engine_if_configured() -> Optional[AsyncEngine]:
    """Create async engine only if DATABASE_URL is configured."""
    if not settings.database_url:
        logger.warning("DATABASE_URL not configured. Registration features disabled.")
        return None

    db_url, connect_args = get_database_url(settings.database_url)
    options: Dict[str, Any] = {"echo": settings.debug, "connect_args": connect_args}
    if db_url.startswith("postgresql"):
        options.update(pool_pre_ping=True, pool_size=5, max_overflow=10)

    return create_async_engine(db_url, **options)


# May be None if not configured
engine = create_engine_if_configured()

async_session_maker = (
    async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    if engine
    else None
)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session."""
    if not async_session_maker:
        raise PersistenceError("Database not configured")

    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_optional_db() -> AsyncGenerator[Optional[AsyncSession], None]:
    """Like get_db, but yields None when no database is configured."""
    if not async_session_maker:
        yield None
        return

    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Initialize database tables."""
    if not engine:
        logger.info("Skipping database initialization - DATABASE_URL not configured")
        return

    # Register models on Base.metadata
    import boxoffice.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    if engine:
        await engine.dispose()
