# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Database configuration and async engine setup."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import event, make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from src.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


def utc_now() -> datetime:
    """Get current UTC datetime for SQLAlchemy defaults."""
    return datetime.now(UTC)


def get_database_url() -> str:
    """Get the database URL, converting sqlite to async driver.

    Returns:
        Database URL with async driver prefix.
    """
    settings = get_settings()
    url = settings.database_url

    # Convert sqlite:// to sqlite+aiosqlite://
    if url.startswith("sqlite://"):
        url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    return url


def create_engine() -> async_sessionmaker[AsyncSession]:
    """Create async database engine and session factory.

    Returns:
        Async session maker for database operations.
    """
    url = get_database_url()
    is_sqlite = "sqlite" in url
    engine = create_async_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )

    if is_sqlite:
        # Mapping and type deletes rely on FK enforcement
        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _connection_record):  # type: ignore[no-untyped-def]
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()

    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


# Global session factory - initialized on first use
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the global session factory.

    Returns:
        Async session maker for database operations.
    """
    global _session_factory  # noqa: PLW0603
    if _session_factory is None:
        _session_factory = create_engine()
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession]:
    """Get an async database session.

    Yields:
        AsyncSession for database operations.
    """
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency for database sessions.

    Yields:
        AsyncSession for database operations.
    """
    async with get_session() as session:
        yield session


async def init_db() -> None:
    """Create all tables that do not exist yet.

    Used by the CLI and development server; production schemas are
    managed through Alembic migrations.
    """
    # Import models so every table is registered on the metadata
    import src.models  # noqa: F401

    url = make_url(get_database_url())
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    factory = get_session_factory()
    engine = factory.kw["bind"]
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the global engine so the next use starts a fresh one."""
    global _session_factory  # noqa: PLW0603
    if _session_factory is None:
        return
    await _session_factory.kw["bind"].dispose()
    _session_factory = None
