# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Pytest fixtures for PMPulse tests."""

import os
from collections.abc import AsyncGenerator
from datetime import date
from pathlib import Path
from typing import Any

import pytest
from cryptography.fernet import Fernet
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


# Set environment variables BEFORE any src imports
# This must happen at module load time
def _setup_env() -> None:
    """Set up test environment variables at module load."""
    if "ENCRYPTION_KEY" not in os.environ:
        os.environ["ENCRYPTION_KEY"] = Fernet.generate_key().decode()
    if "DATABASE_URL" not in os.environ:
        os.environ["DATABASE_URL"] = "sqlite:///./test.db"
    if "STANDALONE_MODE" not in os.environ:
        os.environ["STANDALONE_MODE"] = "true"
    if "LOG_LEVEL" not in os.environ:
        os.environ["LOG_LEVEL"] = "DEBUG"


_setup_env()

# Now safe to import from src
from fastapi import FastAPI  # noqa: E402
from src.database import Base, get_db  # noqa: E402
from src.services.scheduler import JobRunner  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables."""
    yield
    test_db_path = Path("test.db")
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture
async def async_engine():
    """Create an async in-memory test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key constraint enforcement for SQLite on every connection
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, _connection_record):
        """Enable SQLite FK constraints on each connection."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the test engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
async def async_session(session_factory) -> AsyncGenerator[AsyncSession]:
    """Create an async test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def job_runner(session_factory) -> AsyncGenerator[JobRunner]:
    """Create a started job runner bound to the test database."""
    runner = JobRunner(session_factory)
    runner.start()
    yield runner
    runner.stop()


@pytest.fixture
def app(session_factory, job_runner) -> FastAPI:
    """Create a test FastAPI application using the test database."""
    from src.api.dependencies import get_runner
    from src.main import create_app

    app = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_runner] = lambda: job_runner
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def seeded_session(async_session) -> AsyncSession:
    """Session with the built-in utility types present."""
    from src.services.seeders import seed_utility_types

    await seed_utility_types(async_session)
    await async_session.flush()
    return async_session


@pytest.fixture
def sample_expense_payload() -> dict[str, Any]:
    """Sample raw expense payload as pulled from the property system."""
    return {
        "id": "bill-1001",
        "property_id": "prop-1",
        "gl_account": {"number": "6210", "name": "Water Expense"},
        "amount": "$125.50",
        "bill_date": date(2026, 9, 15).isoformat(),
        "vendor": "City Water",
        "memo": "September water",
    }


@pytest.fixture
def encryption_key(setup_test_environment) -> str:
    """Get test encryption key."""
    return os.environ["ENCRYPTION_KEY"]
