# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""FastAPI application entry point for PMPulse."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api import (
    alert_rules,
    formatting_rules,
    health,
    jobs,
    settings,
    utility_accounts,
    utility_exclusions,
    utility_types,
)
from src.config import get_settings
from src.database import close_db, get_session_factory, init_db
from src.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from src.services.scheduler import init_job_runner
from src.utils.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan handler for startup/shutdown events.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    app_settings = get_settings()
    setup_logging()
    app.state.settings = app_settings

    await init_db()
    runner = init_job_runner(get_session_factory())
    runner.start()

    yield

    runner.stop()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application.
    """
    app_settings = get_settings()

    app = FastAPI(
        title="PMPulse",
        description="Settings store and utility expense classification",
        version=health.APP_VERSION,
        docs_url="/docs" if app_settings.standalone_mode else None,
        redoc_url="/redoc" if app_settings.standalone_mode else None,
        lifespan=lifespan,
    )

    app.add_middleware(ErrorHandlerMiddleware)
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(settings.router)
    app.include_router(utility_types.router)
    app.include_router(utility_accounts.router)
    app.include_router(utility_exclusions.router)
    app.include_router(formatting_rules.router)
    app.include_router(alert_rules.router)
    app.include_router(jobs.router)

    return app


# Application instance
app = create_app()
