# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db, get_session_factory
from src.services.scheduler import JobRunner, get_job_runner, init_job_runner
from src.services.settings_store import SettingsStore


async def get_settings_store(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SettingsStore:
    """Provide a settings store bound to the request session."""
    return SettingsStore(db)


def get_runner() -> JobRunner:
    """Provide the global job runner, creating it on first use."""
    runner = get_job_runner()
    if runner is None:
        runner = init_job_runner(get_session_factory())
    if not runner.is_running:
        runner.start()
    return runner


DbSession = Annotated[AsyncSession, Depends(get_db)]
Store = Annotated[SettingsStore, Depends(get_settings_store)]
Runner = Annotated[JobRunner, Depends(get_runner)]
