# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Health check API endpoint."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from src.services.scheduler import get_job_runner

router = APIRouter(tags=["Health"])

APP_VERSION = "0.1.0"


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint.

    Returns:
        Health status with timestamp and job runner state.
    """
    runner = get_job_runner()
    return {
        "status": "healthy",
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "version": APP_VERSION,
        "jobs_running": runner is not None and runner.is_running,
    }
