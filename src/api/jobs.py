# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Background job status API endpoint."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.api.dependencies import Runner
from src.exceptions import NotFoundError

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


class JobQueuedResponse(BaseModel):
    """Response model for a queued background job."""

    job_id: str = Field(description="Job ID for status polling")
    status: str = Field(description="Current job status")


class JobStatusResponse(BaseModel):
    """Response model for background job status."""

    id: str = Field(description="Job ID")
    name: str = Field(description="Job name")
    status: str = Field(description="pending, running, succeeded or failed")
    result: dict[str, Any] | None = Field(default=None, description="Job result")
    error: str | None = Field(default=None, description="Failure message")
    created_at: datetime = Field(description="When the job was queued")
    finished_at: datetime | None = Field(default=None, description="When the job ended")


@router.get("/{job_id}", response_model=JobStatusResponse)
async def get_job(job_id: str, runner: Runner) -> dict[str, Any]:
    """Get the status of a background job."""
    job = runner.get_status(job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found", field="job_id")
    return job
