# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Background job runner for reprocess and reset operations."""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_RUNNING = "running"
STATUS_SUCCEEDED = "succeeded"
STATUS_FAILED = "failed"

ACTIVE_STATUSES = (STATUS_PENDING, STATUS_RUNNING)

JobFunc = Callable[[AsyncSession], Awaitable[Any]]


class JobRunner:
    """Run one-shot background jobs on an APScheduler event loop scheduler.

    Every job gets its own database session, committed when the job
    succeeds and rolled back when it fails. Job status is kept in memory.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize runner.

        Args:
            session_factory: Factory for creating database sessions.
        """
        self._session_factory = session_factory
        self._scheduler = AsyncIOScheduler()
        self._running = False
        self._jobs: dict[str, dict[str, Any]] = {}

    def start(self) -> None:
        """Start the scheduler."""
        if self._running:
            logger.warning("Job runner already running")
            return

        self._scheduler.start()
        self._running = True
        logger.info("Job runner started")

    def stop(self) -> None:
        """Stop the scheduler."""
        if not self._running:
            return

        self._scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Job runner stopped")

    @property
    def is_running(self) -> bool:
        """Check if the runner is running."""
        return self._running

    def enqueue(self, name: str, func: JobFunc) -> str:
        """Schedule a job to run as soon as possible.

        A job with the same name that is still pending or running is not
        scheduled twice; its ID is returned instead.

        Args:
            name: Job name, e.g. 'utilities:reprocess'.
            func: Coroutine function called with a fresh session.

        Returns:
            Job ID for status polling.
        """
        for job_id, job in self._jobs.items():
            if job["name"] == name and job["status"] in ACTIVE_STATUSES:
                logger.info("Job %s already queued as %s", name, job_id)
                return job_id

        job_id = uuid.uuid4().hex
        self._jobs[job_id] = {
            "id": job_id,
            "name": name,
            "status": STATUS_PENDING,
            "result": None,
            "error": None,
            "created_at": datetime.now(UTC),
            "finished_at": None,
        }
        self._scheduler.add_job(
            self.run,
            trigger=DateTrigger(run_date=datetime.now(UTC)),
            args=[job_id, func],
            id=job_id,
            max_instances=1,
            misfire_grace_time=None,
        )
        logger.info("Queued job %s (%s)", name, job_id)
        return job_id

    async def run(self, job_id: str, func: JobFunc) -> None:
        """Execute a queued job and record its outcome.

        Args:
            job_id: ID returned by enqueue.
            func: Coroutine function called with a fresh session.
        """
        job = self._jobs[job_id]
        job["status"] = STATUS_RUNNING
        logger.info("Running job %s (%s)", job["name"], job_id)

        async with self._session_factory() as session:
            try:
                result = await func(session)
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.exception("Job %s (%s) failed", job["name"], job_id)
                job["status"] = STATUS_FAILED
                job["error"] = str(e)
            else:
                job["status"] = STATUS_SUCCEEDED
                job["result"] = result
                logger.info("Job %s (%s) succeeded", job["name"], job_id)

        job["finished_at"] = datetime.now(UTC)

    def get_status(self, job_id: str) -> dict[str, Any] | None:
        """Get a job's status record.

        Returns:
            Copy of the status record, or None for unknown IDs.
        """
        job = self._jobs.get(job_id)
        return dict(job) if job is not None else None

    async def wait_for(
        self, job_id: str, timeout: float = 10.0, interval: float = 0.05
    ) -> dict[str, Any] | None:
        """Wait until a job has finished.

        Args:
            job_id: Job ID.
            timeout: Seconds to wait before giving up.
            interval: Polling interval in seconds.

        Returns:
            Final status record, or None for unknown IDs.

        Raises:
            TimeoutError: If the job did not finish in time.
        """
        async with asyncio.timeout(timeout):
            while True:
                job = self.get_status(job_id)
                if job is None or job["status"] not in ACTIVE_STATUSES:
                    return job
                await asyncio.sleep(interval)


# Global runner instance
_job_runner: JobRunner | None = None


def get_job_runner() -> JobRunner | None:
    """Get the global job runner.

    Returns:
        JobRunner instance or None if not initialized.
    """
    return _job_runner


def init_job_runner(session_factory: async_sessionmaker[AsyncSession]) -> JobRunner:
    """Initialize the global job runner.

    Args:
        session_factory: Factory for creating database sessions.

    Returns:
        Initialized JobRunner.
    """
    global _job_runner  # noqa: PLW0603
    _job_runner = JobRunner(session_factory)
    return _job_runner
