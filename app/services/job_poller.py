# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

# ---------------------------
# ✅ Job model
# ---------------------------

QUEUED = "queued"
GENERATING = "generating"
COMPLETED = "completed"
ERROR = "error"

JOB_STATUSES = (QUEUED, GENERATING, COMPLETED, ERROR)
TERMINAL_STATUSES = (COMPLETED, ERROR)

# Provider wording for avatars, voices and videos
STATUS_ALIASES = {
    "creating": QUEUED,
    "pending": GENERATING,
    "training": GENERATING,
    "processing": GENERATING,
    "ready": COMPLETED,
    "failed": ERROR,
}

VIDEO_POLL_INTERVAL = 3.0
TRAINING_POLL_INTERVAL = 5.0


def normalize_status(raw: Optional[str]) -> str:
    status = (raw or QUEUED).strip().lower()
    status = STATUS_ALIASES.get(status, status)
    if status not in JOB_STATUSES:
        logger.warning("⚠️ Unknown job status '%s', treating as generating", raw)
        return GENERATING
    return status


@dataclass
class AsyncJob:
    job_id: str
    status: str
    result_url: Optional[str] = None
    error_message: Optional[str] = None
    progress: Optional[int] = None
    raw: dict = field(default_factory=dict)

    def __post_init__(self):
        self.status = normalize_status(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class JobPollingError(Exception):
    def __init__(self, job_id: str, message: str, job: Optional[AsyncJob] = None):
        super().__init__(message)
        self.job_id = job_id
        self.message = message
        self.job = job


class JobFailedError(JobPollingError):
    """The job reached `error` or its status could not be fetched."""


class JobTimeoutError(JobFailedError):
    """The poller ran out of status checks before a terminal state."""


class JobCancelledError(JobPollingError):
    """The caller cancelled the poller before a terminal state."""


class SyntheticProgress:
    """
    Cosmetic progress for providers that never report a number.
    Monotonic, never reaches 100 on its own.
    """

    def __init__(self, step: int = 10, cap: int = 90):
        self.step = step
        self.cap = cap
        self.value = 0

    def advance(self) -> int:
        self.value = min(self.cap, self.value + self.step)
        return self.value

# ---------------------------
# ✅ Poller
# ---------------------------

FetchStatus = Callable[[str], Union[AsyncJob, Awaitable[AsyncJob]]]


class JobPoller:
    """
    Watches one provider job until it completes or fails.

    Status checks never overlap: the next one is scheduled only after the
    previous one returned. A failed check ends polling immediately. Once
    `cancel()` is called no further checks run and no callback fires.
    """

    def __init__(
        self,
        job_id: str,
        fetch_status: FetchStatus,
        interval: float = VIDEO_POLL_INTERVAL,
        on_progress: Optional[Callable[[int], Any]] = None,
        on_complete: Optional[Callable[[AsyncJob], Any]] = None,
        on_error: Optional[Callable[[str], Any]] = None,
        max_attempts: Optional[int] = None,
        synthetic_progress: Optional[SyntheticProgress] = None,
    ):
        if not job_id:
            raise ValueError("job_id is required")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.job_id = job_id
        self.fetch_status = fetch_status
        self.interval = interval
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.on_error = on_error
        self.max_attempts = max_attempts
        self.synthetic_progress = synthetic_progress
        self.attempts = 0
        self._cancelled = asyncio.Event()
        self._running = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        if not self._cancelled.is_set():
            logger.info("🛑 Polling cancelled for job %s", self.job_id)
        self._cancelled.set()

    async def run(self) -> AsyncJob:
        if self._running:
            raise RuntimeError(f"Poller for job {self.job_id} is already running")
        self._running = True
        logger.info("🔁 Polling job %s every %ss", self.job_id, self.interval)

        try:
            while True:
                self._raise_if_cancelled()

                if self.max_attempts is not None and self.attempts >= self.max_attempts:
                    message = f"Job {self.job_id} still not finished after {self.attempts} status checks"
                    self._report_error(message)
                    raise JobTimeoutError(self.job_id, message)

                self.attempts += 1
                try:
                    job = await self._fetch()
                except Exception as exc:
                    self._raise_if_cancelled()
                    message = str(exc) or exc.__class__.__name__
                    self._report_error(message)
                    raise JobFailedError(self.job_id, message) from exc

                self._raise_if_cancelled()

                if job.status == COMPLETED:
                    logger.info("✅ Job %s completed after %d checks", self.job_id, self.attempts)
                    if self.on_complete:
                        self.on_complete(job)
                    return job

                if job.status == ERROR:
                    message = job.error_message or "Job failed"
                    self._report_error(message)
                    raise JobFailedError(self.job_id, message, job=job)

                self._report_progress(job)
                await self._sleep()
        finally:
            self._running = False

    async def _fetch(self) -> AsyncJob:
        result = self.fetch_status(self.job_id)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _sleep(self) -> None:
        # Wakes early when cancel() is called
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass

    def _raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise JobCancelledError(self.job_id, "Polling cancelled")

    def _report_progress(self, job: AsyncJob) -> None:
        progress = job.progress
        if progress is None and self.synthetic_progress is not None:
            progress = self.synthetic_progress.advance()
        if progress is not None and self.on_progress:
            self.on_progress(progress)

    def _report_error(self, message: str) -> None:
        logger.warning("⚠️ Job %s failed: %s", self.job_id, message)
        if self.on_error:
            self.on_error(message)


async def poll_job(job_id: str, fetch_status: FetchStatus, **kwargs) -> AsyncJob:
    return await JobPoller(job_id, fetch_status, **kwargs).run()
