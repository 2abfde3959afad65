from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta

from .app_logging import get_logger, log_with_fields
from .models import CompletionRecord, Job, WorkerStatus
from .utils import utc_now


class Worker:
    """A technician that repairs one job at a time at a fixed pace.

    ``process`` flips the worker to ``working`` before returning, so a caller
    that checks ``is_available()`` and then calls ``process()`` without
    awaiting in between can never hand the same worker two jobs.
    """

    def __init__(
        self,
        name: str,
        average_duration: float,
        logger: logging.Logger | None = None,
    ) -> None:
        self.name = name
        self.average_duration = average_duration
        self.logger = logger or get_logger()
        self._status = WorkerStatus.IDLE
        self._current_job: Job | None = None

    def __repr__(self) -> str:
        return f"Worker(name={self.name!r}, average_duration={self.average_duration!r}, status={self._status.value})"

    @property
    def average_duration(self) -> float:
        return self._average_duration

    @average_duration.setter
    def average_duration(self, value: float) -> None:
        if value < 0:
            raise ValueError(f"average_duration must be >= 0, got {value}")
        self._average_duration = value

    @property
    def status(self) -> WorkerStatus:
        return self._status

    @property
    def current_job(self) -> Job | None:
        return self._current_job

    def is_available(self) -> bool:
        return self._status is WorkerStatus.IDLE

    def process(self, job: Job) -> asyncio.Task[CompletionRecord]:
        loop = asyncio.get_running_loop()
        started_at = utc_now()
        started_clock = time.monotonic()
        log_with_fields(
            self.logger,
            logging.INFO,
            "job_started",
            worker=self.name,
            subject=job.subject,
            category=job.category.value,
        )
        task = loop.create_task(
            self._repair(job, started_at, started_clock),
            name=f"{self.name}:{job.subject}",
        )
        task.add_done_callback(self._release_if_cancelled)
        # Set last: nothing after this can raise, and _repair has not started yet.
        self._status = WorkerStatus.WORKING
        self._current_job = job
        return task

    def _release_if_cancelled(self, task: asyncio.Task[CompletionRecord]) -> None:
        # A task cancelled before its first step never reaches the finally in _repair.
        if task.cancelled():
            self._status = WorkerStatus.IDLE
            self._current_job = None

    async def _repair(self, job: Job, started_at: datetime, started_clock: float) -> CompletionRecord:
        try:
            await asyncio.sleep(self._average_duration)
        finally:
            self._status = WorkerStatus.IDLE
            self._current_job = None

        # Wall-clock end is derived from the monotonic clock so that
        # finished_at - started_at == duration and never goes negative.
        duration = max(time.monotonic() - started_clock, 0.0)
        record = CompletionRecord(
            worker=self.name,
            subject=job.subject,
            category=job.category,
            started_at=started_at,
            finished_at=started_at + timedelta(seconds=duration),
            duration=duration,
        )
        log_with_fields(
            self.logger,
            logging.INFO,
            "job_finished",
            worker=self.name,
            subject=job.subject,
            category=job.category.value,
            duration=round(duration, 3),
        )
        return record
