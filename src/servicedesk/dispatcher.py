from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable

from .app_logging import get_logger, log_with_fields
from .config import DispatchConfig, NoWorkersPolicy
from .models import CompletionRecord, Job
from .worker import Worker


class NoWorkersError(RuntimeError):
    pass


class Dispatcher:
    """Hands queued jobs to idle workers and collects their completion records.

    Jobs are offered strictly in queue order; records are kept in completion
    order, which can differ from queue order when workers run at different
    speeds.
    """

    def __init__(
        self,
        name: str,
        location: str,
        workers: Iterable[Worker],
        jobs: Iterable[Job],
        *,
        config: DispatchConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.name = name
        self.location = location
        self.config = config or DispatchConfig()
        self.logger = logger or get_logger()
        self._workers = tuple(workers)
        self._jobs = tuple(jobs)
        self._records: list[CompletionRecord] = []
        self._running = False
        self.elapsed_seconds: float | None = None

    @property
    def workers(self) -> tuple[Worker, ...]:
        return self._workers

    @property
    def jobs(self) -> tuple[Job, ...]:
        return self._jobs

    @property
    def repair_records(self) -> list[CompletionRecord]:
        return list(self._records)

    async def run(self) -> None:
        """Process the whole queue once.

        Each call starts from an empty record collection, so after any run
        there is one record per started job. Overlapping calls on the same
        dispatcher raise ``RuntimeError``.
        """
        if self._running:
            raise RuntimeError(f"{self.name} is already running")
        self._running = True
        try:
            await self._run_once()
        finally:
            self._running = False

    async def _run_once(self) -> None:
        self._records = []
        self.elapsed_seconds = None
        started = time.monotonic()
        log_with_fields(
            self.logger,
            logging.INFO,
            "center_open",
            center=self.name,
            location=self.location,
            workers=[worker.name for worker in self._workers],
            queued=len(self._jobs),
        )

        if not self._workers:
            self._abandon_queue()
        else:
            await self._drain_queue()

        self.elapsed_seconds = time.monotonic() - started
        log_with_fields(
            self.logger,
            logging.INFO,
            "center_closed",
            center=self.name,
            records=len(self._records),
            total_seconds=round(self.elapsed_seconds, 3),
        )

    async def _drain_queue(self) -> None:
        in_flight: list[asyncio.Task[CompletionRecord]] = []
        try:
            cursor = 0
            while cursor < len(self._jobs):
                worker = self._first_available_worker()
                if worker is None:
                    await self._wait_for_worker(in_flight, self._jobs[cursor])
                    continue
                # No await between the availability check and process().
                task = worker.process(self._jobs[cursor])
                task.add_done_callback(self._record_completion)
                in_flight.append(task)
                cursor += 1

            if in_flight:
                await asyncio.gather(*in_flight)
        except asyncio.CancelledError:
            for task in in_flight:
                task.cancel()
            await asyncio.gather(*in_flight, return_exceptions=True)
            log_with_fields(
                self.logger,
                logging.WARNING,
                "run_cancelled",
                center=self.name,
                records=len(self._records),
                unfinished=sum(1 for task in in_flight if task.cancelled()),
            )
            raise

    def _abandon_queue(self) -> None:
        if not self._jobs:
            return
        if self.config.on_no_workers is NoWorkersPolicy.RAISE:
            raise NoWorkersError(f"{self.name} has no workers for {len(self._jobs)} queued job(s)")
        log_with_fields(
            self.logger,
            logging.WARNING,
            "jobs_abandoned",
            center=self.name,
            abandoned=len(self._jobs),
            reason="no_workers",
        )

    def _first_available_worker(self) -> Worker | None:
        for worker in self._workers:
            if worker.is_available():
                return worker
        return None

    async def _wait_for_worker(self, in_flight: list[asyncio.Task[CompletionRecord]], job: Job) -> None:
        log_with_fields(
            self.logger,
            logging.DEBUG,
            "worker_wait",
            center=self.name,
            subject=job.subject,
        )
        pending = [task for task in in_flight if not task.done()]
        interval = self.config.poll.interval_seconds
        if pending:
            # Workers go idle before their task resolves, so any completion
            # means a worker is free. The timeout covers workers kept busy by
            # work this dispatcher did not start.
            await asyncio.wait(pending, timeout=interval, return_when=asyncio.FIRST_COMPLETED)
        else:
            await asyncio.sleep(interval)

    def _record_completion(self, task: asyncio.Task[CompletionRecord]) -> None:
        if task.cancelled() or task.exception() is not None:
            return
        record = task.result()
        self._records.append(record)
        log_with_fields(
            self.logger,
            logging.INFO,
            "job_recorded",
            center=self.name,
            completed=len(self._records),
            queued=len(self._jobs),
            **record.to_dict(),
        )
