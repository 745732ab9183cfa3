"""Cancelable polling of a transcription job."""

import asyncio
from collections.abc import Callable
from typing import Protocol

from loguru import logger

from phoneme_review.services.transcription import JobOutcome, JobStatus, interpret_job_status


class StatusSource(Protocol):
    async def poll_status(self, job_id: str) -> JobStatus: ...


class JobPoller:
    """Polls one job at a time until it is done or fails.

    The next poll is scheduled only after the previous one resolved, with a
    fixed delay between them. Starting a new job cancels the pending one.

    Args:
        client: Source of job statuses.
        interval: Seconds between polls.
        on_update: Called with each non-terminal or done outcome.
    """

    def __init__(
        self,
        *,
        client: StatusSource,
        interval: float,
        on_update: Callable[[JobOutcome], None] | None = None,
    ) -> None:
        self._client = client
        self._interval = interval
        self._on_update = on_update
        self._task: asyncio.Task[JobOutcome] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, job_id: str) -> "asyncio.Task[JobOutcome]":
        self.cancel()
        self._task = asyncio.create_task(self.run(job_id), name=f"poll-{job_id}")
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            logger.debug(f"Cancelling {self._task.get_name()}")
            self._task.cancel()
        self._task = None

    async def run(self, job_id: str) -> JobOutcome:
        """Poll until the job is done.

        Raises:
            JobFailedError: If the job fails remotely.
            MissingResultError: If the job is done without a result.
            TransportError: If a status request fails.
        """
        polls = 0
        while True:
            status = await self._client.poll_status(job_id)
            polls += 1
            outcome = interpret_job_status(status)
            if self._on_update is not None:
                self._on_update(outcome)
            if outcome.is_done:
                logger.info(f"Job {job_id} done after {polls} polls")
                return outcome
            await asyncio.sleep(self._interval)
