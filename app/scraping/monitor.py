"""
Polling of submitted scraping jobs until they reach a terminal status.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from app.domain.utility_scraping import JobSnapshot, JobStatus
from app.scraping.classifier import ErrorClassifier
from app.scraping.config.models import ScrapingSettings
from app.scraping.logging_utils import log_event
from app.scraping.notifications import Notifier, error_notification, success_notification
from app.scraping.state import ScrapingStateBoard
from app.scraping.storage.base import JobStore

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = (
    "Failed to process utility bills. The provider may have changed their website."
)

SleepFunc = Callable[[float], Awaitable[None]]


class JobStatusMonitor:
    """
    Watch job records and publish one notification per terminal outcome.

    Each monitor only reads the job store. Observation is capped at
    `job_check_max_time_seconds`; after that the monitor stops without
    cancelling the remote job and without notifying anyone.
    """

    def __init__(
        self,
        *,
        job_store: JobStore,
        classifier: ErrorClassifier,
        state_board: ScrapingStateBoard,
        notifier: Notifier,
        settings: ScrapingSettings,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._job_store = job_store
        self._classifier = classifier
        self._state_board = state_board
        self._notifier = notifier
        self._settings = settings
        self._sleep = sleep
        self._tasks: set[asyncio.Task[JobStatus | None]] = set()

    @property
    def active_count(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def start_monitoring(self, job_id: str, provider_id: str) -> asyncio.Task[JobStatus | None]:
        task = asyncio.create_task(
            self.monitor(job_id, provider_id),
            name=f"job-monitor-{job_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        log_event(
            logger,
            logging.INFO,
            "job_monitor_started",
            job_id=job_id,
            provider_id=provider_id,
            interval_seconds=self._settings.job_check_interval_seconds,
            max_time_seconds=self._settings.job_check_max_time_seconds,
        )
        return task

    async def monitor(self, job_id: str, provider_id: str) -> JobStatus | None:
        """
        Poll until terminal; return the terminal status, or None when abandoned.
        """

        try:
            return await asyncio.wait_for(
                self._poll_until_terminal(job_id, provider_id),
                timeout=self._settings.job_check_max_time_seconds,
            )
        except asyncio.TimeoutError:
            log_event(
                logger,
                logging.WARNING,
                "job_monitor_abandoned",
                job_id=job_id,
                provider_id=provider_id,
                max_time_seconds=self._settings.job_check_max_time_seconds,
            )
            return None

    async def check_job_status(self, job_id: str) -> JobSnapshot | None:
        return await asyncio.to_thread(self._job_store.get_job, job_id)

    async def wait_idle(self) -> None:
        """Wait for every active monitor to finish."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _on_task_done(self, task: asyncio.Task[JobStatus | None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log_event(
                logger,
                logging.ERROR,
                "job_monitor_crashed",
                task=task.get_name(),
                error_type=type(exc).__name__,
                error=str(exc),
            )

    async def _poll_until_terminal(self, job_id: str, provider_id: str) -> JobStatus:
        last_status: JobStatus | None = None

        while True:
            await self._sleep(self._settings.job_check_interval_seconds)

            try:
                snapshot = await self.check_job_status(job_id)
            except Exception as exc:
                log_event(
                    logger,
                    logging.WARNING,
                    "job_poll_failed",
                    job_id=job_id,
                    provider_id=provider_id,
                    error=str(exc),
                )
                continue

            if snapshot is None:
                log_event(logger, logging.WARNING, "job_poll_missing", job_id=job_id, provider_id=provider_id)
                continue

            if last_status is not None and not last_status.can_transition_to(snapshot.status):
                log_event(
                    logger,
                    logging.WARNING,
                    "job_status_regression_ignored",
                    job_id=job_id,
                    observed=snapshot.status.value,
                    last_seen=last_status.value,
                )
                continue
            last_status = snapshot.status

            if snapshot.status is JobStatus.COMPLETED:
                self._state_board.record_job(snapshot)
                self._notifier.publish(success_notification(provider_id=provider_id, job_id=job_id))
                return snapshot.status

            if snapshot.status is JobStatus.FAILED:
                message = (
                    self._classifier.classify(snapshot.error_message).message
                    if snapshot.error_message
                    else DEFAULT_FAILURE_MESSAGE
                )
                self._state_board.record_job(snapshot, error_message=message)
                self._notifier.publish(
                    error_notification(message, provider_id=provider_id, job_id=job_id)
                )
                return snapshot.status

            self._state_board.record_job(snapshot)
