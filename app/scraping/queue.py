"""
Process-local FIFO of providers waiting to be scraped.

Exactly one provider is attempted at a time. The queue and the in-flight
marker are only touched from the event loop thread, with no await between a
check and the mutation that depends on it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from dataclasses import dataclass

from app.scraping.errors import ScrapeFailedError
from app.scraping.logging_utils import log_event
from app.scraping.retry import RetryController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueSnapshot:
    pending: tuple[str, ...]
    in_flight: str | None
    is_processing: bool


class ScrapeQueue:
    def __init__(self, *, retry_controller: RetryController) -> None:
        self._retry_controller = retry_controller
        self._pending: deque[str] = deque()
        self._in_flight: str | None = None
        self._processing = False
        self._wakeup: asyncio.Event | None = None
        self._worker: asyncio.Task[None] | None = None

    @property
    def is_processing(self) -> bool:
        return self._processing

    @property
    def worker_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def enqueue(self, provider_id: str) -> bool:
        """
        Append a provider at the tail; return False when it is already queued or in flight.
        """

        normalized = provider_id.strip() if isinstance(provider_id, str) else ""
        if not normalized:
            raise ValueError("provider_id must be a non-empty string.")

        if normalized == self._in_flight or normalized in self._pending:
            log_event(logger, logging.INFO, "scrape_enqueue_ignored", provider_id=normalized)
            return False

        self._pending.append(normalized)
        log_event(
            logger,
            logging.INFO,
            "scrape_enqueued",
            provider_id=normalized,
            queue_length=len(self._pending),
        )
        if self._wakeup is not None:
            self._wakeup.set()
        return True

    def position(self, provider_id: str) -> int | None:
        """Zero for the in-flight provider, 1.. for pending ones, None when absent."""

        if provider_id == self._in_flight:
            return 0
        for index, queued in enumerate(self._pending, start=1):
            if queued == provider_id:
                return index
        return None

    def snapshot(self) -> QueueSnapshot:
        return QueueSnapshot(
            pending=tuple(self._pending),
            in_flight=self._in_flight,
            is_processing=self._processing,
        )

    async def drain(self) -> int:
        """
        Process providers one at a time until the queue is empty.

        Returns the number of providers processed; a call made while another
        drain is running returns 0 immediately.
        """

        if self._processing:
            return 0
        self._processing = True
        processed = 0
        try:
            while self._pending:
                provider_id = self._pending.popleft()
                self._in_flight = provider_id
                try:
                    await self._retry_controller.attempt_with_retry(provider_id)
                except ScrapeFailedError as exc:
                    log_event(
                        logger,
                        logging.WARNING,
                        "scrape_dropped_from_queue",
                        provider_id=provider_id,
                        category=exc.category.value,
                        attempts=exc.attempts,
                    )
                except Exception as exc:
                    log_event(
                        logger,
                        logging.ERROR,
                        "scrape_attempt_crashed",
                        provider_id=provider_id,
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                finally:
                    self._in_flight = None
                    processed += 1
        finally:
            self._processing = False
        return processed

    def start(self) -> None:
        """Start the background worker on the running loop."""

        if self._worker is not None and not self._worker.done():
            return
        self._wakeup = asyncio.Event()
        if self._pending:
            self._wakeup.set()
        self._worker = asyncio.create_task(self._run_worker(self._wakeup), name="scrape-queue-worker")

    async def stop(self) -> None:
        worker = self._worker
        self._worker = None
        if worker is None:
            return
        worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker

    async def _run_worker(self, wakeup: asyncio.Event) -> None:
        while True:
            await wakeup.wait()
            wakeup.clear()
            try:
                await self.drain()
            except Exception as exc:
                log_event(
                    logger,
                    logging.ERROR,
                    "scrape_queue_drain_failed",
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                if self._pending:
                    wakeup.set()
