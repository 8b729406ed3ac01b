"""
app/services/utility_scraping_service.py

Service wiring for the utility-bill scraping pipeline.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import lru_cache

from app.domain.utility_scraping import JobSnapshot, JobStatus, Notification, ProviderScrapeState
from app.scraping.attempt import ScrapeAttempt
from app.scraping.classifier import ErrorClassifier
from app.scraping.client import AutomationServiceClient
from app.scraping.config import (
    AutomationServiceSettings,
    ScrapingSettings,
    get_automation_service_settings,
    get_scraping_settings,
)
from app.scraping.credentials import CredentialsGateway
from app.scraping.invoker import AutomationInvoker, AutomationService
from app.scraping.logging_utils import log_event
from app.scraping.monitor import JobStatusMonitor
from app.scraping.notifications import NotificationFeed
from app.scraping.queue import QueueSnapshot, ScrapeQueue
from app.scraping.retry import RetryController
from app.scraping.state import ScrapingStateBoard
from app.scraping.storage import (
    JobStore,
    ProviderDirectory,
    SecretStore,
    SQLAlchemyJobStore,
    SQLAlchemyProviderDirectory,
    SQLAlchemySecretStore,
)
from db.session import SessionLocal

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class EnqueueResult:
    provider_id: str
    queued: bool
    queue_position: int | None


class UtilityScrapingService:
    """
    Owns one scrape queue and everything behind it for the process.

    Queue-facing methods must be called from the event loop thread.
    """

    def __init__(
        self,
        *,
        settings: ScrapingSettings | None = None,
        automation_settings: AutomationServiceSettings | None = None,
        job_store: JobStore | None = None,
        provider_directory: ProviderDirectory | None = None,
        secret_store: SecretStore | None = None,
        automation_service: AutomationService | None = None,
        classifier: ErrorClassifier | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._settings = settings or get_scraping_settings()
        self._automation_settings = automation_settings or get_automation_service_settings()
        self._job_store = job_store or SQLAlchemyJobStore(session_factory=SessionLocal)
        provider_directory = provider_directory or SQLAlchemyProviderDirectory(session_factory=SessionLocal)
        secret_store = secret_store or SQLAlchemySecretStore(session_factory=SessionLocal)
        automation_service = automation_service or AutomationServiceClient(self._automation_settings)
        self._classifier = classifier or ErrorClassifier()

        self.state_board = ScrapingStateBoard()
        self.notifications = NotificationFeed(self._settings.notification_feed_size)
        self.monitor = JobStatusMonitor(
            job_store=self._job_store,
            classifier=self._classifier,
            state_board=self.state_board,
            notifier=self.notifications,
            settings=self._settings,
            sleep=sleep,
        )
        invoker = AutomationInvoker(
            service=automation_service,
            job_store=self._job_store,
            classifier=self._classifier,
            settings=self._settings,
            compatibility_flags=self._automation_settings.compatibility_flags,
        )
        attempt = ScrapeAttempt(
            provider_directory=provider_directory,
            credentials_gateway=CredentialsGateway(secret_store),
            invoker=invoker,
            monitor=self.monitor,
            state_board=self.state_board,
        )
        self.retry_controller = RetryController(
            attempt=attempt,
            classifier=self._classifier,
            state_board=self.state_board,
            notifier=self.notifications,
            settings=self._settings,
            sleep=sleep,
        )
        self.queue = ScrapeQueue(retry_controller=self.retry_controller)

    @property
    def settings(self) -> ScrapingSettings:
        return self._settings

    @property
    def callback_token(self) -> str | None:
        return self._automation_settings.callback_token

    def request_scrape(self, provider_id: str) -> EnqueueResult:
        queued = self.queue.enqueue(provider_id)
        normalized = provider_id.strip()
        return EnqueueResult(
            provider_id=normalized,
            queued=queued,
            queue_position=self.queue.position(normalized),
        )

    def queue_snapshot(self) -> QueueSnapshot:
        return self.queue.snapshot()

    def provider_state(self, provider_id: str) -> ProviderScrapeState | None:
        return self.state_board.get(provider_id)

    def recent_notifications(self, limit: int = 50) -> list[Notification]:
        return self.notifications.recent(limit)

    def list_jobs(
        self,
        *,
        provider_id: str | None = None,
        status: JobStatus | None = None,
        limit: int = 100,
    ) -> list[JobSnapshot]:
        return self._job_store.list_jobs(utility_provider_id=provider_id, status=status, limit=limit)

    def get_job(self, job_id: str) -> JobSnapshot | None:
        return self._job_store.get_job(job_id)

    def record_status_callback(
        self,
        *,
        job_id: str,
        status: JobStatus,
        error_message: str | None = None,
    ) -> JobSnapshot:
        """
        Apply a status pushed by the automation service.

        Active monitors pick the change up on their next poll.
        """

        snapshot = self._job_store.update_status(job_id=job_id, status=status, error_message=error_message)
        log_event(
            logger,
            logging.INFO,
            "job_status_callback_applied",
            job_id=job_id,
            status=snapshot.status.value,
        )
        return snapshot

    async def drain(self) -> int:
        return await self.queue.drain()

    async def wait_for_monitors(self) -> None:
        await self.monitor.wait_idle()

    def start(self) -> None:
        self.queue.start()

    async def stop(self) -> None:
        await self.queue.stop()
        await self.monitor.stop()


@lru_cache(maxsize=1)
def get_utility_scraping_service() -> UtilityScrapingService:
    """
    Build and cache the process-wide scraping service.
    """

    return UtilityScrapingService()
