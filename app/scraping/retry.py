"""
Bounded retry around single scrape attempts.

Fatal categories (configuration, CAPTCHA, authentication, unsupported provider)
are never retried. Transport failures are retried once and then given up,
since a service that failed twice in a row is treated as down. Everything else
is retried up to ``max_retries`` additional times with a fixed delay.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from app.domain.utility_scraping import JobReference
from app.scraping.attempt import ScrapeAttempt
from app.scraping.classifier import ErrorClassifier
from app.scraping.config.models import ScrapingSettings
from app.scraping.errors import FATAL_CATEGORIES, FailureCategory, ScrapeFailedError
from app.scraping.logging_utils import log_event
from app.scraping.notifications import Notifier, error_notification
from app.scraping.state import ScrapingStateBoard

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class RetryDecision(str, Enum):
    RETRY = "retry"
    GIVE_UP = "give_up"


def next_step(category: FailureCategory, attempt_number: int, max_retries: int) -> RetryDecision:
    """Decide what follows a failed attempt. `attempt_number` is zero-based."""

    if category in FATAL_CATEGORIES:
        return RetryDecision.GIVE_UP
    if category is FailureCategory.TRANSPORT_FAILURE and attempt_number >= 1:
        return RetryDecision.GIVE_UP
    if attempt_number < max_retries:
        return RetryDecision.RETRY
    return RetryDecision.GIVE_UP


class RetryController:
    def __init__(
        self,
        *,
        attempt: ScrapeAttempt,
        classifier: ErrorClassifier,
        state_board: ScrapingStateBoard,
        notifier: Notifier,
        settings: ScrapingSettings,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._attempt = attempt
        self._classifier = classifier
        self._state_board = state_board
        self._notifier = notifier
        self._settings = settings
        self._sleep = sleep

    async def attempt_with_retry(self, provider_id: str, attempt_number: int = 0) -> JobReference:
        """
        Run attempts until one submits a job or the policy gives up.

        Raises:
            ScrapeFailedError: When the provider will not be retried, chained
                from the last underlying failure.
        """

        first_attempt = attempt_number
        current = attempt_number

        while True:
            try:
                # A repeat attempt may fall back to a locally created job.
                return await self._attempt.run(provider_id, allow_fallback=current >= 1)
            except Exception as exc:
                failure = self._classifier.classify(exc)
                log_event(
                    logger,
                    logging.WARNING,
                    "scrape_attempt_failed",
                    provider_id=provider_id,
                    attempt=current + 1,
                    category=failure.category.value,
                    error=failure.raw,
                )

                decision = next_step(failure.category, current, self._settings.max_retries)
                if decision is RetryDecision.RETRY:
                    log_event(
                        logger,
                        logging.INFO,
                        "scrape_retry_scheduled",
                        provider_id=provider_id,
                        next_attempt=current + 2,
                        delay_seconds=self._settings.retry_delay_seconds,
                    )
                    await self._sleep(self._settings.retry_delay_seconds)
                    current += 1
                    continue

                attempts = current - first_attempt + 1
                self._state_board.mark_failed(provider_id, failure.message)
                self._notifier.publish(error_notification(failure.message, provider_id=provider_id))
                log_event(
                    logger,
                    logging.ERROR,
                    "scrape_gave_up",
                    provider_id=provider_id,
                    attempts=attempts,
                    category=failure.category.value,
                    message=failure.message,
                )
                raise ScrapeFailedError(
                    provider_id=provider_id,
                    category=failure.category,
                    user_message=failure.message,
                    attempts=attempts,
                ) from exc
