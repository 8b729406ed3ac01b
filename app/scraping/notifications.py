"""
User-facing notifications emitted by the scraping pipeline.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Protocol

from app.domain.utility_scraping import Notification, NotificationLevel
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

SUCCESS_TITLE = "Success"
ERROR_TITLE = "Error fetching utility bills"


class Notifier(Protocol):
    def publish(self, notification: Notification) -> None: ...


class NotificationFeed:
    """
    Bounded in-memory feed of recent notifications, newest last.
    """

    def __init__(self, max_size: int = 200) -> None:
        self._items: deque[Notification] = deque(maxlen=max(1, max_size))

    def publish(self, notification: Notification) -> None:
        self._items.append(notification)
        log_event(
            logger,
            logging.ERROR if notification.level is NotificationLevel.ERROR else logging.INFO,
            "notification_published",
            notification_level=notification.level.value,
            title=notification.title,
            description=notification.description,
            provider_id=notification.provider_id,
            job_id=notification.job_id,
        )

    def recent(self, limit: int = 50) -> list[Notification]:
        """Most recent first."""

        if limit <= 0:
            return []
        return list(reversed(self._items))[:limit]

    def __len__(self) -> int:
        return len(self._items)


def success_notification(*, provider_id: str, job_id: str | None = None) -> Notification:
    return Notification(
        level=NotificationLevel.SUCCESS,
        title=SUCCESS_TITLE,
        description="Successfully fetched utility bills",
        provider_id=provider_id,
        job_id=job_id,
    )


def error_notification(message: str, *, provider_id: str, job_id: str | None = None) -> Notification:
    return Notification(
        level=NotificationLevel.ERROR,
        title=ERROR_TITLE,
        description=message,
        provider_id=provider_id,
        job_id=job_id,
    )
