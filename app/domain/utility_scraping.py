"""
app/domain/utility_scraping.py

Domain models for the utility-bill scraping pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from db.models.scraping_job import ScrapingJobStatus


class JobStatus(str, Enum):
    """
    Lifecycle of a scraping job record.

    Transitions only move forward: pending -> in_progress -> completed | failed.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self.value in ScrapingJobStatus.TERMINAL

    @property
    def rank(self) -> int:
        return ScrapingJobStatus.rank(self.value)

    def can_transition_to(self, target: "JobStatus") -> bool:
        return ScrapingJobStatus.can_transition(self.value, target.value)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class UtilityProviderProfile:
    """
    Read-only view of a configured utility provider.
    """

    id: str
    provider_name: str
    username: str
    utility_type: str | None = None
    property_id: str | None = None
    location_name: str | None = None


@dataclass(frozen=True)
class Credentials:
    """
    Plaintext provider credentials for a single invocation.

    The password is excluded from repr so it cannot leak into log lines.
    """

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class JobSnapshot:
    """
    One read of a scraping job record.
    """

    job_id: str
    utility_provider_id: str
    status: JobStatus
    provider: str | None = None
    utility_type: str | None = None
    location: str | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None


@dataclass(frozen=True)
class JobReference:
    """
    Handle to a submitted job. `fallback` marks jobs created locally because the
    remote automation service could not be reached.
    """

    job_id: str
    fallback: bool = False


@dataclass(frozen=True)
class ProviderScrapeState:
    """
    Derived per-provider view used for caller feedback; not authoritative.
    """

    provider_id: str
    is_attempting: bool = False
    status: JobStatus | None = None
    last_run_at: datetime | None = None
    error_message: str | None = None
    job_id: str | None = None


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    title: str
    description: str
    provider_id: str | None = None
    job_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
