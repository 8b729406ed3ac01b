"""
Schemas for utility-bill scraping endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.utility_scraping import JobStatus, NotificationLevel


class ScrapeRequestAcceptedResponse(BaseModel):
    provider_id: str
    queued: bool
    queue_position: int | None = None


class QueueStatusResponse(BaseModel):
    pending: list[str] = Field(default_factory=list)
    in_flight: str | None = None
    is_processing: bool = False


class ProviderScrapeStateResponse(BaseModel):
    provider_id: str
    is_attempting: bool
    status: JobStatus | None = None
    last_run_at: datetime | None = None
    error_message: str | None = None
    job_id: str | None = None


class NotificationResponse(BaseModel):
    level: NotificationLevel
    title: str
    description: str
    provider_id: str | None = None
    job_id: str | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse] = Field(default_factory=list)


class ScrapingJobResponse(BaseModel):
    job_id: str
    utility_provider_id: str
    status: JobStatus
    provider: str | None = None
    type: str | None = None
    location: str | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None


class ScrapingJobListResponse(BaseModel):
    jobs: list[ScrapingJobResponse] = Field(default_factory=list)


class JobStatusCallbackRequest(BaseModel):
    status: JobStatus
    error_message: str | None = Field(default=None, max_length=10000)
