"""
Repository for scraping job records and status transitions.
"""

from __future__ import annotations

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.base import utc_now
from db.models.scraping_job import ScrapingJob, ScrapingJobStatus
from db.repositories.errors import InvalidJobTransitionError, ScrapingJobNotFoundError


class ScrapingJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_job(
        self,
        *,
        utility_provider_id: str,
        status: str = ScrapingJobStatus.PENDING,
        provider: str | None = None,
        utility_type: str | None = None,
        location: str | None = None,
        error_message: str | None = None,
    ) -> ScrapingJob:
        if status not in ScrapingJobStatus.ALL:
            raise ValueError(f"Unknown scraping job status: {status}")
        job = ScrapingJob(
            utility_provider_id=utility_provider_id,
            status=status,
            provider=provider,
            type=utility_type,
            location=location,
            error_message=error_message,
        )
        if status in ScrapingJobStatus.TERMINAL:
            job.completed_at = utc_now()
        self._session.add(job)
        self._session.flush()
        self._session.refresh(job)
        return job

    def get_job(self, job_id: str) -> ScrapingJob | None:
        return self._session.get(ScrapingJob, job_id)

    def list_jobs(
        self,
        *,
        utility_provider_id: str | None = None,
        status: str | None = None,
        limit: int = 100,
    ) -> list[ScrapingJob]:
        stmt: Select[tuple[ScrapingJob]] = select(ScrapingJob)

        if utility_provider_id:
            stmt = stmt.where(ScrapingJob.utility_provider_id == utility_provider_id)
        if status:
            stmt = stmt.where(ScrapingJob.status == status)

        stmt = stmt.order_by(ScrapingJob.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def update_status(
        self,
        *,
        job_id: str,
        status: str,
        error_message: str | None = None,
    ) -> ScrapingJob:
        job = self.get_job(job_id)
        if job is None:
            raise ScrapingJobNotFoundError(f"Scraping job not found: {job_id}")
        if not ScrapingJobStatus.can_transition(job.status, status):
            raise InvalidJobTransitionError(job_id=job_id, current=job.status, target=status)

        job.status = status
        if error_message is not None:
            job.error_message = error_message
        if status in ScrapingJobStatus.TERMINAL:
            job.completed_at = utc_now()
        self._session.flush()
        return job
