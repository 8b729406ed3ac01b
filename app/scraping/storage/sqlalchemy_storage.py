"""
SQLAlchemy-backed storage implementations for the scraping pipeline.

Each call opens its own session: the adapters are invoked from worker threads
and must not share a Session across them.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.utility_scraping import JobSnapshot, JobStatus, UtilityProviderProfile
from app.scraping.storage.base import JobStore, ProviderDirectory, SecretStore
from db.models.scraping_job import ScrapingJob
from db.models.utility_provider import UtilityProvider
from db.repositories.credentials_repository import CredentialsRepository
from db.repositories.scraping_job_repository import ScrapingJobRepository
from db.repositories.utility_provider_repository import UtilityProviderRepository

SessionFactory = Callable[[], Session]


def job_to_snapshot(job: ScrapingJob) -> JobSnapshot:
    return JobSnapshot(
        job_id=job.id,
        utility_provider_id=job.utility_provider_id,
        status=JobStatus(job.status),
        provider=job.provider,
        utility_type=job.type,
        location=job.location,
        error_message=job.error_message,
        created_at=job.created_at,
        completed_at=job.completed_at,
    )


def provider_to_profile(provider: UtilityProvider) -> UtilityProviderProfile:
    return UtilityProviderProfile(
        id=provider.id,
        provider_name=provider.provider_name,
        username=provider.username,
        utility_type=provider.utility_type,
        property_id=provider.property_id,
        location_name=provider.location_name,
    )


class SQLAlchemyJobStore(JobStore):
    """
    Persist scraping jobs through `ScrapingJobRepository`.
    """

    def __init__(self, *, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def create_job(
        self,
        *,
        utility_provider_id: str,
        status: JobStatus = JobStatus.PENDING,
        provider: str | None = None,
        utility_type: str | None = None,
        location: str | None = None,
        error_message: str | None = None,
    ) -> JobSnapshot:
        with self._session_factory() as session:
            try:
                job = ScrapingJobRepository(session).create_job(
                    utility_provider_id=utility_provider_id,
                    status=JobStatus(status).value,
                    provider=provider,
                    utility_type=utility_type,
                    location=location,
                    error_message=error_message,
                )
                snapshot = job_to_snapshot(job)
                session.commit()
                return snapshot
            except SQLAlchemyError:
                session.rollback()
                raise

    def get_job(self, job_id: str) -> JobSnapshot | None:
        with self._session_factory() as session:
            job = ScrapingJobRepository(session).get_job(job_id)
            return job_to_snapshot(job) if job is not None else None

    def list_jobs(
        self,
        *,
        utility_provider_id: str | None = None,
        status: JobStatus | None = None,
        limit: int = 100,
    ) -> list[JobSnapshot]:
        with self._session_factory() as session:
            jobs = ScrapingJobRepository(session).list_jobs(
                utility_provider_id=utility_provider_id,
                status=JobStatus(status).value if status is not None else None,
                limit=limit,
            )
            return [job_to_snapshot(job) for job in jobs]

    def update_status(
        self,
        *,
        job_id: str,
        status: JobStatus,
        error_message: str | None = None,
    ) -> JobSnapshot:
        with self._session_factory() as session:
            try:
                job = ScrapingJobRepository(session).update_status(
                    job_id=job_id,
                    status=JobStatus(status).value,
                    error_message=error_message,
                )
                snapshot = job_to_snapshot(job)
                session.commit()
                return snapshot
            except SQLAlchemyError:
                session.rollback()
                raise


class SQLAlchemyProviderDirectory(ProviderDirectory):
    def __init__(self, *, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get_provider(self, provider_id: str) -> UtilityProviderProfile | None:
        with self._session_factory() as session:
            provider = UtilityProviderRepository(session).get_provider(provider_id)
            return provider_to_profile(provider) if provider is not None else None


class SQLAlchemySecretStore(SecretStore):
    def __init__(self, *, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def fetch_decrypted_credentials(self, property_id: str) -> Mapping[str, Any] | None:
        with self._session_factory() as session:
            return CredentialsRepository(session).fetch_decrypted_credentials(property_id)
