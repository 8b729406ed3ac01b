"""
Storage layer interfaces for the scraping pipeline.

All methods are blocking; async callers run them with `asyncio.to_thread`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from app.domain.utility_scraping import JobSnapshot, JobStatus, UtilityProviderProfile


class JobStore(ABC):
    """
    Read/write access to scraping job records.
    """

    @abstractmethod
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
        """
        Persist a new job record and return it.
        """

    @abstractmethod
    def get_job(self, job_id: str) -> JobSnapshot | None:
        """
        Read one job record, or None when it does not exist.
        """

    @abstractmethod
    def list_jobs(
        self,
        *,
        utility_provider_id: str | None = None,
        status: JobStatus | None = None,
        limit: int = 100,
    ) -> list[JobSnapshot]:
        """
        Return job records, newest first.
        """

    @abstractmethod
    def update_status(
        self,
        *,
        job_id: str,
        status: JobStatus,
        error_message: str | None = None,
    ) -> JobSnapshot:
        """
        Move a job forward; raises when the job is missing or the move is a regression.
        """


class ProviderDirectory(ABC):
    """
    Read-only lookup of utility provider profiles.
    """

    @abstractmethod
    def get_provider(self, provider_id: str) -> UtilityProviderProfile | None:
        """
        Return the provider profile, or None when it does not exist.
        """


class SecretStore(ABC):
    """
    Source of decrypted provider credentials.
    """

    @abstractmethod
    def fetch_decrypted_credentials(self, property_id: str) -> Mapping[str, Any] | None:
        """
        Return a mapping with `username` and `password`, or None.
        """
