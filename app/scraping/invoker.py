"""
Submission of scrape jobs to the automation service, with a local fallback
job record when the service itself is unreachable or misconfigured.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from app.domain.utility_scraping import Credentials, JobReference, JobStatus, UtilityProviderProfile
from app.scraping.classifier import ErrorClassifier
from app.scraping.config.models import ScrapingSettings
from app.scraping.errors import (
    AutomationServiceError,
    FailureCategory,
    MissingJobIdError,
    ScrapingError,
    TransportFailureError,
)
from app.scraping.logging_utils import log_event, redact_payload
from app.scraping.storage.base import JobStore

logger = logging.getLogger(__name__)

FALLBACK_NOTE_PREFIX = "Job created as fallback due to remote service failure: "


class AutomationService(Protocol):
    def submit_job(self, payload: Mapping[str, Any]) -> Mapping[str, Any]: ...


class AutomationInvoker:
    """
    Build the job request, submit it and return a job reference.
    """

    def __init__(
        self,
        *,
        service: AutomationService,
        job_store: JobStore,
        classifier: ErrorClassifier,
        settings: ScrapingSettings,
        compatibility_flags: tuple[str, ...] = (),
    ) -> None:
        self._service = service
        self._job_store = job_store
        self._classifier = classifier
        self._settings = settings
        self._compatibility_flags = compatibility_flags

    def build_request(
        self,
        provider: UtilityProviderProfile,
        credentials: Credentials,
    ) -> dict[str, Any]:
        return {
            "username": credentials.username,
            "password": credentials.password,
            "utilityId": provider.id,
            "provider": provider.provider_name,
            "type": provider.utility_type,
            "location": provider.location_name,
            "flags": list(self._compatibility_flags),
        }

    async def invoke(
        self,
        provider: UtilityProviderProfile,
        credentials: Credentials,
        *,
        allow_fallback: bool = False,
    ) -> JobReference:
        request = self.build_request(provider, credentials)
        log_event(
            logger,
            logging.INFO,
            "automation_request_sent",
            provider_id=provider.id,
            request=redact_payload(request),
        )

        try:
            response = await asyncio.to_thread(self._service.submit_job, request)
            job_id = self._parse_job_id(response)
        except ScrapingError as exc:
            if not self._fallback_permitted(exc, allow_fallback=allow_fallback):
                raise
            return await self._create_fallback_job(provider, exc)

        log_event(
            logger,
            logging.INFO,
            "automation_job_submitted",
            provider_id=provider.id,
            job_id=job_id,
        )
        return JobReference(job_id=job_id)

    @staticmethod
    def _parse_job_id(response: Mapping[str, Any] | None) -> str:
        if not response or not response.get("success"):
            error_text = (response or {}).get("error")
            raise AutomationServiceError(str(error_text) if error_text else "Scraping failed")

        job_id = response.get("jobId")
        if not job_id:
            raise MissingJobIdError("No job ID returned from scraping service")
        return str(job_id)

    def _fallback_permitted(self, error: ScrapingError, *, allow_fallback: bool) -> bool:
        if not self._settings.fallback_jobs_enabled:
            return False
        failure = self._classifier.classify(error)
        return failure.category is FailureCategory.TRANSPORT_FAILURE and allow_fallback

    async def _create_fallback_job(
        self,
        provider: UtilityProviderProfile,
        cause: ScrapingError,
    ) -> JobReference:
        try:
            job = await asyncio.to_thread(
                self._job_store.create_job,
                utility_provider_id=provider.id,
                status=JobStatus.PENDING,
                provider=provider.provider_name,
                utility_type=provider.utility_type,
                location=provider.location_name,
                error_message=f"{FALLBACK_NOTE_PREFIX}{cause}",
            )
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "fallback_job_failed",
                provider_id=provider.id,
                error=str(exc),
            )
            raise TransportFailureError("Scraping service temporarily unavailable") from exc

        log_event(
            logger,
            logging.WARNING,
            "fallback_job_created",
            provider_id=provider.id,
            job_id=job.job_id,
            cause=str(cause),
        )
        return JobReference(job_id=job.job_id, fallback=True)
