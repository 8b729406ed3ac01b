"""
Shared in-memory collaborators for scraping pipeline tests.

Nothing here touches a database or the network.
"""

from __future__ import annotations

import asyncio
import threading
import uuid
from collections.abc import Callable, Mapping
from typing import Any

import pytest

from app.domain.utility_scraping import JobSnapshot, JobStatus, UtilityProviderProfile
from app.scraping.config.models import AutomationServiceSettings, ScrapingSettings
from app.scraping.storage.base import JobStore, ProviderDirectory, SecretStore
from app.services.utility_scraping_service import UtilityScrapingService
from db.repositories.errors import InvalidJobTransitionError, ScrapingJobNotFoundError


class FakeJobStore(JobStore):
    """
    Dict-backed job store. `script()` queues the statuses returned by
    successive reads of one job; the last scripted status sticks.
    """

    def __init__(self) -> None:
        self.jobs: dict[str, JobSnapshot] = {}
        self.created: list[JobSnapshot] = []
        self.reads: list[str] = []
        self.fail_create: Exception | None = None
        self.read_errors: list[Exception] = []
        self._scripts: dict[str, list[tuple[JobStatus, str | None]]] = {}
        self._lock = threading.Lock()

    def add(self, snapshot: JobSnapshot) -> JobSnapshot:
        self.jobs[snapshot.job_id] = snapshot
        return snapshot

    def script(
        self,
        job_id: str,
        *steps: JobStatus | tuple[JobStatus, str | None],
        provider_id: str = "prov-1",
    ) -> None:
        normalized = [step if isinstance(step, tuple) else (step, None) for step in steps]
        self._scripts[job_id] = normalized
        if job_id not in self.jobs:
            self.jobs[job_id] = JobSnapshot(job_id=job_id, utility_provider_id=provider_id, status=JobStatus.PENDING)

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
        if self.fail_create is not None:
            raise self.fail_create
        snapshot = JobSnapshot(
            job_id=str(uuid.uuid4()),
            utility_provider_id=utility_provider_id,
            status=JobStatus(status),
            provider=provider,
            utility_type=utility_type,
            location=location,
            error_message=error_message,
        )
        with self._lock:
            self.jobs[snapshot.job_id] = snapshot
            self.created.append(snapshot)
        return snapshot

    def get_job(self, job_id: str) -> JobSnapshot | None:
        with self._lock:
            self.reads.append(job_id)
            if self.read_errors:
                raise self.read_errors.pop(0)
            current = self.jobs.get(job_id)
            steps = self._scripts.get(job_id)
            if current is None or not steps:
                return current
            status, message = steps.pop(0) if len(steps) > 1 else steps[0]
            return JobSnapshot(
                job_id=current.job_id,
                utility_provider_id=current.utility_provider_id,
                status=status,
                provider=current.provider,
                utility_type=current.utility_type,
                location=current.location,
                error_message=message,
                created_at=current.created_at,
            )

    def list_jobs(
        self,
        *,
        utility_provider_id: str | None = None,
        status: JobStatus | None = None,
        limit: int = 100,
    ) -> list[JobSnapshot]:
        rows = [
            job
            for job in reversed(list(self.jobs.values()))
            if (utility_provider_id is None or job.utility_provider_id == utility_provider_id)
            and (status is None or job.status is status)
        ]
        return rows[:limit]

    def update_status(
        self,
        *,
        job_id: str,
        status: JobStatus,
        error_message: str | None = None,
    ) -> JobSnapshot:
        current = self.jobs.get(job_id)
        if current is None:
            raise ScrapingJobNotFoundError(f"Scraping job not found: {job_id}")
        if not current.status.can_transition_to(status):
            raise InvalidJobTransitionError(job_id=job_id, current=current.status.value, target=status.value)
        updated = JobSnapshot(
            job_id=current.job_id,
            utility_provider_id=current.utility_provider_id,
            status=status,
            provider=current.provider,
            utility_type=current.utility_type,
            location=current.location,
            error_message=error_message if error_message is not None else current.error_message,
            created_at=current.created_at,
        )
        self.jobs[job_id] = updated
        return updated


class FakeProviderDirectory(ProviderDirectory):
    def __init__(self, *profiles: UtilityProviderProfile) -> None:
        self.profiles = {profile.id: profile for profile in profiles}

    def get_provider(self, provider_id: str) -> UtilityProviderProfile | None:
        return self.profiles.get(provider_id)


class FakeSecretStore(SecretStore):
    def __init__(self, records: Mapping[str, Mapping[str, Any] | None] | None = None) -> None:
        self.records = dict(records or {})
        self.error: Exception | None = None
        self.calls: list[str] = []

    def fetch_decrypted_credentials(self, property_id: str) -> Mapping[str, Any] | None:
        self.calls.append(property_id)
        if self.error is not None:
            raise self.error
        return self.records.get(property_id)


class FakeAutomationService:
    """
    Scripted automation endpoint. Each outcome is either a response mapping
    or an exception instance; the last outcome repeats.
    """

    def __init__(self, *outcomes: Mapping[str, Any] | Exception) -> None:
        self.outcomes = list(outcomes) or [{"success": True, "jobId": "job-1"}]
        self.payloads: list[dict[str, Any]] = []

    def submit_job(self, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        self.payloads.append(dict(payload))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    """Records requested delays and yields to the loop without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


def make_provider(
    provider_id: str = "prov-1",
    *,
    property_id: str | None = "prop-1",
    provider_name: str = "ENGIE Romania",
) -> UtilityProviderProfile:
    return UtilityProviderProfile(
        id=provider_id,
        provider_name=provider_name,
        username="landlord@example.com",
        utility_type="gas",
        property_id=property_id,
        location_name="Str. Lalelelor 12",
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fast_settings() -> ScrapingSettings:
    return ScrapingSettings(
        max_retries=3,
        retry_delay_seconds=2.0,
        job_check_interval_seconds=5.0,
        job_check_max_time_seconds=300.0,
        fallback_jobs_enabled=True,
        notification_feed_size=50,
    )


@pytest.fixture()
def job_store() -> FakeJobStore:
    return FakeJobStore()


@pytest.fixture()
def secret_store() -> FakeSecretStore:
    return FakeSecretStore({"prop-1": {"username": "landlord@example.com", "password": "s3cret-pass"}})


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def build_service(
    fast_settings: ScrapingSettings,
    job_store: FakeJobStore,
    secret_store: FakeSecretStore,
    recording_sleep: RecordingSleep,
) -> Callable[..., UtilityScrapingService]:
    def _build(
        *,
        automation: FakeAutomationService | None = None,
        providers: tuple[UtilityProviderProfile, ...] | None = None,
        settings: ScrapingSettings | None = None,
        callback_token: str | None = None,
    ) -> UtilityScrapingService:
        return UtilityScrapingService(
            settings=settings or fast_settings,
            automation_settings=AutomationServiceSettings(
                base_url="https://automation.test",
                api_key="test-key",
                compatibility_flags=("nodejs_compat",),
                callback_token=callback_token,
            ),
            job_store=job_store,
            provider_directory=FakeProviderDirectory(*(providers if providers is not None else (make_provider(),))),
            secret_store=secret_store,
            automation_service=automation or FakeAutomationService(),
            sleep=recording_sleep,
        )

    return _build
