"""
tests/test_utility_scraping_service.py

End-to-end pipeline scenarios: enqueue -> retry -> submit -> monitor -> notify.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from app.domain.utility_scraping import JobStatus, NotificationLevel
from app.scraping.classifier import DEFAULT_MESSAGES, UNAVAILABLE_MESSAGE
from app.scraping.config.models import ScrapingSettings
from app.scraping.errors import AutomationServiceError, ConfigurationError, FailureCategory
from app.scraping.invoker import FALLBACK_NOTE_PREFIX
from app.scraping.notifications import SUCCESS_TITLE
from app.services.utility_scraping_service import UtilityScrapingService
from conftest import FakeAutomationService, FakeJobStore, FakeSecretStore, RecordingSleep, make_provider

ServiceBuilder = Callable[..., UtilityScrapingService]


def _run_to_completion(service: UtilityScrapingService, *provider_ids: str) -> int:
    async def scenario() -> int:
        for provider_id in provider_ids:
            service.request_scrape(provider_id)
        processed = await service.drain()
        await service.wait_for_monitors()
        return processed

    return asyncio.run(scenario())


def _status_500() -> AutomationServiceError:
    return AutomationServiceError("Automation service returned status code 500", status_code=500)


# ---------------------------------------------------------------------------
# Successful runs
# ---------------------------------------------------------------------------


class TestSuccessfulRun:
    def test_completed_job_notifies_once(self, build_service: ServiceBuilder, job_store: FakeJobStore) -> None:
        automation = FakeAutomationService({"success": True, "jobId": "job-1"})
        job_store.script("job-1", JobStatus.PENDING, JobStatus.IN_PROGRESS, JobStatus.COMPLETED)
        service = build_service(automation=automation)

        processed = _run_to_completion(service, "prov-1")

        assert processed == 1
        assert len(automation.payloads) == 1
        [notification] = service.recent_notifications()
        assert notification.level is NotificationLevel.SUCCESS
        assert notification.title == SUCCESS_TITLE
        assert notification.job_id == "job-1"
        state = service.provider_state("prov-1")
        assert state.status is JobStatus.COMPLETED
        assert state.is_attempting is False

    def test_duplicate_requests_produce_one_attempt(
        self,
        build_service: ServiceBuilder,
        job_store: FakeJobStore,
    ) -> None:
        automation = FakeAutomationService({"success": True, "jobId": "job-1"})
        job_store.script("job-1", JobStatus.COMPLETED)
        service = build_service(automation=automation)

        async def scenario():
            first = service.request_scrape("prov-1")
            second = service.request_scrape("prov-1")
            await service.drain()
            await service.wait_for_monitors()
            return first, second

        first, second = asyncio.run(scenario())

        assert first.queued is True
        assert second.queued is False
        assert len(automation.payloads) == 1

    def test_providers_run_in_order(self, build_service: ServiceBuilder, job_store: FakeJobStore) -> None:
        automation = FakeAutomationService(
            {"success": True, "jobId": "job-a"},
            {"success": True, "jobId": "job-b"},
        )
        job_store.script("job-a", JobStatus.COMPLETED, provider_id="prov-a")
        job_store.script("job-b", JobStatus.COMPLETED, provider_id="prov-b")
        service = build_service(
            automation=automation,
            providers=(make_provider("prov-a"), make_provider("prov-b")),
        )

        _run_to_completion(service, "prov-a", "prov-b")

        assert [payload["utilityId"] for payload in automation.payloads] == ["prov-a", "prov-b"]
        assert len(service.recent_notifications()) == 2


# ---------------------------------------------------------------------------
# Failure runs
# ---------------------------------------------------------------------------


class TestFailedRun:
    def test_service_down_twice_surfaces_unavailable_message(
        self,
        build_service: ServiceBuilder,
        job_store: FakeJobStore,
        recording_sleep: RecordingSleep,
    ) -> None:
        automation = FakeAutomationService(_status_500(), _status_500())
        service = build_service(
            automation=automation,
            settings=ScrapingSettings(fallback_jobs_enabled=False),
        )

        _run_to_completion(service, "prov-1")

        assert len(automation.payloads) == 2
        assert recording_sleep.delays == [2.0]
        state = service.provider_state("prov-1")
        assert state.status is JobStatus.FAILED
        assert state.error_message == UNAVAILABLE_MESSAGE
        [notification] = service.recent_notifications()
        assert notification.level is NotificationLevel.ERROR
        assert notification.description == UNAVAILABLE_MESSAGE
        assert job_store.created == []
        assert service.queue_snapshot().in_flight is None

    def test_second_transport_failure_falls_back_to_local_job(
        self,
        build_service: ServiceBuilder,
        job_store: FakeJobStore,
    ) -> None:
        automation = FakeAutomationService(_status_500(), _status_500())
        service = build_service(automation=automation)

        async def scenario() -> None:
            service.request_scrape("prov-1")
            await service.drain()
            [fallback] = job_store.created
            job_store.script(fallback.job_id, JobStatus.COMPLETED)
            await service.wait_for_monitors()

        asyncio.run(scenario())

        [fallback] = job_store.created
        assert fallback.status is JobStatus.PENDING
        assert fallback.error_message.startswith(FALLBACK_NOTE_PREFIX)
        assert len(automation.payloads) == 2
        assert service.provider_state("prov-1").job_id == fallback.job_id

    def test_missing_api_key_fails_provider_without_fallback(
        self,
        build_service: ServiceBuilder,
        job_store: FakeJobStore,
        recording_sleep: RecordingSleep,
    ) -> None:
        automation = FakeAutomationService(ConfigurationError("AUTOMATION_API_KEY is not configured"))
        service = build_service(automation=automation)

        _run_to_completion(service, "prov-1")

        assert len(automation.payloads) == 1
        assert recording_sleep.delays == []
        assert job_store.created == []
        state = service.provider_state("prov-1")
        assert state.status is JobStatus.FAILED
        [notification] = service.recent_notifications()
        assert notification.level is NotificationLevel.ERROR
        assert "API key" in notification.description
        assert "administrator" in notification.description

    def test_missing_pgcrypto_is_not_retried(
        self,
        build_service: ServiceBuilder,
        secret_store: FakeSecretStore,
        recording_sleep: RecordingSleep,
    ) -> None:
        secret_store.error = RuntimeError("function pgp_sym_decrypt(bytea, unknown) does not exist; pgcrypto")
        automation = FakeAutomationService()
        service = build_service(automation=automation)

        _run_to_completion(service, "prov-1")

        assert automation.payloads == []
        assert secret_store.calls == ["prop-1"]
        assert recording_sleep.delays == []
        state = service.provider_state("prov-1")
        assert state.status is JobStatus.FAILED
        assert "pgcrypto" in state.error_message

    def test_provider_without_property_is_configuration_error(self, build_service: ServiceBuilder) -> None:
        automation = FakeAutomationService()
        service = build_service(automation=automation, providers=(make_provider(property_id=None),))

        _run_to_completion(service, "prov-1")

        assert automation.payloads == []
        assert "property" in service.provider_state("prov-1").error_message

    def test_unknown_provider_fails_without_retry(
        self,
        build_service: ServiceBuilder,
        recording_sleep: RecordingSleep,
    ) -> None:
        service = build_service(providers=())

        _run_to_completion(service, "prov-404")

        assert service.provider_state("prov-404").status is JobStatus.FAILED
        assert recording_sleep.delays == []

    def test_login_rejection_is_not_retried(self, build_service: ServiceBuilder) -> None:
        automation = FakeAutomationService({"success": False, "error": "Login failed: invalid credentials"})
        service = build_service(automation=automation)

        _run_to_completion(service, "prov-1")

        assert len(automation.payloads) == 1
        expected = DEFAULT_MESSAGES[FailureCategory.AUTHENTICATION_FAILED]
        assert service.provider_state("prov-1").error_message == expected

    def test_failed_job_reported_by_automation(self, build_service: ServiceBuilder, job_store: FakeJobStore) -> None:
        job_store.script("job-1", JobStatus.IN_PROGRESS, (JobStatus.FAILED, "Captcha detected on login page"))
        service = build_service()

        _run_to_completion(service, "prov-1")

        [notification] = service.recent_notifications()
        assert notification.level is NotificationLevel.ERROR
        assert notification.description == DEFAULT_MESSAGES[FailureCategory.CAPTCHA_REQUIRED]
        assert service.provider_state("prov-1").status is JobStatus.FAILED


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_worker_processes_requests_until_stopped(
        self,
        build_service: ServiceBuilder,
        job_store: FakeJobStore,
    ) -> None:
        job_store.script("job-1", JobStatus.COMPLETED)
        service = build_service()

        async def scenario() -> None:
            service.start()
            service.request_scrape("prov-1")
            for _ in range(200):
                if service.recent_notifications():
                    break
                await asyncio.sleep(0.01)
            await service.stop()

        asyncio.run(scenario())

        assert len(service.recent_notifications()) == 1
        assert not service.queue.worker_running
        assert service.monitor.active_count == 0

    def test_worker_moves_on_after_a_provider_gives_up(
        self,
        build_service: ServiceBuilder,
        job_store: FakeJobStore,
    ) -> None:
        automation = FakeAutomationService(
            {"success": False, "error": "Login failed: invalid credentials"},
            {"success": True, "jobId": "job-2"},
        )
        job_store.script("job-2", JobStatus.COMPLETED, provider_id="prov-2")
        service = build_service(
            automation=automation,
            providers=(make_provider("prov-bad"), make_provider("prov-2")),
        )

        async def scenario() -> bool:
            service.start()
            service.request_scrape("prov-bad")
            service.request_scrape("prov-2")
            for _ in range(200):
                if len(service.recent_notifications()) == 2:
                    break
                await asyncio.sleep(0.01)
            running = service.queue.worker_running
            await service.stop()
            return running

        running = asyncio.run(scenario())

        assert running is True
        assert [payload["utilityId"] for payload in automation.payloads] == ["prov-bad", "prov-2"]
        assert service.provider_state("prov-bad").status is JobStatus.FAILED
        assert service.provider_state("prov-2").status is JobStatus.COMPLETED
        levels = {notification.provider_id: notification.level for notification in service.recent_notifications()}
        assert levels == {"prov-bad": NotificationLevel.ERROR, "prov-2": NotificationLevel.SUCCESS}
