"""
Per-provider scrape state used for caller feedback.

The board is derived from pipeline events and job polls; the job store stays
authoritative. It is only mutated from the event loop thread.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from app.domain.utility_scraping import JobSnapshot, JobStatus, ProviderScrapeState


class ScrapingStateBoard:
    def __init__(self) -> None:
        self._states: dict[str, ProviderScrapeState] = {}

    def get(self, provider_id: str) -> ProviderScrapeState | None:
        return self._states.get(provider_id)

    def mark_attempting(self, provider_id: str) -> ProviderScrapeState:
        current = self._states.get(provider_id) or ProviderScrapeState(provider_id=provider_id)
        return self._put(
            replace(
                current,
                is_attempting=True,
                status=JobStatus.IN_PROGRESS,
                error_message=None,
                last_run_at=datetime.now(timezone.utc),
            )
        )

    def mark_submitted(self, provider_id: str, job_id: str) -> ProviderScrapeState:
        current = self._states.get(provider_id) or ProviderScrapeState(provider_id=provider_id)
        return self._put(
            replace(
                current,
                is_attempting=False,
                status=JobStatus.PENDING,
                job_id=job_id,
                error_message=None,
            )
        )

    def mark_failed(self, provider_id: str, message: str) -> ProviderScrapeState:
        current = self._states.get(provider_id) or ProviderScrapeState(provider_id=provider_id)
        return self._put(
            replace(
                current,
                is_attempting=False,
                status=JobStatus.FAILED,
                error_message=message,
                last_run_at=current.last_run_at or datetime.now(timezone.utc),
            )
        )

    def record_job(self, snapshot: JobSnapshot, *, error_message: str | None = None) -> ProviderScrapeState:
        """
        Reflect one observed job record for its provider.
        """

        provider_id = snapshot.utility_provider_id
        current = self._states.get(provider_id) or ProviderScrapeState(provider_id=provider_id)
        last_run_at = snapshot.completed_at or current.last_run_at or snapshot.created_at
        return self._put(
            replace(
                current,
                is_attempting=False,
                status=snapshot.status,
                job_id=snapshot.job_id,
                error_message=error_message,
                last_run_at=last_run_at,
            )
        )

    def _put(self, state: ProviderScrapeState) -> ProviderScrapeState:
        self._states[state.provider_id] = state
        return state
