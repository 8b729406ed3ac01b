"""
Utility-bill scraping endpoints.
"""

from __future__ import annotations

import hmac

from fastapi import APIRouter, Depends, Header, HTTPException, Path, Query, status

from app.domain.utility_scraping import JobSnapshot, JobStatus
from app.schemas.utility_scraping import (
    JobStatusCallbackRequest,
    NotificationListResponse,
    NotificationResponse,
    ProviderScrapeStateResponse,
    QueueStatusResponse,
    ScrapeRequestAcceptedResponse,
    ScrapingJobListResponse,
    ScrapingJobResponse,
)
from app.services.utility_scraping_service import (
    UtilityScrapingService,
    get_utility_scraping_service,
)
from db.repositories.errors import InvalidJobTransitionError, ScrapingJobNotFoundError

router = APIRouter(prefix="/scraping", tags=["utility-scraping"])


def _job_response(snapshot: JobSnapshot) -> ScrapingJobResponse:
    return ScrapingJobResponse(
        job_id=snapshot.job_id,
        utility_provider_id=snapshot.utility_provider_id,
        status=snapshot.status,
        provider=snapshot.provider,
        type=snapshot.utility_type,
        location=snapshot.location,
        error_message=snapshot.error_message,
        created_at=snapshot.created_at,
        completed_at=snapshot.completed_at,
    )


# Queue-facing handlers are async so they run on the event loop thread.
@router.post(
    "/providers/{provider_id}/scrape",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ScrapeRequestAcceptedResponse,
)
async def request_provider_scrape(
    provider_id: str = Path(min_length=1, max_length=64),
    service: UtilityScrapingService = Depends(get_utility_scraping_service),
) -> ScrapeRequestAcceptedResponse:
    try:
        result = service.request_scrape(provider_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ScrapeRequestAcceptedResponse(
        provider_id=result.provider_id,
        queued=result.queued,
        queue_position=result.queue_position,
    )


@router.get("/queue", response_model=QueueStatusResponse)
async def get_queue_status(
    service: UtilityScrapingService = Depends(get_utility_scraping_service),
) -> QueueStatusResponse:
    snapshot = service.queue_snapshot()
    return QueueStatusResponse(
        pending=list(snapshot.pending),
        in_flight=snapshot.in_flight,
        is_processing=snapshot.is_processing,
    )


@router.get("/providers/{provider_id}/state", response_model=ProviderScrapeStateResponse)
async def get_provider_state(
    provider_id: str,
    service: UtilityScrapingService = Depends(get_utility_scraping_service),
) -> ProviderScrapeStateResponse:
    state = service.provider_state(provider_id)
    if state is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No scrape activity recorded for provider {provider_id}",
        )
    return ProviderScrapeStateResponse(
        provider_id=state.provider_id,
        is_attempting=state.is_attempting,
        status=state.status,
        last_run_at=state.last_run_at,
        error_message=state.error_message,
        job_id=state.job_id,
    )


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = Query(default=50, ge=1, le=500),
    service: UtilityScrapingService = Depends(get_utility_scraping_service),
) -> NotificationListResponse:
    return NotificationListResponse(
        notifications=[
            NotificationResponse(
                level=item.level,
                title=item.title,
                description=item.description,
                provider_id=item.provider_id,
                job_id=item.job_id,
                created_at=item.created_at,
            )
            for item in service.recent_notifications(limit)
        ]
    )


@router.get("/jobs", response_model=ScrapingJobListResponse)
def list_scraping_jobs(
    provider_id: str | None = Query(default=None, description="Optional utility provider filter"),
    status_filter: JobStatus | None = Query(default=None, alias="status", description="Optional status filter"),
    limit: int = Query(default=100, ge=1, le=500),
    service: UtilityScrapingService = Depends(get_utility_scraping_service),
) -> ScrapingJobListResponse:
    jobs = service.list_jobs(provider_id=provider_id, status=status_filter, limit=limit)
    return ScrapingJobListResponse(jobs=[_job_response(job) for job in jobs])


@router.get("/jobs/{job_id}", response_model=ScrapingJobResponse)
def get_scraping_job(
    job_id: str,
    service: UtilityScrapingService = Depends(get_utility_scraping_service),
) -> ScrapingJobResponse:
    job = service.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Scraping job not found: {job_id}")
    return _job_response(job)


@router.post("/jobs/{job_id}/status", response_model=ScrapingJobResponse)
def record_job_status(
    job_id: str,
    payload: JobStatusCallbackRequest,
    automation_token: str | None = Header(default=None, alias="X-Automation-Token"),
    service: UtilityScrapingService = Depends(get_utility_scraping_service),
) -> ScrapingJobResponse:
    expected = service.callback_token
    if expected is not None and not hmac.compare_digest(automation_token or "", expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid automation token")

    try:
        snapshot = service.record_status_callback(
            job_id=job_id,
            status=payload.status,
            error_message=payload.error_message,
        )
    except ScrapingJobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidJobTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _job_response(snapshot)
