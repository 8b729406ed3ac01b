"""
app/schemas package marker.
"""

from app.schemas.health import HealthResponse
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

__all__ = [
    "HealthResponse",
    "JobStatusCallbackRequest",
    "NotificationListResponse",
    "NotificationResponse",
    "ProviderScrapeStateResponse",
    "QueueStatusResponse",
    "ScrapeRequestAcceptedResponse",
    "ScrapingJobListResponse",
    "ScrapingJobResponse",
]
