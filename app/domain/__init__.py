"""
app/domain package marker.
"""

from app.domain.utility_scraping import (
    Credentials,
    JobReference,
    JobSnapshot,
    JobStatus,
    Notification,
    NotificationLevel,
    ProviderScrapeState,
    UtilityProviderProfile,
)

__all__ = [
    "Credentials",
    "JobReference",
    "JobSnapshot",
    "JobStatus",
    "Notification",
    "NotificationLevel",
    "ProviderScrapeState",
    "UtilityProviderProfile",
]
