"""
app/services package marker.
"""

from app.services.utility_scraping_service import (
    EnqueueResult,
    UtilityScrapingService,
    get_utility_scraping_service,
)

__all__ = [
    "EnqueueResult",
    "UtilityScrapingService",
    "get_utility_scraping_service",
]
