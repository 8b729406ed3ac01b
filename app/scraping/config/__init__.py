"""
Config helpers for utility-bill scraping.
"""

from app.scraping.config.loader import get_automation_service_settings, get_scraping_settings
from app.scraping.config.models import AutomationServiceSettings, ScrapingSettings

__all__ = [
    "AutomationServiceSettings",
    "ScrapingSettings",
    "get_automation_service_settings",
    "get_scraping_settings",
]
