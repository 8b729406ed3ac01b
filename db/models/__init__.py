"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.scraping_job import ScrapingJob, ScrapingJobStatus
from db.models.utility_provider import UtilityProvider

__all__ = [
    "ScrapingJob",
    "ScrapingJobStatus",
    "UtilityProvider",
]
