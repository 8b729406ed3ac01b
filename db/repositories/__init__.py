"""
Repository layer exports.
"""

from db.repositories.credentials_repository import CredentialsRepository
from db.repositories.errors import (
    InvalidJobTransitionError,
    ScrapingJobNotFoundError,
    ScrapingJobRepositoryError,
)
from db.repositories.scraping_job_repository import ScrapingJobRepository
from db.repositories.utility_provider_repository import UtilityProviderRepository

__all__ = [
    "CredentialsRepository",
    "ScrapingJobRepository",
    "UtilityProviderRepository",
    "ScrapingJobRepositoryError",
    "ScrapingJobNotFoundError",
    "InvalidJobTransitionError",
]
