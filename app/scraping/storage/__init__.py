"""
Storage layer exports.
"""

from app.scraping.storage.base import JobStore, ProviderDirectory, SecretStore
from app.scraping.storage.sqlalchemy_storage import (
    SQLAlchemyJobStore,
    SQLAlchemyProviderDirectory,
    SQLAlchemySecretStore,
)

__all__ = [
    "JobStore",
    "ProviderDirectory",
    "SQLAlchemyJobStore",
    "SQLAlchemyProviderDirectory",
    "SQLAlchemySecretStore",
    "SecretStore",
]
