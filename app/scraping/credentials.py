"""
Credential retrieval for scraping attempts.
"""

from __future__ import annotations

import asyncio
import logging

from app.domain.utility_scraping import Credentials
from app.scraping.errors import (
    CredentialsLookupError,
    CredentialsNotFoundError,
    DecryptionUnavailableError,
)
from app.scraping.logging_utils import log_event
from app.scraping.storage.base import SecretStore

logger = logging.getLogger(__name__)


class CredentialsGateway:
    """
    Fetch decrypted provider credentials for a single invocation.

    Nothing is cached; every attempt reads the secret store again.
    """

    def __init__(self, secret_store: SecretStore) -> None:
        self._secret_store = secret_store

    async def get_credentials(self, provider_id: str, property_id: str) -> Credentials:
        try:
            record = await asyncio.to_thread(
                self._secret_store.fetch_decrypted_credentials,
                property_id,
            )
        except Exception as exc:
            if "pgcrypto" in str(exc).lower():
                log_event(
                    logger,
                    logging.ERROR,
                    "credentials_decryption_unavailable",
                    provider_id=provider_id,
                    property_id=property_id,
                )
                raise DecryptionUnavailableError(
                    "pgcrypto extension is not enabled in the database"
                ) from exc
            log_event(
                logger,
                logging.ERROR,
                "credentials_lookup_failed",
                provider_id=provider_id,
                property_id=property_id,
                error=type(exc).__name__,
            )
            raise CredentialsLookupError("Failed to fetch credentials") from exc

        username = (record or {}).get("username")
        password = (record or {}).get("password")
        if not password:
            raise CredentialsNotFoundError("No credentials found for this provider")

        return Credentials(username=str(username or ""), password=str(password))
