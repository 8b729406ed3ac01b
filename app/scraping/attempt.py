"""
One scrape attempt for one provider: lookup, credentials, submission,
then hand-off to the job monitor.
"""

from __future__ import annotations

import asyncio
import logging

from app.domain.utility_scraping import JobReference
from app.scraping.credentials import CredentialsGateway
from app.scraping.errors import ProviderConfigurationError
from app.scraping.invoker import AutomationInvoker
from app.scraping.logging_utils import log_event
from app.scraping.monitor import JobStatusMonitor
from app.scraping.state import ScrapingStateBoard
from app.scraping.storage.base import ProviderDirectory

logger = logging.getLogger(__name__)


class ScrapeAttempt:
    def __init__(
        self,
        *,
        provider_directory: ProviderDirectory,
        credentials_gateway: CredentialsGateway,
        invoker: AutomationInvoker,
        monitor: JobStatusMonitor,
        state_board: ScrapingStateBoard,
    ) -> None:
        self._provider_directory = provider_directory
        self._credentials_gateway = credentials_gateway
        self._invoker = invoker
        self._monitor = monitor
        self._state_board = state_board

    async def run(self, provider_id: str, *, allow_fallback: bool = False) -> JobReference:
        provider = await asyncio.to_thread(self._provider_directory.get_provider, provider_id)
        if provider is None or not provider.property_id:
            log_event(
                logger,
                logging.ERROR,
                "provider_configuration_invalid",
                provider_id=provider_id,
                found=provider is not None,
            )
            raise ProviderConfigurationError("Invalid provider configuration")

        self._state_board.mark_attempting(provider_id)
        credentials = await self._credentials_gateway.get_credentials(provider.id, provider.property_id)
        reference = await self._invoker.invoke(provider, credentials, allow_fallback=allow_fallback)

        self._state_board.mark_submitted(provider_id, reference.job_id)
        self._monitor.start_monitoring(reference.job_id, provider_id)
        return reference
