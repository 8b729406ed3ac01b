"""
HTTP client for the remote browser-automation service.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests

from app.scraping.config.models import AutomationServiceSettings
from app.scraping.errors import AutomationServiceError, ConfigurationError, ScrapeTimeoutError, TransportFailureError

logger = logging.getLogger(__name__)

_MAX_ERROR_BODY_CHARS = 500


class AutomationServiceClient:
    """
    Submit scrape jobs to the automation function endpoint.

    The client performs a single request per call; retry policy belongs to the
    pipeline's retry controller.
    """

    def __init__(
        self,
        settings: AutomationServiceSettings,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    @property
    def settings(self) -> AutomationServiceSettings:
        return self._settings

    def submit_job(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """
        POST a job descriptor and return the decoded JSON response body.
        """

        if not self._settings.api_key:
            raise ConfigurationError("AUTOMATION_API_KEY is not configured for the automation service")
        if not self._settings.base_url:
            raise ConfigurationError("AUTOMATION_BASE_URL is not configured for the automation service")

        url = self._settings.endpoint_url
        try:
            response = self._session.post(
                url,
                json=dict(payload),
                headers={
                    "Authorization": f"Bearer {self._settings.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self._settings.timeout_seconds,
            )
        except requests.Timeout as exc:
            raise ScrapeTimeoutError(
                f"Automation service request timed out after {self._settings.timeout_seconds:g}s"
            ) from exc
        except requests.ConnectionError as exc:
            raise TransportFailureError(f"Automation service connection error: {exc}") from exc
        except requests.RequestException as exc:
            raise TransportFailureError(f"Automation service network error: {exc}") from exc

        if response.status_code in {401, 403}:
            raise ConfigurationError(
                f"Automation service rejected the API key (status code {response.status_code})"
            )
        if not 200 <= response.status_code < 300:
            detail = _error_detail(response)
            message = f"Automation service returned status code {response.status_code}"
            if detail:
                message = f"{message}: {detail}"
            raise AutomationServiceError(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise AutomationServiceError(
                "Automation service response was not valid JSON.",
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, dict):
            raise AutomationServiceError(
                "Automation service response was not a JSON object.",
                status_code=response.status_code,
            )
        return body

    def close(self) -> None:
        self._session.close()


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()[:_MAX_ERROR_BODY_CHARS]
    if isinstance(body, dict):
        for key in ("error", "message", "msg"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()[:_MAX_ERROR_BODY_CHARS]
    return str(body)[:_MAX_ERROR_BODY_CHARS]
