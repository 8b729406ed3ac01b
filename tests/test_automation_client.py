"""
tests/test_automation_client.py

Tests for AutomationServiceClient HTTP error mapping.
"""

from __future__ import annotations

import json
from typing import Any

import pytest
import requests

from app.scraping.classifier import UNAVAILABLE_MESSAGE, ErrorClassifier
from app.scraping.client import AutomationServiceClient
from app.scraping.config.models import AutomationServiceSettings
from app.scraping.errors import (
    AutomationServiceError,
    ConfigurationError,
    FailureCategory,
    ScrapeTimeoutError,
    TransportFailureError,
)


def _response(status_code: int, body: Any = None, *, raw: bytes | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = raw if raw is not None else json.dumps(body).encode("utf-8")
    response.headers["Content-Type"] = "application/json"
    response.encoding = "utf-8"
    return response


class StubSession:
    def __init__(self, outcome: requests.Response | Exception) -> None:
        self.outcome = outcome
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        self.requests.append({"url": url, **kwargs})
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    def close(self) -> None:
        self.closed = True


def _client(outcome: requests.Response | Exception, **overrides: Any) -> tuple[AutomationServiceClient, StubSession]:
    values: dict[str, Any] = {
        "base_url": "https://automation.test",
        "api_key": "test-key",
        "timeout_seconds": 30.0,
    }
    values.update(overrides)
    session = StubSession(outcome)
    client = AutomationServiceClient(AutomationServiceSettings(**values), session=session)  # type: ignore[arg-type]
    return client, session


# ---------------------------------------------------------------------------
# Successful submission
# ---------------------------------------------------------------------------


class TestSubmit:
    def test_posts_json_with_bearer_token(self) -> None:
        client, session = _client(_response(200, {"success": True, "jobId": "job-1"}))

        body = client.submit_job({"utilityId": "prov-1"})

        assert body == {"success": True, "jobId": "job-1"}
        [sent] = session.requests
        assert sent["url"] == "https://automation.test/functions/v1/scrape-utility-bills"
        assert sent["headers"]["Authorization"] == "Bearer test-key"
        assert sent["json"] == {"utilityId": "prov-1"}
        assert sent["timeout"] == 30.0

    def test_close_closes_session(self) -> None:
        client, session = _client(_response(200, {}))
        client.close()
        assert session.closed


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_missing_api_key_is_configuration_error(self) -> None:
        client, session = _client(_response(200, {}), api_key=None)

        with pytest.raises(ConfigurationError, match="AUTOMATION_API_KEY"):
            client.submit_job({})
        assert session.requests == []

    def test_missing_base_url_is_configuration_error(self) -> None:
        client, _ = _client(_response(200, {}), base_url="")

        with pytest.raises(ConfigurationError):
            client.submit_job({})

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_rejected_key_is_configuration_error(self, status_code: int) -> None:
        client, _ = _client(_response(status_code, {"error": "bad key"}))

        with pytest.raises(ConfigurationError, match=str(status_code)):
            client.submit_job({})

    def test_server_error_carries_status_code(self) -> None:
        client, _ = _client(_response(500, {"error": "Internal failure"}))

        with pytest.raises(AutomationServiceError) as excinfo:
            client.submit_job({})

        assert excinfo.value.status_code == 500
        assert "status code 500" in str(excinfo.value)
        assert "Internal failure" in str(excinfo.value)
        failure = ErrorClassifier().classify(excinfo.value)
        assert failure.category is FailureCategory.TRANSPORT_FAILURE
        assert failure.message == UNAVAILABLE_MESSAGE

    def test_timeout(self) -> None:
        client, _ = _client(requests.Timeout("read timed out"))

        with pytest.raises(ScrapeTimeoutError, match="timed out after 30s"):
            client.submit_job({})

    def test_connection_error(self) -> None:
        client, _ = _client(requests.ConnectionError("refused"))

        with pytest.raises(TransportFailureError, match="connection error"):
            client.submit_job({})

    def test_invalid_json_body(self) -> None:
        client, _ = _client(_response(200, raw=b"<html>oops</html>"))

        with pytest.raises(AutomationServiceError, match="not valid JSON"):
            client.submit_job({})

    def test_non_object_body(self) -> None:
        client, _ = _client(_response(200, ["job-1"]))

        with pytest.raises(AutomationServiceError, match="not a JSON object"):
            client.submit_job({})
