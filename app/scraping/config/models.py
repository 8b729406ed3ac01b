"""
Scraping configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ScrapingSettings:
    """
    Runtime settings for the scrape queue, retries and job polling.
    """

    max_retries: int = 3
    retry_delay_seconds: float = 2.0
    job_check_interval_seconds: float = 5.0
    job_check_max_time_seconds: float = 300.0
    fallback_jobs_enabled: bool = True
    notification_feed_size: int = 200


@dataclass(frozen=True)
class AutomationServiceSettings:
    """
    Connection settings for the remote browser-automation service.
    """

    base_url: str = ""
    api_key: str | None = None
    function_name: str = "scrape-utility-bills"
    timeout_seconds: float = 120.0
    compatibility_flags: tuple[str, ...] = field(default_factory=tuple)
    callback_token: str | None = None

    @property
    def endpoint_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/functions/v1/{self.function_name}"
