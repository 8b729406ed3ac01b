"""
Environment config loader for utility-bill scraping.
"""

from __future__ import annotations

import os
from functools import lru_cache

from db.config import load_env_files

from app.scraping.config.models import AutomationServiceSettings, ScrapingSettings


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped or None


def _get_millis_env(name: str, default_ms: int, *, minimum_ms: int) -> float:
    return max(minimum_ms, _get_int_env(name, default_ms)) / 1000.0


def _parse_flags(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    flags = [item.strip() for item in raw.split(",")]
    return tuple(dict.fromkeys(flag for flag in flags if flag))


@lru_cache(maxsize=1)
def get_scraping_settings() -> ScrapingSettings:
    """
    Return cached queue/retry/polling settings from environment variables.
    """

    load_env_files()
    return ScrapingSettings(
        max_retries=max(0, _get_int_env("SCRAPING_MAX_RETRIES", 3)),
        retry_delay_seconds=_get_millis_env("SCRAPING_RETRY_DELAY_MS", 2000, minimum_ms=0),
        job_check_interval_seconds=_get_millis_env(
            "SCRAPING_JOB_CHECK_INTERVAL_MS",
            5000,
            minimum_ms=100,
        ),
        job_check_max_time_seconds=_get_millis_env(
            "SCRAPING_JOB_CHECK_MAX_TIME_MS",
            300000,
            minimum_ms=1000,
        ),
        fallback_jobs_enabled=_get_bool_env("SCRAPING_FALLBACK_JOBS_ENABLED", True),
        notification_feed_size=max(1, _get_int_env("SCRAPING_NOTIFICATION_FEED_SIZE", 200)),
    )


@lru_cache(maxsize=1)
def get_automation_service_settings() -> AutomationServiceSettings:
    """
    Return cached automation service connection settings.
    """

    load_env_files()
    return AutomationServiceSettings(
        base_url=_get_str_env("AUTOMATION_BASE_URL", ""),
        api_key=_get_optional_str_env("AUTOMATION_API_KEY"),
        function_name=_get_str_env("AUTOMATION_FUNCTION_NAME", "scrape-utility-bills"),
        timeout_seconds=max(1.0, _get_float_env("AUTOMATION_TIMEOUT_SECONDS", 120.0)),
        compatibility_flags=_parse_flags(os.getenv("AUTOMATION_COMPATIBILITY_FLAGS")),
        callback_token=_get_optional_str_env("AUTOMATION_CALLBACK_TOKEN"),
    )
