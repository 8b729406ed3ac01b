"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_ALLOWED_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class AppSettings:
    """
    Process-level settings for the API.
    """

    environment: str = "development"
    log_level: str = "INFO"
    start_queue_worker: bool = True
    check_schema_on_startup: bool = True


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """
    Return cached application settings.
    """

    log_level = _get_str_env("LOG_LEVEL", "INFO").upper()
    return AppSettings(
        environment=_get_str_env("APP_ENV", "development").lower(),
        log_level=log_level if log_level in _ALLOWED_LOG_LEVELS else "INFO",
        start_queue_worker=_get_bool_env("SCRAPING_QUEUE_WORKER_ENABLED", True),
        check_schema_on_startup=_get_bool_env("APP_CHECK_SCHEMA_ON_STARTUP", True),
    )
