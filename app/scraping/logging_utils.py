"""
Structured logging helpers for scraping workflows.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

REDACTED = "***"
_SENSITIVE_KEY_PARTS = ("password", "token", "secret")


def redact_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Return a copy of `payload` with credential-like values masked.

    Nested mappings are redacted recursively.
    """

    redacted: dict[str, Any] = {}
    for key, value in payload.items():
        lowered = str(key).lower()
        if any(part in lowered for part in _SENSITIVE_KEY_PARTS):
            redacted[key] = REDACTED
        elif isinstance(value, Mapping):
            redacted[key] = redact_payload(value)
        else:
            redacted[key] = value
    return redacted


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    /,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
