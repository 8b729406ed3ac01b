"""
Container health probe for the scraping API.

Exits 0 only when /health answers and reports the queue worker running.
"""

from __future__ import annotations

import json
import os
from urllib.error import URLError
from urllib.request import urlopen


def main() -> int:
    port = os.getenv("PORT", "8000")
    url = f"http://127.0.0.1:{port}{os.getenv('HEALTHCHECK_PATH', '/health')}"
    require_worker = os.getenv("HEALTHCHECK_REQUIRE_WORKER", "true").strip().lower() in {"1", "true", "yes", "on"}

    try:
        with urlopen(url, timeout=2) as response:
            if not 200 <= response.status < 400:
                return 1
            body = json.loads(response.read().decode("utf-8") or "{}")
    except (URLError, TimeoutError, ValueError):
        return 1

    if body.get("status") != "ok":
        return 1
    if require_worker and not body.get("queue_worker_running", False):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
