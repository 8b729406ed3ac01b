"""
Run utility-bill scraping for one or more providers from CLI.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from app.config import get_app_settings
from app.services.utility_scraping_service import UtilityScrapingService


async def _run(provider_ids: list[str], *, wait_for_jobs: bool) -> list[dict[str, object]]:
    service = UtilityScrapingService()
    try:
        for provider_id in provider_ids:
            service.request_scrape(provider_id)
        await service.drain()
        if wait_for_jobs:
            await service.wait_for_monitors()
    finally:
        await service.stop()

    payload: list[dict[str, object]] = []
    for provider_id in provider_ids:
        state = service.provider_state(provider_id)
        payload.append(
            {
                "provider_id": provider_id,
                "status": state.status.value if state and state.status else None,
                "job_id": state.job_id if state else None,
                "error_message": state.error_message if state else None,
                "last_run_at": state.last_run_at.isoformat() if state and state.last_run_at else None,
            }
        )
    return payload


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Queue utility providers for bill scraping.")
    parser.add_argument(
        "provider_ids",
        nargs="+",
        help="Utility provider ids, processed in the given order.",
    )
    parser.add_argument(
        "--no-wait",
        dest="wait_for_jobs",
        action="store_false",
        help="Return after submission without polling the submitted jobs.",
    )
    args = parser.parse_args(argv)
    provider_ids = [provider_id.strip() for provider_id in args.provider_ids]
    if not all(provider_ids):
        parser.error("provider ids must be non-empty")

    logging.basicConfig(
        level=getattr(logging, get_app_settings().log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    payload = asyncio.run(_run(provider_ids, wait_for_jobs=args.wait_for_jobs))
    print(json.dumps(payload, indent=2))
    if args.wait_for_jobs:
        return 0 if all(item["status"] == "completed" for item in payload) else 1
    return 0 if all(item["status"] != "failed" for item in payload) else 1


if __name__ == "__main__":
    raise SystemExit(main())
