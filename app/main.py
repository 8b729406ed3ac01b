from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from app.config import get_app_settings
from app.schemas.health import HealthResponse
from app.services.utility_scraping_service import get_utility_scraping_service


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    logging.basicConfig(
        level=getattr(logging, get_app_settings().log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Every table registered on Base.metadata must exist in the database.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    missing = set(Base.metadata.tables.keys()) - set(inspector.get_table_names())
    if missing:
        logging.getLogger(__name__).critical(
            "Schema mismatch: table(s) %s absent from the database. Run 'alembic upgrade head' and restart.",
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity, start the scrape queue worker; stop it and all job monitors on exit."""
    log = logging.getLogger(__name__)
    settings = get_app_settings()

    _check_db()
    log.info("Database connectivity confirmed")
    if settings.check_schema_on_startup:
        _check_schema()
        log.info("Database schema validated")

    service = get_utility_scraping_service()
    if settings.start_queue_worker:
        service.start()
        log.info("Scrape queue worker started")
    try:
        yield
    finally:
        await service.stop()
        log.info("Scrape queue worker and job monitors stopped")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _configure_logging()

    application = FastAPI(
        title="Utility Bill Scraping API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import scraping_router

    application.include_router(scraping_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        service = get_utility_scraping_service()
        return HealthResponse(
            status="ok",
            queue_worker_running=service.queue.worker_running,
            active_monitors=service.monitor.active_count,
        )

    return application


app = create_app()
