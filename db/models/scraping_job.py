"""
db/models/scraping_job.py

Scraping job record written by the remote automation service (or by the
fallback path) and read by the status monitor.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class ScrapingJobStatus:
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    ALL = (PENDING, IN_PROGRESS, COMPLETED, FAILED)
    TERMINAL = frozenset({COMPLETED, FAILED})
    _RANK = {PENDING: 0, IN_PROGRESS: 1, COMPLETED: 2, FAILED: 2}

    @classmethod
    def rank(cls, status: str) -> int:
        return cls._RANK[status]

    @classmethod
    def can_transition(cls, current: str, target: str) -> bool:
        """
        pending -> in_progress -> {completed, failed}; steps may be skipped,
        never reversed, and a terminal status is final.
        """

        if current not in cls._RANK or target not in cls._RANK:
            return False
        if current in cls.TERMINAL:
            return False
        return cls.rank(target) >= cls.rank(current)


def _new_job_id() -> str:
    return str(uuid.uuid4())


class ScrapingJob(Base, TimestampMixin):
    __tablename__ = "scraping_jobs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_job_id,
    )
    utility_provider_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ScrapingJobStatus.PENDING,
    )
    provider: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Provider display name, e.g. ENGIE Romania",
    )
    type: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Utility type: electricity, gas, water, internet, building maintenance",
    )
    location: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'failed')",
            name="ck_scraping_jobs_status",
        ),
        Index("ix_scraping_jobs_utility_provider_id", "utility_provider_id"),
        Index("ix_scraping_jobs_status", "status"),
        Index("ix_scraping_jobs_created_at", "created_at"),
    )
