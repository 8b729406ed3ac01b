"""
Repository-layer exceptions for scraping job persistence.
"""

from __future__ import annotations


class ScrapingJobRepositoryError(Exception):
    """Base exception for scraping job repository failures."""


class ScrapingJobNotFoundError(ScrapingJobRepositoryError):
    """Raised when a referenced scraping job does not exist."""


class InvalidJobTransitionError(ScrapingJobRepositoryError):
    """Raised when a status update would move a job backwards or out of a terminal state."""

    def __init__(self, *, job_id: str, current: str, target: str) -> None:
        self.job_id = job_id
        self.current = current
        self.target = target
        super().__init__(f"Scraping job {job_id} cannot move from '{current}' to '{target}'.")
