"""
Schema for the service health endpoint.
"""

from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    queue_worker_running: bool
    active_monitors: int
