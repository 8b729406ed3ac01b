"""
Read-only repository for utility provider profiles.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from db.models.utility_provider import UtilityProvider


class UtilityProviderRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_provider(self, provider_id: str) -> UtilityProvider | None:
        return self._session.get(UtilityProvider, provider_id)
