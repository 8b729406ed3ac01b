"""
Access to the database-side credential decryption function.

Provider passwords are stored encrypted with pgcrypto. Decryption happens
inside PostgreSQL through `get_decrypted_credentials(property_id_input)`, so
plaintext only exists in the result row handed back to the caller.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import text
from sqlalchemy.orm import Session

_DECRYPT_CREDENTIALS_SQL = text(
    "SELECT username, password FROM get_decrypted_credentials(:property_id_input)"
)


class CredentialsRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def fetch_decrypted_credentials(self, property_id: str) -> dict[str, Any] | None:
        """
        Return `{"username": ..., "password": ...}` or None when nothing is stored.

        Database errors (including a missing pgcrypto extension) propagate
        unchanged for the caller to classify.
        """

        row = self._session.execute(
            _DECRYPT_CREDENTIALS_SQL,
            {"property_id_input": property_id},
        ).mappings().first()
        if row is None:
            return None
        return {"username": row["username"], "password": row["password"]}
