"""
db/models/utility_provider.py

Utility provider profile configured by a landlord for one property.
Owned by provider management; the scraping pipeline only reads it.
"""

from __future__ import annotations

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class UtilityProvider(Base, TimestampMixin):
    __tablename__ = "utility_providers"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
    )
    provider_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    utility_type: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )
    property_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
    )
    location_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    __table_args__ = (Index("ix_utility_providers_property_id", "property_id"),)
