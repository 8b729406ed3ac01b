"""create utility_providers and scraping_jobs tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "utility_providers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("provider_name", sa.String(length=255), nullable=False),
        sa.Column("utility_type", sa.String(length=64), nullable=True),
        sa.Column("property_id", sa.String(length=36), nullable=True),
        sa.Column("location_name", sa.String(length=255), nullable=True),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_utility_providers_property_id", "utility_providers", ["property_id"], unique=False)

    op.create_table(
        "scraping_jobs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("utility_provider_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("provider", sa.String(length=255), nullable=True, comment="Provider display name, e.g. ENGIE Romania"),
        sa.Column(
            "type",
            sa.String(length=64),
            nullable=True,
            comment="Utility type: electricity, gas, water, internet, building maintenance",
        ),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'failed')",
            name="ck_scraping_jobs_status",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_scraping_jobs_created_at", "scraping_jobs", ["created_at"], unique=False)
    op.create_index("ix_scraping_jobs_status", "scraping_jobs", ["status"], unique=False)
    op.create_index(
        "ix_scraping_jobs_utility_provider_id",
        "scraping_jobs",
        ["utility_provider_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_scraping_jobs_utility_provider_id", table_name="scraping_jobs")
    op.drop_index("ix_scraping_jobs_status", table_name="scraping_jobs")
    op.drop_index("ix_scraping_jobs_created_at", table_name="scraping_jobs")
    op.drop_table("scraping_jobs")
    op.drop_index("ix_utility_providers_property_id", table_name="utility_providers")
    op.drop_table("utility_providers")
