# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Add per-property utility exclusions.

Revision ID: 7b8c9d0e1f2a
Revises: 3f1a2b4c5d6e
Create Date: 2026-10-19 14:00:00.000000+00:00

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7b8c9d0e1f2a"
down_revision: str | None = "3f1a2b4c5d6e"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "property_utility_exclusions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("property_external_id", sa.String(length=100), nullable=False),
        sa.Column(
            "utility_type_id",
            sa.Integer(),
            sa.ForeignKey("utility_types.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "property_external_id",
            "utility_type_id",
            name="uq_property_utility_exclusions_property_type",
        ),
    )
    op.create_index(
        "ix_property_utility_exclusions_property_external_id",
        "property_utility_exclusions",
        ["property_external_id"],
    )
    op.create_index(
        "ix_property_utility_exclusions_utility_type_id",
        "property_utility_exclusions",
        ["utility_type_id"],
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index(
        "ix_property_utility_exclusions_utility_type_id",
        table_name="property_utility_exclusions",
    )
    op.drop_index(
        "ix_property_utility_exclusions_property_external_id",
        table_name="property_utility_exclusions",
    )
    op.drop_table("property_utility_exclusions")
