# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Initial schema: settings, utility classification and alert rules.

Revision ID: 3f1a2b4c5d6e
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1a2b4c5d6e"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "settings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.Column("encrypted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("category", "key", name="uq_settings_category_key"),
    )
    op.create_index("ix_settings_category", "settings", ["category"])

    op.create_table(
        "utility_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("key", sa.String(length=50), nullable=False, unique=True),
        sa.Column("label", sa.String(length=100), nullable=False),
        sa.Column("icon", sa.String(length=50), nullable=True),
        sa.Column("color_scheme", sa.String(length=20), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "utility_accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("gl_account_number", sa.String(length=50), nullable=False, unique=True),
        sa.Column("gl_account_name", sa.String(length=255), nullable=False),
        sa.Column(
            "utility_type_id",
            sa.Integer(),
            sa.ForeignKey("utility_types.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index(
        "ix_utility_accounts_utility_type_id", "utility_accounts", ["utility_type_id"]
    )

    op.create_table(
        "expense_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("external_expense_id", sa.String(length=100), nullable=False, unique=True),
        sa.Column("property_external_id", sa.String(length=100), nullable=True),
        sa.Column("gl_account_number", sa.String(length=50), nullable=True),
        sa.Column("gl_account_name", sa.String(length=255), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("expense_date", sa.Date(), nullable=True),
        sa.Column("period_start", sa.Date(), nullable=True),
        sa.Column("period_end", sa.Date(), nullable=True),
        sa.Column("vendor_name", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("pulled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "utility_type_id",
            sa.Integer(),
            sa.ForeignKey("utility_types.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        *_timestamps(),
    )
    for column in (
        "property_external_id",
        "gl_account_number",
        "expense_date",
        "pulled_at",
        "utility_type_id",
    ):
        op.create_index(f"ix_expense_records_{column}", "expense_records", [column])

    op.create_table(
        "utility_formatting_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "utility_type_id",
            sa.Integer(),
            sa.ForeignKey("utility_types.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("operator", sa.String(length=30), nullable=False),
        sa.Column("threshold", sa.Numeric(8, 2), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False),
        sa.Column("background_color", sa.String(length=7), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index(
        "ix_utility_formatting_rules_utility_type_id",
        "utility_formatting_rules",
        ["utility_type_id"],
    )

    op.create_table(
        "alert_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("metric", sa.String(length=50), nullable=False),
        sa.Column("operator", sa.String(length=10), nullable=False),
        sa.Column("threshold", sa.Numeric(14, 2), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("recipients", sa.JSON(), nullable=False),
        sa.Column("last_triggered_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table("alert_rules")
    op.drop_index(
        "ix_utility_formatting_rules_utility_type_id",
        table_name="utility_formatting_rules",
    )
    op.drop_table("utility_formatting_rules")
    op.drop_table("expense_records")
    op.drop_index("ix_utility_accounts_utility_type_id", table_name="utility_accounts")
    op.drop_table("utility_accounts")
    op.drop_table("utility_types")
    op.drop_index("ix_settings_category", table_name="settings")
    op.drop_table("settings")
