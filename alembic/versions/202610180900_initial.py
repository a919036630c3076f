"""initial finance schema

Revision ID: 202610180900
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "202610180900"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=128)),
        sa.Column("name", sa.String(length=30), nullable=False),
        sa.Column("icon", sa.String(length=16), nullable=False),
        sa.Column("color", sa.String(length=9), nullable=False),
        sa.Column(
            "category_type", sa.Enum("income", "expense", name="transactiontype")
        ),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column(
            "is_cashback_eligible", sa.Boolean(), nullable=False, server_default="0"
        ),
        sa.Column("cashback_rate", sa.Float()),
        sa.Column("description", sa.Text()),
        sa.Column("budget_limit_cents", sa.Integer()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="1"),
        *_timestamps(),
    )
    op.create_index(
        "ix_categories_active_order", "categories", ["is_active", "sort_order"]
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=128)),
        sa.Column("occurred_at", sa.DateTime(), nullable=False),
        sa.Column(
            "type",
            sa.Enum("income", "expense", name="transactiontype"),
            nullable=False,
        ),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.String(length=64), nullable=False),
        sa.Column("note", sa.Text(), nullable=False, server_default=""),
        sa.Column("cashback_cents", sa.Integer()),
        sa.Column("payment_method", sa.String(length=60)),
        sa.Column("location", sa.String(length=200)),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("tags_json", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_transactions_occurred_at", "transactions", ["occurred_at"])
    op.create_index(
        "ix_transactions_type_occurred_at", "transactions", ["type", "occurred_at"]
    )
    op.create_index(
        "ix_transactions_category_occurred_at",
        "transactions",
        ["category_id", "occurred_at"],
    )

    op.create_table(
        "budgets",
        sa.Column("id", sa.String(length=96), primary_key=True),
        sa.Column("user_id", sa.String(length=128)),
        sa.Column("category_id", sa.String(length=64), nullable=False),
        sa.Column("month", sa.Date(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("target_cents", sa.Integer()),
        sa.Column(
            "alert_threshold", sa.Float(), nullable=False, server_default="0.8"
        ),
        sa.Column("alerts_enabled", sa.Boolean(), nullable=False, server_default="1"),
        sa.Column(
            "rollover_enabled", sa.Boolean(), nullable=False, server_default="0"
        ),
        sa.Column(
            "carried_over_cents", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("note", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.UniqueConstraint("category_id", "month", name="uq_budget_category_month"),
    )
    op.create_index("ix_budgets_month_active", "budgets", ["month", "is_active"])


def downgrade() -> None:
    op.drop_index("ix_budgets_month_active", table_name="budgets")
    op.drop_table("budgets")
    op.drop_index("ix_transactions_category_occurred_at", table_name="transactions")
    op.drop_index("ix_transactions_type_occurred_at", table_name="transactions")
    op.drop_index("ix_transactions_occurred_at", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_categories_active_order", table_name="categories")
    op.drop_table("categories")
