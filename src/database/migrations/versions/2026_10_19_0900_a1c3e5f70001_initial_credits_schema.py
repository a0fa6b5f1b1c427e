"""Initial credits schema: accounts, ledger, catalog, promotions, payments

Revision ID: a1c3e5f70001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "a1c3e5f70001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.UUID(), nullable=False, comment="Identity provider ID"),
        sa.Column("email", sa.String(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "account_balances",
        sa.Column("account_id", sa.UUID(), nullable=False),
        sa.Column("total", sa.Integer(), nullable=False),
        _timestamp("last_updated"),
        sa.CheckConstraint("total >= 0", name="ck_account_balances_total_non_negative"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("account_id"),
    )

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("account_id", sa.UUID(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("event_kind", sa.String(), nullable=False),
        sa.Column("story_id", sa.String(), nullable=True),
        sa.Column("purchase_id", sa.UUID(), nullable=True),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_ledger_entries_account_created",
        "ledger_entries",
        ["account_id", "created_at"],
    )
    op.create_index(
        op.f("ix_ledger_entries_purchase_id"), "ledger_entries", ["purchase_id"]
    )

    op.create_table(
        "pricing",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("service_code", sa.String(), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("credits >= 0", name="ck_pricing_credits_non_negative"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("service_code"),
    )

    op.create_table(
        "credit_packages",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("popular", sa.Boolean(), nullable=False),
        sa.Column("best_value", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("credits > 0", name="ck_credit_packages_credits_positive"),
        sa.CheckConstraint("price > 0", name="ck_credit_packages_price_positive"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key"),
    )

    op.create_table(
        "promotion_codes",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _timestamp("valid_from"),
        _timestamp("valid_until"),
        sa.Column("max_redemptions_per_user", sa.Integer(), nullable=True),
        sa.Column("max_total_redemptions", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "promotion_redemptions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("promotion_code_id", sa.UUID(), nullable=False),
        sa.Column("account_id", sa.UUID(), nullable=False),
        sa.Column("credits_granted", sa.Integer(), nullable=False),
        sa.Column("ledger_entry_id", sa.UUID(), nullable=False),
        _timestamp("redeemed_at"),
        sa.ForeignKeyConstraint(
            ["promotion_code_id"], ["promotion_codes.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["ledger_entry_id"], ["ledger_entries.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_promotion_redemptions_promotion_code_id"),
        "promotion_redemptions",
        ["promotion_code_id"],
    )
    op.create_index(
        op.f("ix_promotion_redemptions_account_id"),
        "promotion_redemptions",
        ["account_id"],
    )

    op.create_table(
        "ai_edits",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("account_id", sa.UUID(), nullable=False),
        sa.Column("story_id", sa.String(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        _timestamp("requested_at"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_ai_edits_account_action", "ai_edits", ["account_id", "action"]
    )

    op.create_table(
        "payment_orders",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("account_id", sa.UUID(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("provider", sa.String(), nullable=False),
        sa.Column("provider_order_id", sa.String(), nullable=False),
        sa.Column("provider_public_id", sa.String(), nullable=False),
        sa.Column("credit_bundle", postgresql.JSONB(), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("provider_order_id"),
        sa.UniqueConstraint("provider_public_id"),
    )
    op.create_index(
        op.f("ix_payment_orders_account_id"), "payment_orders", ["account_id"]
    )

    op.create_table(
        "payment_events",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("order_id", sa.UUID(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("data", postgresql.JSONB(), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(
            ["order_id"], ["payment_orders.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_payment_events_order_id"), "payment_events", ["order_id"]
    )

    op.create_table(
        "payment_methods",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("account_id", sa.UUID(), nullable=False),
        sa.Column("provider", sa.String(), nullable=False),
        sa.Column("provider_ref", sa.String(), nullable=True),
        sa.Column("brand", sa.String(), nullable=True),
        sa.Column("last4", sa.String(length=4), nullable=False),
        sa.Column("exp_month", sa.Integer(), nullable=True),
        sa.Column("exp_year", sa.Integer(), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "account_id", "provider", "last4", name="uq_payment_methods_account_card"
        ),
    )


def downgrade() -> None:
    op.drop_table("payment_methods")
    op.drop_index(op.f("ix_payment_events_order_id"), table_name="payment_events")
    op.drop_table("payment_events")
    op.drop_index(op.f("ix_payment_orders_account_id"), table_name="payment_orders")
    op.drop_table("payment_orders")
    op.drop_index("ix_ai_edits_account_action", table_name="ai_edits")
    op.drop_table("ai_edits")
    op.drop_index(
        op.f("ix_promotion_redemptions_account_id"),
        table_name="promotion_redemptions",
    )
    op.drop_index(
        op.f("ix_promotion_redemptions_promotion_code_id"),
        table_name="promotion_redemptions",
    )
    op.drop_table("promotion_redemptions")
    op.drop_table("promotion_codes")
    op.drop_table("credit_packages")
    op.drop_table("pricing")
    op.drop_index(op.f("ix_ledger_entries_purchase_id"), table_name="ledger_entries")
    op.drop_index("ix_ledger_entries_account_created", table_name="ledger_entries")
    op.drop_table("ledger_entries")
    op.drop_table("account_balances")
    op.drop_table("accounts")
