"""initial ledger schema: accounts, wallet transactions, purchases, predictions

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-10-16 09:30:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5c1e9a7d2b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("phone", sa.String(length=30)),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notifications_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("balance_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_credited_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_debited_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("transaction_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_transaction_at", sa.DateTime(timezone=True)),
        sa.Column("trial_start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("trial_end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("selected_category", sa.String(length=20), nullable=False),
        sa.Column("trial_consumed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_trial_access_date", sa.Date()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("balance_cents >= 0", name="ck_accounts_balance_non_negative"),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)

    op.create_table(
        "wallet_transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("account_id", sa.String(length=36), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="completed"),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("reference", sa.String(length=100)),
        sa.Column("meta", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("account_id", "sequence", name="uq_wallet_transactions_account_sequence"),
        sa.CheckConstraint("amount_cents > 0", name="ck_wallet_transactions_amount_positive"),
    )
    op.create_index("ix_wallet_transactions_account_id", "wallet_transactions", ["account_id"])

    op.create_table(
        "purchase_records",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("account_id", sa.String(length=36), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("item_id", sa.String(length=36), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("transaction_ref", sa.String(length=100), unique=True),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_viewed_at", sa.DateTime(timezone=True)),
        sa.Column("refund_reason", sa.String(length=255)),
        sa.Column("refunded_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_purchase_records_account_id", "purchase_records", ["account_id"])
    op.create_index("ix_purchase_records_item_id", "purchase_records", ["item_id"])
    op.create_index(
        "uq_purchase_records_completed",
        "purchase_records",
        ["account_id", "item_id"],
        unique=True,
        sqlite_where=sa.text("payment_status = 'completed'"),
        postgresql_where=sa.text("payment_status = 'completed'"),
    )

    op.create_table(
        "predictions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("draw_date", sa.Date()),
        sa.Column("draw_time", sa.String(length=20)),
        sa.Column("notes", sa.String(length=500)),
        sa.Column("purchase_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_predictions_category", "predictions", ["category"])


def downgrade() -> None:
    op.drop_index("ix_predictions_category", table_name="predictions")
    op.drop_table("predictions")

    op.drop_index("uq_purchase_records_completed", table_name="purchase_records")
    op.drop_index("ix_purchase_records_item_id", table_name="purchase_records")
    op.drop_index("ix_purchase_records_account_id", table_name="purchase_records")
    op.drop_table("purchase_records")

    op.drop_index("ix_wallet_transactions_account_id", table_name="wallet_transactions")
    op.drop_table("wallet_transactions")

    op.drop_index("ix_accounts_email", table_name="accounts")
    op.drop_table("accounts")
