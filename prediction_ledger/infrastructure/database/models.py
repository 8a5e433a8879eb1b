"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from prediction_ledger.infrastructure.database.base import Base, UTCDateTime, utcnow


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("balance_cents >= 0", name="ck_accounts_balance_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone = Column(String(30))
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    notifications_enabled = Column(Boolean, nullable=False, default=True)

    balance_cents = Column(Integer, nullable=False, default=0)
    total_credited_cents = Column(Integer, nullable=False, default=0)
    total_debited_cents = Column(Integer, nullable=False, default=0)
    transaction_count = Column(Integer, nullable=False, default=0)
    last_transaction_at = Column(UTCDateTime())

    trial_start_at = Column(UTCDateTime(), nullable=False)
    trial_end_at = Column(UTCDateTime(), nullable=False)
    selected_category = Column(String(20), nullable=False)
    trial_consumed = Column(Boolean, nullable=False, default=False)
    last_trial_access_date = Column(Date)

    version = Column(Integer, nullable=False)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), onupdate=utcnow)
    last_login_at = Column(UTCDateTime())

    transactions = relationship(
        "WalletTransaction",
        back_populates="account",
        order_by="WalletTransaction.sequence",
        lazy="raise",
    )

    # Every UPDATE is a compare-and-set on ``version``.
    __mapper_args__ = {"version_id_col": version}


class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"
    __table_args__ = (
        UniqueConstraint("account_id", "sequence", name="uq_wallet_transactions_account_sequence"),
        CheckConstraint("amount_cents > 0", name="ck_wallet_transactions_amount_positive"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    type = Column(String(20), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="completed")
    description = Column(String(255), nullable=False)
    reference = Column(String(100))
    meta = Column(Text, nullable=False, default="{}")
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    account = relationship("Account", back_populates="transactions")


class PurchaseRecord(Base):
    __tablename__ = "purchase_records"
    __table_args__ = (
        # At most one completed purchase per (account, item).
        Index(
            "uq_purchase_records_completed",
            "account_id",
            "item_id",
            unique=True,
            sqlite_where=text("payment_status = 'completed'"),
            postgresql_where=text("payment_status = 'completed'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    item_id = Column(String(36), nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default="pending")
    transaction_ref = Column(String(100), unique=True)
    view_count = Column(Integer, nullable=False, default=0)
    last_viewed_at = Column(UTCDateTime())
    refund_reason = Column(String(255))
    refunded_at = Column(UTCDateTime())
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), onupdate=utcnow)

    account = relationship("Account")


class Prediction(Base):
    """Catalog item. Managed elsewhere; this service only reads it and bumps counters."""

    __tablename__ = "predictions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    category = Column(String(20), nullable=False, index=True)
    price_cents = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    draw_date = Column(Date)
    draw_time = Column(String(20))
    notes = Column(String(500))
    purchase_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
