"""Domain models for wallet ledger operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from prediction_ledger.modules.trial.policy import TrialStatus

from .exceptions import InvalidTransactionError


class TransactionType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"
    REFUND = "refund"
    PAYMENT = "payment"
    BONUS = "bonus"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


INFLOW_TYPES = frozenset({TransactionType.CREDIT, TransactionType.REFUND, TransactionType.BONUS})
OUTFLOW_TYPES = frozenset({TransactionType.DEBIT, TransactionType.WITHDRAWAL, TransactionType.PAYMENT})

# Types whose initial status the caller may pick; everything else is completed on append.
_INITIAL_STATUSES = {
    TransactionType.PAYMENT: frozenset({TransactionStatus.PENDING, TransactionStatus.COMPLETED}),
    TransactionType.WITHDRAWAL: frozenset({TransactionStatus.PENDING, TransactionStatus.COMPLETED}),
}
_DEFAULT_STATUS = {
    TransactionType.WITHDRAWAL: TransactionStatus.PENDING,
}


def resolve_initial_status(tx_type: TransactionType, status: str | TransactionStatus | None) -> TransactionStatus:
    if status is None:
        return _DEFAULT_STATUS.get(tx_type, TransactionStatus.COMPLETED)
    try:
        resolved = TransactionStatus(status)
    except ValueError as exc:
        raise InvalidTransactionError(f"unknown transaction status: {status!r}") from exc
    allowed = _INITIAL_STATUSES.get(tx_type, frozenset({TransactionStatus.COMPLETED}))
    if resolved not in allowed:
        raise InvalidTransactionError(f"{tx_type.value} transactions cannot start as {resolved.value}")
    return resolved


def signed_cents(tx_type: TransactionType, amount_cents: int) -> int:
    return amount_cents if tx_type in INFLOW_TYPES else -amount_cents


# ==================== METADATA ====================

class _Metadata(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class CreditMetadata(_Metadata):
    source: str = "deposit"
    external_reference: Optional[str] = None


class DebitMetadata(_Metadata):
    reason: Optional[str] = None


class RefundMetadata(_Metadata):
    purchase_id: Optional[str] = None
    item_id: Optional[str] = None
    original_reference: Optional[str] = None
    reason: Optional[str] = None


class PaymentMetadata(_Metadata):
    item_id: str
    category: Optional[str] = None
    purchase_id: Optional[str] = None


class BonusMetadata(_Metadata):
    campaign: Optional[str] = None
    granted_by: Optional[str] = None


class WithdrawalMetadata(_Metadata):
    destination: Optional[str] = None


TransactionMetadata = Union[
    CreditMetadata,
    DebitMetadata,
    RefundMetadata,
    PaymentMetadata,
    BonusMetadata,
    WithdrawalMetadata,
]

METADATA_SCHEMAS: dict[TransactionType, type[_Metadata]] = {
    TransactionType.CREDIT: CreditMetadata,
    TransactionType.DEBIT: DebitMetadata,
    TransactionType.REFUND: RefundMetadata,
    TransactionType.PAYMENT: PaymentMetadata,
    TransactionType.BONUS: BonusMetadata,
    TransactionType.WITHDRAWAL: WithdrawalMetadata,
}


def validate_metadata(
    tx_type: TransactionType,
    metadata: TransactionMetadata | Mapping[str, Any] | None,
) -> TransactionMetadata:
    """Check metadata against the closed schema for ``tx_type``."""
    schema = METADATA_SCHEMAS[tx_type]
    if isinstance(metadata, BaseModel):
        if not isinstance(metadata, schema):
            raise InvalidTransactionError(
                f"{type(metadata).__name__} is not valid metadata for {tx_type.value} transactions"
            )
        return metadata
    try:
        return schema.model_validate(dict(metadata or {}))
    except ValidationError as exc:
        raise InvalidTransactionError(f"invalid {tx_type.value} metadata: {exc}") from exc


def load_metadata(tx_type: TransactionType, raw: str | None) -> TransactionMetadata:
    return METADATA_SCHEMAS[tx_type].model_validate_json(raw or "{}")


# ==================== RECORDS ====================

@dataclass(slots=True)
class Transaction:
    id: str
    account_id: str
    sequence: int
    type: TransactionType
    amount: Decimal
    status: TransactionStatus
    description: str
    reference: Optional[str]
    metadata: TransactionMetadata
    created_at: datetime


@dataclass(slots=True)
class WalletSnapshot:
    account_id: str
    balance: Decimal
    currency: str
    total_credited: Decimal
    total_debited: Decimal
    transaction_count: int
    last_transaction_at: Optional[datetime]
    trial: Optional[TrialStatus] = None


@dataclass(slots=True)
class TransactionPage:
    transactions: list[Transaction]
    total: int
    limit: int
    offset: int

    @property
    def has_next(self) -> bool:
        return self.offset + self.limit < self.total


@dataclass(slots=True)
class FlowSummary:
    last_7_days: Decimal = Decimal("0.00")
    last_30_days: Decimal = Decimal("0.00")
    this_month: Decimal = Decimal("0.00")
    recent: list[Transaction] = field(default_factory=list)


@dataclass(slots=True)
class WalletStats:
    current_balance: Decimal
    total_credited: Decimal
    total_debited: Decimal
    transaction_count: int
    last_transaction_at: Optional[datetime]
    transactions_this_month: int
    transactions_last_month: int
    deposits: FlowSummary
    spending: FlowSummary
