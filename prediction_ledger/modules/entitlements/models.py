"""Purchase records and typed access results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from prediction_ledger.modules.wallets.models import Transaction


class PaymentMethod(str, Enum):
    LEDGER = "ledger"
    EXTERNAL_GATEWAY = "external_gateway"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass(slots=True)
class PurchaseRecord:
    id: str
    account_id: str
    item_id: str
    amount: Decimal
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_ref: Optional[str]
    view_count: int
    last_viewed_at: Optional[datetime]
    created_at: datetime
    refund_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None


@dataclass(slots=True)
class PurchasePage:
    purchases: list[PurchaseRecord]
    total: int
    limit: int
    offset: int


# ==================== ACCESS RESULTS ====================
# Every outcome of an access request is a value, including the rejections,
# so callers can branch on the type instead of parsing messages.

@dataclass(slots=True, frozen=True)
class Owned:
    purchase: PurchaseRecord
    kind: str = "owned"


@dataclass(slots=True, frozen=True)
class FreeAccess:
    item_id: str
    access_date: date
    kind: str = "free_access"


@dataclass(slots=True, frozen=True)
class TrialExhaustedToday:
    item_id: str
    next_free_access_date: Optional[date] = None
    kind: str = "trial_exhausted_today"


@dataclass(slots=True, frozen=True)
class RedundantDuringTrial:
    item_id: str
    kind: str = "redundant_during_trial"


@dataclass(slots=True, frozen=True)
class PaymentRequired:
    item_id: str
    amount: Decimal
    kind: str = "payment_required"


@dataclass(slots=True, frozen=True)
class InsufficientBalance:
    item_id: str
    required: Decimal
    available: Decimal
    kind: str = "insufficient_balance"


@dataclass(slots=True, frozen=True)
class AlreadyPurchased:
    item_id: str
    kind: str = "already_purchased"


@dataclass(slots=True, frozen=True)
class ItemUnavailable:
    item_id: str
    kind: str = "item_unavailable"


@dataclass(slots=True, frozen=True)
class Purchased:
    purchase: PurchaseRecord
    transaction: Optional[Transaction] = None
    kind: str = "purchased"


@dataclass(slots=True, frozen=True)
class PaymentIntent:
    """Hand-off to the external gateway; settlement arrives via the callback."""

    purchase_id: str
    item_id: str
    amount: Decimal
    kind: str = "payment_intent"


@dataclass(slots=True, frozen=True)
class PaymentDeclined:
    purchase: PurchaseRecord
    kind: str = "payment_declined"


AccessResult = Union[
    Owned,
    FreeAccess,
    TrialExhaustedToday,
    RedundantDuringTrial,
    PaymentRequired,
    InsufficientBalance,
    AlreadyPurchased,
    ItemUnavailable,
    Purchased,
    PaymentIntent,
]

SettlementResult = Union[Purchased, AlreadyPurchased, PaymentDeclined]


@dataclass(slots=True, frozen=True)
class RefundResult:
    purchase: PurchaseRecord
    transaction: Optional[Transaction] = None
