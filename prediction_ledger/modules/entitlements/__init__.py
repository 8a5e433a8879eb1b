"""Entitlement engine: trial access, ledger purchases and gateway settlement."""

from .exceptions import PurchaseNotFoundError
from .guard import PurchaseGuard
from .models import (
    AccessResult,
    AlreadyPurchased,
    FreeAccess,
    InsufficientBalance,
    ItemUnavailable,
    Owned,
    PaymentDeclined,
    PaymentIntent,
    PaymentMethod,
    PaymentRequired,
    PaymentStatus,
    PurchasePage,
    PurchaseRecord,
    Purchased,
    RedundantDuringTrial,
    RefundResult,
    SettlementResult,
    TrialExhaustedToday,
)
from .service import EntitlementService

__all__ = [
    "AccessResult",
    "AlreadyPurchased",
    "EntitlementService",
    "FreeAccess",
    "InsufficientBalance",
    "ItemUnavailable",
    "Owned",
    "PaymentDeclined",
    "PaymentIntent",
    "PaymentMethod",
    "PaymentRequired",
    "PaymentStatus",
    "PurchaseGuard",
    "PurchaseNotFoundError",
    "PurchasePage",
    "PurchaseRecord",
    "Purchased",
    "RedundantDuringTrial",
    "RefundResult",
    "SettlementResult",
    "TrialExhaustedToday",
]
