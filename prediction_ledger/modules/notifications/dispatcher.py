"""Fire-and-forget notifications raised after ledger commits."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Union

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BalanceChanged:
    account_id: str
    transaction_id: str
    transaction_type: str
    amount: Decimal
    balance: Decimal
    occurred_at: datetime


@dataclass(slots=True, frozen=True)
class PurchaseCompleted:
    account_id: str
    purchase_id: str
    item_id: str
    amount: Decimal
    payment_method: str
    occurred_at: datetime
    transaction_ref: Optional[str] = None


@dataclass(slots=True, frozen=True)
class PurchaseRefunded:
    account_id: str
    purchase_id: str
    item_id: str
    amount: Decimal
    occurred_at: datetime
    reason: Optional[str] = field(default=None)


LedgerEvent = Union[BalanceChanged, PurchaseCompleted, PurchaseRefunded]


class NotificationDispatcher(Protocol):
    async def notify(self, event: LedgerEvent) -> None:
        ...


class LoggingNotificationDispatcher:
    """Default dispatcher: records events in the application log."""

    async def notify(self, event: LedgerEvent) -> None:
        logger.info("Ledger event %s: %s", type(event).__name__, event)


async def dispatch_safely(dispatcher: NotificationDispatcher | None, event: LedgerEvent) -> None:
    """Deliver ``event``; delivery failures are logged and never reach the ledger."""
    if dispatcher is None:
        return
    try:
        await dispatcher.notify(event)
    except Exception:
        logger.exception("Notification dispatch failed for %s", type(event).__name__)


__all__ = [
    "BalanceChanged",
    "PurchaseCompleted",
    "PurchaseRefunded",
    "LedgerEvent",
    "NotificationDispatcher",
    "LoggingNotificationDispatcher",
    "dispatch_safely",
]
