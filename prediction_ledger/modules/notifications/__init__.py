"""Notification boundary exports."""

from .dispatcher import (
    BalanceChanged,
    LedgerEvent,
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    PurchaseCompleted,
    PurchaseRefunded,
    dispatch_safely,
)

__all__ = [
    "BalanceChanged",
    "LedgerEvent",
    "LoggingNotificationDispatcher",
    "NotificationDispatcher",
    "PurchaseCompleted",
    "PurchaseRefunded",
    "dispatch_safely",
]
