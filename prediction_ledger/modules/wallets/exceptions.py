"""Wallet ledger domain errors."""

from __future__ import annotations

from decimal import Decimal


class LedgerError(Exception):
    """Base class for wallet ledger errors."""


class AccountNotFoundError(LedgerError):
    """Raised when no ledger account exists for the given id."""

    def __init__(self, account_id: str) -> None:
        super().__init__(f"account not found: {account_id}")
        self.account_id = account_id


class InvalidTransactionError(LedgerError, ValueError):
    """Raised for a non-positive amount, unknown type, or disallowed status."""


class InsufficientBalanceError(LedgerError):
    """Raised when an outflow would take the balance below zero."""

    def __init__(self, account_id: str, *, required: Decimal, available: Decimal) -> None:
        super().__init__(f"insufficient balance on {account_id}: required {required}, available {available}")
        self.account_id = account_id
        self.required = required
        self.available = available


class AlreadyPurchasedError(LedgerError):
    """Raised when a second completed purchase of the same item is attempted."""

    def __init__(self, account_id: str, item_id: str | None = None) -> None:
        super().__init__(f"item {item_id or '?'} already purchased by {account_id}")
        self.account_id = account_id
        self.item_id = item_id


class LedgerIntegrityError(LedgerError):
    """Raised when the stored balance disagrees with the transaction log."""


class TransientLedgerError(LedgerError):
    """A failure that left nothing committed; the operation may be re-issued."""

    retryable = True


class ConcurrencyConflictError(TransientLedgerError):
    """Another writer committed to the account between our read and our write."""


class StoreUnavailableError(TransientLedgerError):
    """The ledger store could not be reached or was busy."""


__all__ = [
    "LedgerError",
    "AccountNotFoundError",
    "InvalidTransactionError",
    "InsufficientBalanceError",
    "AlreadyPurchasedError",
    "LedgerIntegrityError",
    "TransientLedgerError",
    "ConcurrencyConflictError",
    "StoreUnavailableError",
]
