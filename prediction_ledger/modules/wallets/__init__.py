"""Wallet ledger domain: transaction types, metadata schemas and the service."""

from .exceptions import (
    AccountNotFoundError,
    AlreadyPurchasedError,
    ConcurrencyConflictError,
    InsufficientBalanceError,
    InvalidTransactionError,
    LedgerError,
    LedgerIntegrityError,
    StoreUnavailableError,
    TransientLedgerError,
)
from .models import (
    BonusMetadata,
    CreditMetadata,
    DebitMetadata,
    PaymentMetadata,
    RefundMetadata,
    Transaction,
    TransactionPage,
    TransactionStatus,
    TransactionType,
    WalletSnapshot,
    WalletStats,
    WithdrawalMetadata,
)
from .service import WalletService

__all__ = [
    "AccountNotFoundError",
    "AlreadyPurchasedError",
    "ConcurrencyConflictError",
    "InsufficientBalanceError",
    "InvalidTransactionError",
    "LedgerError",
    "LedgerIntegrityError",
    "StoreUnavailableError",
    "TransientLedgerError",
    "BonusMetadata",
    "CreditMetadata",
    "DebitMetadata",
    "PaymentMetadata",
    "RefundMetadata",
    "Transaction",
    "TransactionPage",
    "TransactionStatus",
    "TransactionType",
    "WalletSnapshot",
    "WalletStats",
    "WithdrawalMetadata",
    "WalletService",
]
