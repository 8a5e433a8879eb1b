"""Wallet domain service: every balance change is one appended transaction."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Mapping

from prediction_ledger.infrastructure.database.models import Account as AccountModel
from prediction_ledger.infrastructure.database.models import WalletTransaction as WalletTransactionModel
from prediction_ledger.modules.notifications import BalanceChanged, NotificationDispatcher, dispatch_safely
from prediction_ledger.modules.trial.policy import trial_status
from prediction_ledger.utils.money import from_cents, to_cents

from .exceptions import AccountNotFoundError, InsufficientBalanceError, InvalidTransactionError
from .models import (
    INFLOW_TYPES,
    OUTFLOW_TYPES,
    BonusMetadata,
    CreditMetadata,
    FlowSummary,
    PaymentMetadata,
    Transaction,
    TransactionMetadata,
    TransactionPage,
    TransactionStatus,
    TransactionType,
    WalletSnapshot,
    WalletStats,
    WithdrawalMetadata,
    load_metadata,
    resolve_initial_status,
    signed_cents,
    validate_metadata,
)

if TYPE_CHECKING:
    from prediction_ledger.infrastructure.database.ledger_store import AccountUnit, LedgerStore
    from prediction_ledger.modules.trial.service import TrialService

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5
MAX_PAGE_SIZE = 100


class WalletService:
    def __init__(
        self,
        store: "LedgerStore",
        *,
        notifier: NotificationDispatcher | None = None,
        trial: "TrialService | None" = None,
        currency: str = "USD",
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._trial = trial
        self._currency = currency

    # ==================== MUTATIONS ====================

    async def apply_transaction(
        self,
        account_id: str,
        type: TransactionType | str,
        amount: Any,
        description: str,
        reference: str | None = None,
        metadata: TransactionMetadata | Mapping[str, Any] | None = None,
        status: TransactionStatus | str | None = None,
        *,
        now: datetime | None = None,
    ) -> Transaction:
        """Append one transaction and move the balance, retrying transient conflicts.

        Raises ``InvalidTransactionError`` before touching the store when the
        type, amount, status or metadata is malformed, and
        ``InsufficientBalanceError`` when an outflow would overdraw the account.
        """
        prepared = _prepare(type, amount, status, metadata)

        async def work(unit: "AccountUnit") -> Transaction:
            return await self._append(unit, *prepared, description=description, reference=reference, now=now)

        return await self._store.run(account_id, work)

    async def apply_in_unit(
        self,
        unit: "AccountUnit",
        type: TransactionType | str,
        amount: Any,
        description: str,
        reference: str | None = None,
        metadata: TransactionMetadata | Mapping[str, Any] | None = None,
        status: TransactionStatus | str | None = None,
        *,
        now: datetime | None = None,
    ) -> Transaction:
        """Same as :meth:`apply_transaction` inside a unit the caller already holds."""
        prepared = _prepare(type, amount, status, metadata)
        return await self._append(unit, *prepared, description=description, reference=reference, now=now)

    async def deposit(
        self,
        account_id: str,
        amount: Any,
        *,
        source: str = "deposit",
        external_reference: str | None = None,
        description: str | None = None,
    ) -> Transaction:
        return await self.apply_transaction(
            account_id,
            TransactionType.CREDIT,
            amount,
            description or "Wallet deposit",
            reference=external_reference,
            metadata=CreditMetadata(source=source, external_reference=external_reference),
        )

    async def withdraw(
        self,
        account_id: str,
        amount: Any,
        *,
        destination: str | None = None,
        description: str | None = None,
    ) -> Transaction:
        # Pending until settled out of band; the balance moves now.
        return await self.apply_transaction(
            account_id,
            TransactionType.WITHDRAWAL,
            amount,
            description or "Wallet withdrawal",
            metadata=WithdrawalMetadata(destination=destination),
        )

    async def pay(
        self,
        account_id: str,
        amount: Any,
        *,
        item_id: str,
        category: str | None = None,
        description: str | None = None,
    ) -> Transaction:
        return await self.apply_transaction(
            account_id,
            TransactionType.PAYMENT,
            amount,
            description or f"Payment for item {item_id}",
            reference=f"item:{item_id}",
            metadata=PaymentMetadata(item_id=item_id, category=category),
        )

    async def grant_bonus(
        self,
        account_id: str,
        amount: Any,
        *,
        campaign: str | None = None,
        granted_by: str | None = None,
        description: str | None = None,
    ) -> Transaction:
        return await self.apply_transaction(
            account_id,
            TransactionType.BONUS,
            amount,
            description or "Bonus credit",
            metadata=BonusMetadata(campaign=campaign, granted_by=granted_by),
        )

    # ==================== QUERIES ====================

    async def get_snapshot(self, account_id: str, now: datetime | None = None) -> WalletSnapshot:
        now = now or datetime.now(timezone.utc)
        if self._trial is not None:
            await self._trial.observe(account_id, now)
        async with self._store.reader() as reader:
            account = await reader.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        trial_tz = self._trial.timezone if self._trial is not None else None
        return WalletSnapshot(
            account_id=account.id,
            balance=from_cents(account.balance_cents),
            currency=self._currency,
            total_credited=from_cents(account.total_credited_cents),
            total_debited=from_cents(account.total_debited_cents),
            transaction_count=account.transaction_count,
            last_transaction_at=account.last_transaction_at,
            trial=trial_status(account, now, trial_tz),
        )

    async def list_transactions(
        self,
        account_id: str,
        limit: int = 20,
        offset: int = 0,
        *,
        type: str | None = None,
        status: str | None = None,
    ) -> TransactionPage:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        async with self._store.reader() as reader:
            rows = await reader.transactions.list_transactions(account_id, limit, offset, type=type, status=status)
            total = await reader.transactions.count_transactions(account_id, type=type, status=status)
        return TransactionPage(
            transactions=[to_transaction(row) for row in rows],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def get_stats(self, account_id: str, now: datetime | None = None) -> WalletStats:
        now = now or datetime.now(timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        last_month_start = (month_start - timedelta(days=1)).replace(day=1)
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)

        async with self._store.reader() as reader:
            account = await reader.get_account(account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            rows = await reader.transactions.list_since(account_id, min(last_month_start, month_ago))
        transactions = [to_transaction(row) for row in rows]

        deposits, spending = FlowSummary(), FlowSummary()
        this_month_count = last_month_count = 0
        for tx in transactions:
            if tx.created_at >= month_start:
                this_month_count += 1
            elif tx.created_at >= last_month_start:
                last_month_count += 1
            summary = deposits if tx.type in INFLOW_TYPES else spending
            if tx.created_at >= week_ago:
                summary.last_7_days += tx.amount
            if tx.created_at >= month_ago:
                summary.last_30_days += tx.amount
            if tx.created_at >= month_start:
                summary.this_month += tx.amount

        deposits.recent = [tx for tx in transactions if tx.type in INFLOW_TYPES][:RECENT_LIMIT]
        spending.recent = [tx for tx in transactions if tx.type in OUTFLOW_TYPES][:RECENT_LIMIT]

        return WalletStats(
            current_balance=from_cents(account.balance_cents),
            total_credited=from_cents(account.total_credited_cents),
            total_debited=from_cents(account.total_debited_cents),
            transaction_count=account.transaction_count,
            last_transaction_at=account.last_transaction_at,
            transactions_this_month=this_month_count,
            transactions_last_month=last_month_count,
            deposits=deposits,
            spending=spending,
        )

    async def verify_integrity(self, account_id: str) -> bool:
        """Recompute the balance from the log and compare it with the stored one."""
        async with self._store.reader() as reader:
            account = await reader.get_account(account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            derived = await reader.transactions.signed_total(account_id)
        if derived != account.balance_cents:
            logger.error(
                "Ledger mismatch on account %s: stored %s, log %s", account_id, account.balance_cents, derived
            )
            return False
        return True

    # ==================== INTERNALS ====================

    async def _append(
        self,
        unit: "AccountUnit",
        tx_type: TransactionType,
        amount_cents: int,
        status: TransactionStatus,
        metadata: TransactionMetadata,
        *,
        description: str,
        reference: str | None,
        now: datetime | None,
    ) -> Transaction:
        account: AccountModel = unit.account
        now = now or datetime.now(timezone.utc)
        delta = signed_cents(tx_type, amount_cents)
        if account.balance_cents + delta < 0:
            raise InsufficientBalanceError(
                account.id,
                required=from_cents(amount_cents),
                available=from_cents(account.balance_cents),
            )

        sequence = account.transaction_count + 1
        row = await unit.transactions.append(
            account_id=account.id,
            sequence=sequence,
            type=tx_type.value,
            amount_cents=amount_cents,
            status=status.value,
            description=description,
            reference=reference,
            meta=metadata.model_dump_json(exclude_none=True),
            created_at=now,
        )

        account.balance_cents += delta
        if tx_type in INFLOW_TYPES:
            account.total_credited_cents += amount_cents
        else:
            account.total_debited_cents += amount_cents
        account.transaction_count = sequence
        account.last_transaction_at = now
        unit.mark_ledger_changed()

        transaction = to_transaction(row)
        logger.info(
            "Appended %s #%s of %s to account %s (balance %s)",
            tx_type.value,
            sequence,
            transaction.amount,
            account.id,
            from_cents(account.balance_cents),
        )
        if self._notifier is not None:
            event = BalanceChanged(
                account_id=account.id,
                transaction_id=transaction.id,
                transaction_type=tx_type.value,
                amount=transaction.amount,
                balance=from_cents(account.balance_cents),
                occurred_at=now,
            )
            unit.after_commit(lambda: dispatch_safely(self._notifier, event))
        return transaction


def _prepare(
    type: TransactionType | str,
    amount: Any,
    status: TransactionStatus | str | None,
    metadata: TransactionMetadata | Mapping[str, Any] | None,
) -> tuple[TransactionType, int, TransactionStatus, TransactionMetadata]:
    try:
        tx_type = TransactionType(type)
    except ValueError as exc:
        raise InvalidTransactionError(f"unknown transaction type: {type!r}") from exc
    try:
        amount_cents = to_cents(amount)
    except ValueError as exc:
        raise InvalidTransactionError(str(exc)) from exc
    if amount_cents <= 0:
        raise InvalidTransactionError("transaction amount must be positive")
    return tx_type, amount_cents, resolve_initial_status(tx_type, status), validate_metadata(tx_type, metadata)


def to_transaction(model: WalletTransactionModel) -> Transaction:
    tx_type = TransactionType(model.type)
    return Transaction(
        id=model.id,
        account_id=model.account_id,
        sequence=model.sequence,
        type=tx_type,
        amount=from_cents(model.amount_cents),
        status=TransactionStatus(model.status),
        description=model.description,
        reference=model.reference,
        metadata=load_metadata(tx_type, model.meta),
        created_at=model.created_at,
    )


__all__ = ["WalletService", "to_transaction"]
