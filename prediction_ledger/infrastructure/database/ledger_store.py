"""Atomic per-account units over the accounts and wallet transaction tables.

Every write to an account's ledger goes through :meth:`LedgerStore.unit`:

* writers for the same account are serialized by an in-process lock;
* the account row is loaded ``FOR UPDATE`` where the dialect supports it, and
  every UPDATE is a compare-and-set on ``accounts.version``;
* before commit the stored balance is checked against the transaction log.

Post-commit side effects (notifications, catalog counters) are registered
with :meth:`AccountUnit.after_commit` and run only once the commit succeeded.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from prediction_ledger.core.config import Settings
from prediction_ledger.infrastructure.database.models import Account
from prediction_ledger.infrastructure.database.repositories.purchase_repository import (
    SqlPurchaseRepository,
    is_completed_purchase_violation,
)
from prediction_ledger.infrastructure.database.repositories.transaction_repository import SqlTransactionRepository
from prediction_ledger.modules.entitlements.repository import PurchaseRepository
from prediction_ledger.modules.wallets.exceptions import (
    AccountNotFoundError,
    AlreadyPurchasedError,
    ConcurrencyConflictError,
    LedgerIntegrityError,
    StoreUnavailableError,
    TransientLedgerError,
)
from prediction_ledger.modules.wallets.repository import TransactionRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")
Callback = Callable[[], Awaitable[Any]]


class LedgerReader:
    """Unlocked, read-only view of the ledger tables."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.transactions: TransactionRepository = SqlTransactionRepository(session)
        self.purchases: PurchaseRepository = SqlPurchaseRepository(session)

    async def get_account(self, account_id: str) -> Account | None:
        result = await self.session.execute(select(Account).where(Account.id == account_id))
        return result.scalars().first()


class AccountUnit(LedgerReader):
    """One atomic read-modify-write over a single account."""

    def __init__(self, session: AsyncSession, account: Account) -> None:
        super().__init__(session)
        self.account = account
        self.ledger_changed = False
        self._callbacks: list[Callback] = []

    @property
    def account_id(self) -> str:
        return self.account.id

    def mark_ledger_changed(self) -> None:
        self.ledger_changed = True

    def after_commit(self, callback: Callback) -> None:
        self._callbacks.append(callback)

    async def _run_callbacks(self) -> None:
        for callback in self._callbacks:
            try:
                await callback()
            except Exception:  # the commit stands regardless
                logger.exception("Post-commit callback failed for account %s", self.account_id)


class LedgerStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        max_retries: int = 3,
        backoff_seconds: float = 0.05,
        verify_integrity: bool = True,
    ) -> None:
        self.session_factory = session_factory
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.verify_integrity = verify_integrity
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @classmethod
    def from_settings(cls, session_factory: async_sessionmaker[AsyncSession], settings: Settings) -> "LedgerStore":
        return cls(
            session_factory,
            max_retries=settings.ledger.max_retries,
            backoff_seconds=settings.ledger.retry_backoff_seconds,
            verify_integrity=settings.ledger.verify_integrity_on_commit,
        )

    def _lock_for(self, account_id: str) -> asyncio.Lock:
        lock = self._locks.get(account_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[account_id] = lock
        return lock

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[LedgerReader]:
        async with self.session_factory() as session:
            try:
                yield LedgerReader(session)
            except (OperationalError, InterfaceError) as exc:
                raise StoreUnavailableError(str(exc)) from exc

    @asynccontextmanager
    async def unit(self, account_id: str) -> AsyncIterator[AccountUnit]:
        lock = self._lock_for(account_id)
        async with lock:
            async with self.session_factory() as session:
                try:
                    account = await self._load_for_update(session, account_id)
                    unit = AccountUnit(session, account)
                    yield unit
                    await session.flush()
                    if unit.ledger_changed and self.verify_integrity:
                        await self._verify(unit)
                    await session.commit()
                except StaleDataError as exc:
                    await session.rollback()
                    logger.info("Version conflict on account %s", account_id)
                    raise ConcurrencyConflictError(f"account {account_id} was modified concurrently") from exc
                except IntegrityError as exc:
                    await session.rollback()
                    if is_completed_purchase_violation(exc):
                        logger.info("Completed purchase already exists for account %s", account_id)
                        raise AlreadyPurchasedError(account_id) from exc
                    raise
                except (OperationalError, InterfaceError) as exc:
                    await session.rollback()
                    logger.warning("Ledger store unavailable for account %s: %s", account_id, exc)
                    raise StoreUnavailableError(str(exc)) from exc
                except Exception:
                    await session.rollback()
                    raise
        await unit._run_callbacks()

    async def run(
        self,
        account_id: str,
        work: Callable[[AccountUnit], Awaitable[T]],
        *,
        max_retries: int | None = None,
    ) -> T:
        """Run ``work`` in a fresh unit, re-running it on transient failures."""
        retries = self.max_retries if max_retries is None else max_retries
        attempt = 0
        while True:
            try:
                async with self.unit(account_id) as unit:
                    return await work(unit)
            except TransientLedgerError as exc:
                if attempt >= retries:
                    logger.warning(
                        "Giving up on account %s after %s attempts: %s", account_id, attempt + 1, exc
                    )
                    raise
                delay = self.backoff_seconds * (2 ** attempt)
                attempt += 1
                logger.info("Retrying account %s (attempt %s) in %.3fs: %s", account_id, attempt + 1, delay, exc)
                await asyncio.sleep(delay)

    @staticmethod
    async def _load_for_update(session: AsyncSession, account_id: str) -> Account:
        stmt = select(Account).where(Account.id == account_id).with_for_update()
        result = await session.execute(stmt)
        account = result.scalars().first()
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    @staticmethod
    async def _verify(unit: AccountUnit) -> None:
        account = unit.account
        if account.balance_cents < 0:
            raise LedgerIntegrityError(f"negative balance on account {account.id}: {account.balance_cents}")
        derived = await unit.transactions.signed_total(account.id)
        if derived != account.balance_cents:
            raise LedgerIntegrityError(
                f"balance mismatch on account {account.id}: stored {account.balance_cents}, log {derived}"
            )


__all__ = ["AccountUnit", "LedgerReader", "LedgerStore"]
