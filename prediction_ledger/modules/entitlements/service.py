"""Entitlement engine: decides how an account gets at a catalog item.

Decision order for :meth:`EntitlementService.request_access`:

1. inactive item -> ``ItemUnavailable``
2. completed purchase on file -> ``Owned`` (read-only, before any lock)
3. inside the account unit: apply the lazy trial-consumed flag, then re-check
   ownership (a concurrent request may have won)
4. plain access request: ``FreeAccess`` / ``TrialExhaustedToday`` /
   ``PaymentRequired``
5. purchase attempt while today's free slot is unused -> ``RedundantDuringTrial``
6. ledger purchase (check balance, pending record, payment, complete) or a
   pending gateway record plus ``PaymentIntent``

Transient store failures inside the unit are raised to the caller; the
decision is not re-run here.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone
from typing import TYPE_CHECKING, Optional

from prediction_ledger.infrastructure.database.models import PurchaseRecord as PurchaseRecordModel
from prediction_ledger.modules.catalog.models import CatalogItem, display_name
from prediction_ledger.modules.catalog.repository import CatalogProvider
from prediction_ledger.modules.notifications import (
    NotificationDispatcher,
    PurchaseCompleted,
    PurchaseRefunded,
    dispatch_safely,
)
from prediction_ledger.modules.trial.policy import (
    has_free_access_today,
    is_trial_active,
    local_date,
    mark_consumed_if_expired,
    resolve_timezone,
)
from prediction_ledger.modules.wallets.exceptions import AlreadyPurchasedError, InvalidTransactionError
from prediction_ledger.modules.wallets.models import PaymentMetadata, RefundMetadata, TransactionType
from prediction_ledger.utils.money import from_cents, to_cents

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

if TYPE_CHECKING:
    from prediction_ledger.infrastructure.database.ledger_store import AccountUnit, LedgerStore
    from prediction_ledger.modules.wallets.service import WalletService

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class EntitlementService:
    def __init__(
        self,
        store: "LedgerStore",
        wallet: "WalletService",
        *,
        catalog: CatalogProvider | None = None,
        notifier: NotificationDispatcher | None = None,
        guard: PurchaseGuard | None = None,
        timezone_name: str = "UTC",
    ) -> None:
        self._store = store
        self._wallet = wallet
        self._catalog = catalog
        self._notifier = notifier
        self._guard = guard or PurchaseGuard()
        self._tz = resolve_timezone(timezone_name)

    async def request_access(
        self,
        account_id: str,
        item: CatalogItem,
        payment_method: PaymentMethod | str | None = None,
        now: datetime | None = None,
    ) -> AccessResult:
        now = now or datetime.now(timezone.utc)
        method = PaymentMethod(payment_method) if payment_method is not None else None

        if not item.is_active:
            return ItemUnavailable(item.item_id)

        async with self._store.reader() as reader:
            owned = await self._guard.find_completed(reader, account_id, item.item_id)
        if owned is not None:
            return Owned(to_purchase(owned))

        try:
            async with self._store.unit(account_id) as unit:
                return await self._decide(unit, item, method, now)
        except AlreadyPurchasedError:
            return AlreadyPurchased(item.item_id)

    async def settle_gateway_payment(
        self,
        purchase_id: str,
        success: bool,
        gateway_reference: str | None = None,
        now: datetime | None = None,
    ) -> SettlementResult:
        """Completion callback from the external gateway. Safe to deliver more than once."""
        now = now or datetime.now(timezone.utc)
        async with self._store.reader() as reader:
            found = await reader.purchases.get(purchase_id)
        if found is None:
            raise PurchaseNotFoundError(f"purchase not found: {purchase_id}")
        if found.payment_method != PaymentMethod.EXTERNAL_GATEWAY.value:
            raise InvalidTransactionError(f"purchase {purchase_id} is not a gateway purchase")
        account_id, item_id = found.account_id, found.item_id

        try:
            async with self._store.unit(account_id) as unit:
                return await self._settle(unit, purchase_id, success, gateway_reference, now)
        except AlreadyPurchasedError:
            # Lost the race on the unique index; record the failure on its own.
            async with self._store.unit(account_id) as unit:
                record = await unit.purchases.get(purchase_id, for_update=True)
                if record is not None and record.payment_status == PaymentStatus.PENDING.value:
                    await unit.purchases.update_status(record, payment_status=PaymentStatus.FAILED.value)
            return AlreadyPurchased(item_id)

    async def record_view(self, account_id: str, item_id: str, now: datetime | None = None) -> PurchaseRecord:
        now = now or datetime.now(timezone.utc)
        async with self._store.unit(account_id) as unit:
            record = await unit.purchases.get_completed(account_id, item_id)
            if record is None:
                raise PurchaseNotFoundError(f"item {item_id} is not owned by {account_id}")
            updated = await unit.purchases.increment_views(record.id, now)
            if self._catalog is not None:
                unit.after_commit(lambda: self._catalog.record_view(item_id))
            return to_purchase(updated)

    async def list_purchases(self, account_id: str, limit: int = 20, offset: int = 0) -> PurchasePage:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        async with self._store.reader() as reader:
            rows = await reader.purchases.list_completed(account_id, limit, offset)
            total = await reader.purchases.count_completed(account_id)
        return PurchasePage(purchases=[to_purchase(row) for row in rows], total=total, limit=limit, offset=offset)

    async def refund_purchase(
        self,
        account_id: str,
        item_id: str,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> RefundResult:
        """Refund a completed purchase. Ledger purchases are credited back to the wallet."""
        now = now or datetime.now(timezone.utc)

        async def work(unit: "AccountUnit") -> RefundResult:
            record = await unit.purchases.get_completed(account_id, item_id)
            if record is None:
                raise PurchaseNotFoundError(f"no completed purchase of {item_id} for {account_id}")
            transaction = None
            if record.payment_method == PaymentMethod.LEDGER.value and record.amount_cents > 0:
                transaction = await self._wallet.apply_in_unit(
                    unit,
                    TransactionType.REFUND,
                    from_cents(record.amount_cents),
                    f"Refund for item {item_id}",
                    reference=f"item:{item_id}",
                    metadata=RefundMetadata(
                        purchase_id=record.id,
                        item_id=item_id,
                        original_reference=record.transaction_ref,
                        reason=reason,
                    ),
                    now=now,
                )
            await unit.purchases.update_status(
                record,
                payment_status=PaymentStatus.REFUNDED.value,
                refund_reason=reason,
                refunded_at=now,
            )
            purchase = to_purchase(record)
            event = PurchaseRefunded(
                account_id=account_id,
                purchase_id=purchase.id,
                item_id=item_id,
                amount=purchase.amount,
                occurred_at=now,
                reason=reason,
            )
            unit.after_commit(lambda: dispatch_safely(self._notifier, event))
            return RefundResult(purchase=purchase, transaction=transaction)

        result = await self._store.run(account_id, work)
        logger.info("Refunded purchase %s of %s for %s", result.purchase.id, item_id, account_id)
        return result

    # ==================== DECISION ====================

    async def _decide(
        self,
        unit: "AccountUnit",
        item: CatalogItem,
        method: Optional[PaymentMethod],
        now: datetime,
    ) -> AccessResult:
        account = unit.account
        if mark_consumed_if_expired(account, now):
            logger.info("Trial consumed for account %s", account.id)

        existing = await self._guard.find_completed(unit, account.id, item.item_id)
        if existing is not None:
            if method is None:
                return Owned(to_purchase(existing))
            raise AlreadyPurchasedError(account.id, item.item_id)

        free_today = has_free_access_today(account, item.category, now, self._tz)
        if method is None:
            today = local_date(now, self._tz)
            if free_today:
                account.last_trial_access_date = today
                logger.info("Free trial access to %s for %s on %s", item.item_id, account.id, today)
                return FreeAccess(item.item_id, today)
            if is_trial_active(account, now) and item.category == account.selected_category:
                return TrialExhaustedToday(item.item_id, self._next_free_date(account, today))
            return PaymentRequired(item.item_id, item.price)

        if free_today:
            return RedundantDuringTrial(item.item_id)
        if method is PaymentMethod.LEDGER:
            return await self._purchase_with_ledger(unit, item, now)
        return await self._open_gateway_intent(unit, item, now)

    async def _purchase_with_ledger(self, unit: "AccountUnit", item: CatalogItem, now: datetime) -> AccessResult:
        account = unit.account
        price_cents = to_cents(item.price)
        if price_cents > account.balance_cents:
            return InsufficientBalance(item.item_id, required=item.price, available=from_cents(account.balance_cents))

        record = await unit.purchases.create(
            account_id=account.id,
            item_id=item.item_id,
            amount_cents=price_cents,
            payment_method=PaymentMethod.LEDGER.value,
            payment_status=PaymentStatus.PENDING.value,
            created_at=now,
        )
        transaction = None
        transaction_ref = None
        if price_cents > 0:
            transaction = await self._wallet.apply_in_unit(
                unit,
                TransactionType.PAYMENT,
                item.price,
                f"{display_name(item.category)} prediction",
                reference=f"item:{item.item_id}",
                metadata=PaymentMetadata(item_id=item.item_id, category=item.category, purchase_id=record.id),
                now=now,
            )
            transaction_ref = f"wallet:{transaction.id}"
        await self._guard.complete(unit, record, transaction_ref=transaction_ref)

        purchase = to_purchase(record)
        self._after_purchase(unit, purchase, now)
        return Purchased(purchase, transaction)

    async def _open_gateway_intent(self, unit: "AccountUnit", item: CatalogItem, now: datetime) -> PaymentIntent:
        record = await unit.purchases.create(
            account_id=unit.account_id,
            item_id=item.item_id,
            amount_cents=to_cents(item.price),
            payment_method=PaymentMethod.EXTERNAL_GATEWAY.value,
            payment_status=PaymentStatus.PENDING.value,
            created_at=now,
        )
        logger.info("Opened gateway payment %s for %s by %s", record.id, item.item_id, unit.account_id)
        return PaymentIntent(purchase_id=record.id, item_id=item.item_id, amount=item.price)

    async def _settle(
        self,
        unit: "AccountUnit",
        purchase_id: str,
        success: bool,
        gateway_reference: str | None,
        now: datetime,
    ) -> SettlementResult:
        record = await unit.purchases.get(purchase_id, for_update=True)
        if record is None:
            raise PurchaseNotFoundError(f"purchase not found: {purchase_id}")

        status = PaymentStatus(record.payment_status)
        if status is PaymentStatus.COMPLETED:
            return Purchased(to_purchase(record))
        if status is not PaymentStatus.PENDING:
            if success and await self._guard.find_completed(unit, record.account_id, record.item_id) is not None:
                return AlreadyPurchased(record.item_id)
            return PaymentDeclined(to_purchase(record))

        if not success:
            await unit.purchases.update_status(record, payment_status=PaymentStatus.FAILED.value)
            logger.info("Gateway declined purchase %s", purchase_id)
            return PaymentDeclined(to_purchase(record))

        if await self._guard.find_completed(unit, record.account_id, record.item_id) is not None:
            await unit.purchases.update_status(record, payment_status=PaymentStatus.FAILED.value)
            logger.warning("Gateway settled %s for an item already owned; charge needs reversal", purchase_id)
            return AlreadyPurchased(record.item_id)

        transaction_ref = f"gateway:{gateway_reference}" if gateway_reference else None
        await self._guard.complete(unit, record, transaction_ref=transaction_ref)
        purchase = to_purchase(record)
        self._after_purchase(unit, purchase, now)
        return Purchased(purchase)

    def _after_purchase(self, unit: "AccountUnit", purchase: PurchaseRecord, now: datetime) -> None:
        event = PurchaseCompleted(
            account_id=purchase.account_id,
            purchase_id=purchase.id,
            item_id=purchase.item_id,
            amount=purchase.amount,
            payment_method=purchase.payment_method.value,
            occurred_at=now,
            transaction_ref=purchase.transaction_ref,
        )
        unit.after_commit(lambda: dispatch_safely(self._notifier, event))
        if self._catalog is not None:
            catalog = self._catalog
            unit.after_commit(lambda: catalog.record_purchase(purchase.item_id))
        logger.info("Purchase %s completed: %s for %s", purchase.id, purchase.item_id, purchase.account_id)

    def _next_free_date(self, account, today):
        tomorrow = today + timedelta(days=1)
        starts_at = datetime.combine(tomorrow, time.min, tzinfo=self._tz)
        return tomorrow if starts_at <= account.trial_end_at else None


def to_purchase(model: PurchaseRecordModel) -> PurchaseRecord:
    return PurchaseRecord(
        id=model.id,
        account_id=model.account_id,
        item_id=model.item_id,
        amount=from_cents(model.amount_cents),
        payment_method=PaymentMethod(model.payment_method),
        payment_status=PaymentStatus(model.payment_status),
        transaction_ref=model.transaction_ref,
        view_count=model.view_count or 0,
        last_viewed_at=model.last_viewed_at,
        created_at=model.created_at,
        refund_reason=model.refund_reason,
        refunded_at=model.refunded_at,
    )


__all__ = ["EntitlementService", "to_purchase"]
