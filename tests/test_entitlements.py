"""Tests for the entitlement engine's decision order and purchase side effects."""

from datetime import timedelta
from decimal import Decimal

import pytest

from prediction_ledger.infrastructure.database.models import Prediction
from prediction_ledger.modules.entitlements import (
    FreeAccess,
    InsufficientBalance,
    ItemUnavailable,
    Owned,
    PaymentIntent,
    PaymentMethod,
    PaymentRequired,
    PaymentStatus,
    PurchaseNotFoundError,
    Purchased,
    RedundantDuringTrial,
    TrialExhaustedToday,
)
from prediction_ledger.modules.notifications import PurchaseCompleted, PurchaseRefunded
from prediction_ledger.modules.wallets import TransactionStatus, TransactionType

from .conftest import TRIAL_START

DAY_ONE = TRIAL_START + timedelta(days=1)


async def test_ledger_purchase_then_owned(make_account, add_item, entitlements, ledger_state) -> None:
    """Balance 5.00, price 2.00, other category, trial active."""
    account_id = await make_account(category="powerball", balance="5.00")
    item = await add_item(price="2.00", category="megamillion")

    result = await entitlements.request_access(account_id, item, PaymentMethod.LEDGER, now=DAY_ONE)

    assert isinstance(result, Purchased)
    assert result.purchase.payment_status is PaymentStatus.COMPLETED
    assert result.transaction.type is TransactionType.PAYMENT
    assert result.transaction.status is TransactionStatus.COMPLETED
    assert result.transaction.amount == Decimal("2.00")
    assert result.transaction.reference == f"item:{item.item_id}"
    assert result.purchase.transaction_ref == f"wallet:{result.transaction.id}"

    state = await ledger_state(account_id)
    assert state["balance"] == Decimal("3.00")
    assert [tx[1] for tx in state["transactions"]] == ["credit", "payment"]
    assert state["completed_purchases"] == 1

    again = await entitlements.request_access(account_id, item, PaymentMethod.LEDGER, now=DAY_ONE)
    assert isinstance(again, Owned)
    assert again.purchase.id == result.purchase.id
    assert (await ledger_state(account_id))["balance"] == Decimal("3.00")


async def test_insufficient_balance_leaves_no_trace(make_account, add_item, entitlements, ledger_state) -> None:
    account_id = await make_account(category="powerball", balance="1.00")
    item = await add_item(price="2.00", category="megamillion")

    result = await entitlements.request_access(account_id, item, "ledger", now=DAY_ONE)

    assert isinstance(result, InsufficientBalance)
    assert result.required == Decimal("2.00")
    assert result.available == Decimal("1.00")
    state = await ledger_state(account_id)
    assert state["balance"] == Decimal("1.00")
    assert len(state["transactions"]) == 1
    assert state["purchase_records"] == 0


async def test_trial_gating_over_the_window(make_account, add_item, entitlements, ledger_state) -> None:
    account_id = await make_account(category="powerball", balance="10.00")
    first = await add_item(category="powerball")
    second = await add_item(category="powerball")

    free = await entitlements.request_access(account_id, first, now=DAY_ONE)
    assert isinstance(free, FreeAccess)
    assert free.access_date == DAY_ONE.date()
    assert (await ledger_state(account_id))["last_trial_access_date"] == DAY_ONE.date()

    exhausted = await entitlements.request_access(account_id, second, now=DAY_ONE + timedelta(hours=3))
    assert isinstance(exhausted, TrialExhaustedToday)
    assert exhausted.next_free_access_date == DAY_ONE.date() + timedelta(days=1)

    next_day = await entitlements.request_access(account_id, second, now=DAY_ONE + timedelta(days=1))
    assert isinstance(next_day, FreeAccess)

    expired = TRIAL_START + timedelta(days=8)
    after = await entitlements.request_access(account_id, first, now=expired)
    assert isinstance(after, PaymentRequired)
    assert (await ledger_state(account_id))["trial_consumed"] is True

    bought = await entitlements.request_access(account_id, first, PaymentMethod.LEDGER, now=expired)
    assert isinstance(bought, Purchased)

    state = await ledger_state(account_id)
    assert state["balance"] == Decimal("8.00")
    assert state["trial_consumed"] is True


async def test_no_next_free_date_on_last_trial_day(make_account, add_item, entitlements) -> None:
    account_id = await make_account(category="powerball")
    first = await add_item(category="powerball")
    second = await add_item(category="powerball")
    last_day = TRIAL_START + timedelta(days=7, hours=-1)

    assert isinstance(await entitlements.request_access(account_id, first, now=last_day), FreeAccess)
    exhausted = await entitlements.request_access(account_id, second, now=last_day)
    assert isinstance(exhausted, TrialExhaustedToday)
    assert exhausted.next_free_access_date is None


async def test_purchase_redundant_while_free_slot_unused(make_account, add_item, entitlements, ledger_state) -> None:
    account_id = await make_account(category="powerball", balance="5.00")
    item = await add_item(category="powerball")

    result = await entitlements.request_access(account_id, item, PaymentMethod.LEDGER, now=DAY_ONE)

    assert isinstance(result, RedundantDuringTrial)
    state = await ledger_state(account_id)
    assert state["balance"] == Decimal("5.00")
    assert state["purchase_records"] == 0


async def test_purchase_allowed_once_free_slot_used(make_account, add_item, entitlements) -> None:
    account_id = await make_account(category="powerball", balance="5.00")
    first = await add_item(category="powerball")
    second = await add_item(category="powerball")

    assert isinstance(await entitlements.request_access(account_id, first, now=DAY_ONE), FreeAccess)
    result = await entitlements.request_access(account_id, second, PaymentMethod.LEDGER, now=DAY_ONE)

    assert isinstance(result, Purchased)


async def test_other_category_needs_payment(make_account, add_item, entitlements) -> None:
    account_id = await make_account(category="powerball")
    item = await add_item(price="3.50", category="pick3")

    result = await entitlements.request_access(account_id, item, now=DAY_ONE)

    assert isinstance(result, PaymentRequired)
    assert result.amount == Decimal("3.50")


async def test_inactive_item_is_unavailable(make_account, add_item, entitlements) -> None:
    account_id = await make_account()
    item = await add_item(is_active=False)

    assert isinstance(await entitlements.request_access(account_id, item, "ledger", now=DAY_ONE), ItemUnavailable)


async def test_gateway_purchase_returns_intent_without_ledger_change(
    make_account, add_item, entitlements, ledger_state
) -> None:
    account_id = await make_account(category="powerball")
    item = await add_item(price="4.00", category="gopher5")

    intent = await entitlements.request_access(account_id, item, PaymentMethod.EXTERNAL_GATEWAY, now=DAY_ONE)

    assert isinstance(intent, PaymentIntent)
    assert intent.amount == Decimal("4.00")
    assert intent.item_id == item.item_id
    state = await ledger_state(account_id)
    assert state["transactions"] == []
    assert state["purchase_records"] == 1
    assert state["completed_purchases"] == 0


async def test_zero_price_item_completes_without_transaction(make_account, add_item, entitlements, ledger_state) -> None:
    account_id = await make_account(category="powerball")
    item = await add_item(price="0.00", category="pick3")

    result = await entitlements.request_access(account_id, item, PaymentMethod.LEDGER, now=DAY_ONE)

    assert isinstance(result, Purchased)
    assert result.transaction is None
    assert (await ledger_state(account_id))["transactions"] == []


async def test_purchase_side_effects(make_account, add_item, entitlements, notifier, session_factory) -> None:
    account_id = await make_account(category="powerball", balance="5.00")
    item = await add_item(price="2.00", category="megamillion")

    result = await entitlements.request_access(account_id, item, PaymentMethod.LEDGER, now=DAY_ONE)

    completed = [event for event in notifier.events if isinstance(event, PurchaseCompleted)]
    assert [event.purchase_id for event in completed] == [result.purchase.id]
    async with session_factory() as session:
        prediction = await session.get(Prediction, item.item_id)
    assert prediction.purchase_count == 1


async def test_views_and_purchase_listing(make_account, add_item, entitlements, session_factory) -> None:
    account_id = await make_account(category="powerball", balance="10.00")
    first = await add_item(price="2.00", category="megamillion")
    second = await add_item(price="3.00", category="pick3")
    await entitlements.request_access(account_id, first, PaymentMethod.LEDGER, now=DAY_ONE)
    await entitlements.request_access(account_id, second, PaymentMethod.LEDGER, now=DAY_ONE + timedelta(hours=1))

    viewed = await entitlements.record_view(account_id, first.item_id, now=DAY_ONE + timedelta(hours=2))
    viewed = await entitlements.record_view(account_id, first.item_id, now=DAY_ONE + timedelta(hours=3))
    assert viewed.view_count == 2
    assert viewed.last_viewed_at == DAY_ONE + timedelta(hours=3)

    page = await entitlements.list_purchases(account_id)
    assert page.total == 2
    assert [purchase.item_id for purchase in page.purchases] == [second.item_id, first.item_id]

    async with session_factory() as session:
        prediction = await session.get(Prediction, first.item_id)
    assert prediction.view_count == 2


async def test_view_requires_ownership(make_account, add_item, entitlements) -> None:
    account_id = await make_account()
    item = await add_item()
    with pytest.raises(PurchaseNotFoundError):
        await entitlements.record_view(account_id, item.item_id)


async def test_refund_credits_wallet_and_releases_item(
    make_account, add_item, entitlements, wallet, notifier, ledger_state
) -> None:
    account_id = await make_account(category="powerball", balance="5.00")
    item = await add_item(price="2.00", category="megamillion")
    purchased = await entitlements.request_access(account_id, item, PaymentMethod.LEDGER, now=DAY_ONE)

    refund = await entitlements.refund_purchase(account_id, item.item_id, "Draw cancelled", now=DAY_ONE)

    assert refund.purchase.payment_status is PaymentStatus.REFUNDED
    assert refund.purchase.refund_reason == "Draw cancelled"
    assert refund.transaction.type is TransactionType.REFUND
    assert refund.transaction.metadata.original_reference == purchased.purchase.transaction_ref
    state = await ledger_state(account_id)
    assert state["balance"] == Decimal("5.00")
    assert state["completed_purchases"] == 0
    assert await wallet.verify_integrity(account_id)
    assert any(isinstance(event, PurchaseRefunded) for event in notifier.events)

    again = await entitlements.request_access(account_id, item, now=DAY_ONE)
    assert isinstance(again, PaymentRequired)

    with pytest.raises(PurchaseNotFoundError):
        await entitlements.refund_purchase(account_id, item.item_id)


async def test_unknown_payment_method_is_rejected(make_account, add_item, entitlements) -> None:
    account_id = await make_account()
    item = await add_item()
    with pytest.raises(ValueError):
        await entitlements.request_access(account_id, item, "paypal", now=DAY_ONE)
