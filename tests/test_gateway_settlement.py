"""Gateway callbacks: settlement, redelivery and double-payment handling."""

from datetime import timedelta

import pytest

from prediction_ledger.modules.entitlements import (
    AlreadyPurchased,
    PaymentDeclined,
    PaymentIntent,
    PaymentMethod,
    PaymentStatus,
    PurchaseNotFoundError,
    Purchased,
)
from prediction_ledger.modules.notifications import PurchaseCompleted
from prediction_ledger.modules.wallets import InvalidTransactionError

from .conftest import TRIAL_START

AFTER_TRIAL = TRIAL_START + timedelta(days=10)


@pytest.fixture
def open_intent(make_account, add_item, entitlements):
    async def _open(account_id=None, item=None):
        account_id = account_id or await make_account()
        item = item or await add_item(price="4.00")
        intent = await entitlements.request_access(
            account_id, item, PaymentMethod.EXTERNAL_GATEWAY, now=AFTER_TRIAL
        )
        assert isinstance(intent, PaymentIntent)
        return account_id, item, intent

    return _open


async def test_successful_settlement_completes_purchase(open_intent, entitlements, notifier, ledger_state) -> None:
    account_id, item, intent = await open_intent()

    result = await entitlements.settle_gateway_payment(intent.purchase_id, True, "ch_123", now=AFTER_TRIAL)

    assert isinstance(result, Purchased)
    assert result.transaction is None
    assert result.purchase.payment_status is PaymentStatus.COMPLETED
    assert result.purchase.transaction_ref == "gateway:ch_123"
    state = await ledger_state(account_id)
    assert state["completed_purchases"] == 1
    assert state["transactions"] == []
    assert [event.purchase_id for event in notifier.events if isinstance(event, PurchaseCompleted)] == [
        intent.purchase_id
    ]

    owned = await entitlements.request_access(account_id, item, now=AFTER_TRIAL)
    assert owned.kind == "owned"


async def test_redelivered_callback_is_idempotent(open_intent, entitlements, notifier) -> None:
    _, _, intent = await open_intent()

    first = await entitlements.settle_gateway_payment(intent.purchase_id, True, "ch_1", now=AFTER_TRIAL)
    second = await entitlements.settle_gateway_payment(intent.purchase_id, True, "ch_1", now=AFTER_TRIAL)

    assert isinstance(first, Purchased)
    assert isinstance(second, Purchased)
    assert second.purchase.id == first.purchase.id
    assert sum(isinstance(event, PurchaseCompleted) for event in notifier.events) == 1


async def test_declined_payment_marks_record_failed(open_intent, entitlements, ledger_state) -> None:
    account_id, item, intent = await open_intent()

    declined = await entitlements.settle_gateway_payment(intent.purchase_id, False, now=AFTER_TRIAL)
    assert isinstance(declined, PaymentDeclined)
    assert declined.purchase.payment_status is PaymentStatus.FAILED

    late_success = await entitlements.settle_gateway_payment(intent.purchase_id, True, "ch_late", now=AFTER_TRIAL)
    assert isinstance(late_success, PaymentDeclined)
    assert (await ledger_state(account_id))["completed_purchases"] == 0

    retry = await entitlements.request_access(account_id, item, PaymentMethod.EXTERNAL_GATEWAY, now=AFTER_TRIAL)
    assert isinstance(retry, PaymentIntent)


async def test_second_intent_for_owned_item_is_rejected(open_intent, entitlements) -> None:
    account_id, item, first = await open_intent()
    _, _, second = await open_intent(account_id, item)

    assert isinstance(await entitlements.settle_gateway_payment(first.purchase_id, True, "ch_a"), Purchased)
    result = await entitlements.settle_gateway_payment(second.purchase_id, True, "ch_b")

    assert isinstance(result, AlreadyPurchased)
    assert result.item_id == item.item_id

    again = await entitlements.settle_gateway_payment(second.purchase_id, True, "ch_b")
    assert isinstance(again, AlreadyPurchased)

    page = await entitlements.list_purchases(account_id)
    assert [purchase.id for purchase in page.purchases] == [first.purchase_id]


async def test_unknown_purchase_id(entitlements) -> None:
    with pytest.raises(PurchaseNotFoundError):
        await entitlements.settle_gateway_payment("no-such-purchase", True)


async def test_ledger_purchase_cannot_be_settled_by_gateway(make_account, add_item, entitlements) -> None:
    account_id = await make_account(balance="5.00")
    item = await add_item(price="2.00")
    purchased = await entitlements.request_access(account_id, item, PaymentMethod.LEDGER, now=AFTER_TRIAL)

    with pytest.raises(InvalidTransactionError):
        await entitlements.settle_gateway_payment(purchased.purchase.id, True, "ch_x")
