"""HTTP surface: status codes and payload shapes for the main flows."""

import httpx
import pytest

from prediction_ledger.core.container import get_app_container
from prediction_ledger.main import app

GATEWAY_HEADERS = {"X-Gateway-Secret": "change-me-gateway"}


@pytest.fixture
async def client(container):
    app.dependency_overrides[get_app_container] = lambda: container
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.clear()


async def register(client, email="player@example.com", category="powerball") -> dict:
    response = await client.post(
        "/api/auth/register",
        json={
            "email": email,
            "password": "secret123",
            "first_name": "Pat",
            "last_name": "Player",
            "selected_category": category,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def test_health(client) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_register_login_and_profile(client) -> None:
    body = await register(client)
    assert body["account"]["balance"] == "0.00"
    assert body["account"]["selected_category"] == "powerball"

    duplicate = await client.post(
        "/api/auth/register",
        json={
            "email": "Player@Example.com",
            "password": "secret123",
            "first_name": "Pat",
            "last_name": "Player",
            "selected_category": "powerball",
        },
    )
    assert duplicate.status_code == 400

    bad_category = await client.post(
        "/api/auth/register",
        json={
            "email": "other@example.com",
            "password": "secret123",
            "first_name": "Pat",
            "last_name": "Player",
            "selected_category": "bingo",
        },
    )
    assert bad_category.status_code == 422

    login = await client.post("/api/auth/login", json={"email": "player@example.com", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["access_token"]
    assert login.json()["account"]["last_login_at"] is not None

    wrong = await client.post("/api/auth/login", json={"email": "player@example.com", "password": "wrong-pass"})
    assert wrong.status_code == 401

    me = await client.get("/api/auth/me", headers=auth(token))
    assert me.status_code == 200
    assert me.json()["trial"]["active"] is True
    assert me.json()["trial"]["free_access_available_today"] is True


async def test_requests_without_token_are_rejected(client) -> None:
    response = await client.get("/api/wallet")
    assert response.status_code in (401, 403)

    garbage = await client.get("/api/wallet", headers=auth("not-a-token"))
    assert garbage.status_code == 401


async def test_deposit_withdraw_and_history(client) -> None:
    token = (await register(client))["access_token"]

    deposit = await client.post("/api/wallet/deposit", json={"amount": "10.00"}, headers=auth(token))
    assert deposit.status_code == 201
    assert deposit.json()["type"] == "credit"
    assert deposit.json()["sequence"] == 1

    too_much = await client.post("/api/wallet/withdraw", json={"amount": "50.00"}, headers=auth(token))
    assert too_much.status_code == 402

    withdrawal = await client.post("/api/wallet/withdraw", json={"amount": "4.00"}, headers=auth(token))
    assert withdrawal.status_code == 201
    assert withdrawal.json()["status"] == "pending"

    invalid = await client.post("/api/wallet/deposit", json={"amount": "-1"}, headers=auth(token))
    assert invalid.status_code == 422

    wallet = await client.get("/api/wallet", headers=auth(token))
    assert wallet.status_code == 200
    assert wallet.json()["balance"] == "6.00"
    assert wallet.json()["transaction_count"] == 2

    history = await client.get("/api/wallet/transactions", params={"type": "withdrawal"}, headers=auth(token))
    assert history.json()["total"] == 1

    stats = await client.get("/api/wallet/stats", headers=auth(token))
    assert stats.status_code == 200
    assert stats.json()["deposits"]["last_7_days"] == "10.00"


async def test_access_flow_status_codes(client, add_item) -> None:
    token = (await register(client, category="powerball"))["access_token"]
    own = await add_item(price="2.00", category="powerball")
    other = await add_item(price="2.00", category="megamillion")
    hidden = await add_item(is_active=False)

    free = await client.post(f"/api/predictions/{own.item_id}/access", headers=auth(token))
    assert free.status_code == 200
    assert free.json()["kind"] == "free_access"

    pay = await client.post(f"/api/predictions/{other.item_id}/access", headers=auth(token))
    assert pay.status_code == 402
    assert pay.json()["amount"] == "2.00"

    broke = await client.post(
        f"/api/predictions/{other.item_id}/access", json={"payment_method": "ledger"}, headers=auth(token)
    )
    assert broke.status_code == 402
    assert broke.json()["kind"] == "insufficient_balance"

    await client.post("/api/wallet/deposit", json={"amount": "5.00"}, headers=auth(token))
    bought = await client.post(
        f"/api/predictions/{other.item_id}/access", json={"payment_method": "ledger"}, headers=auth(token)
    )
    assert bought.status_code == 200
    assert bought.json()["kind"] == "purchased"
    assert bought.json()["transaction"]["type"] == "payment"

    owned = await client.post(f"/api/predictions/{other.item_id}/access", headers=auth(token))
    assert owned.json()["kind"] == "owned"

    assert (await client.post(f"/api/predictions/{hidden.item_id}/access", headers=auth(token))).status_code == 404
    assert (await client.post("/api/predictions/missing/access", headers=auth(token))).status_code == 404

    view = await client.post(f"/api/predictions/{other.item_id}/view", headers=auth(token))
    assert view.status_code == 200
    assert view.json()["view_count"] == 1

    mine = await client.get("/api/predictions/my-purchases", headers=auth(token))
    assert mine.json()["total"] == 1


async def test_gateway_callback(client, add_item) -> None:
    token = (await register(client))["access_token"]
    item = await add_item(price="3.00", category="pick3")

    intent = await client.post(
        f"/api/predictions/{item.item_id}/access",
        json={"payment_method": "external_gateway"},
        headers=auth(token),
    )
    assert intent.json()["kind"] == "payment_intent"
    purchase_id = intent.json()["purchase_id"]
    callback = {"purchase_id": purchase_id, "success": True, "gateway_reference": "ch_42"}

    forged = await client.post("/api/payments/gateway/callback", json=callback, headers={"X-Gateway-Secret": "nope"})
    assert forged.status_code == 401

    settled = await client.post("/api/payments/gateway/callback", json=callback, headers=GATEWAY_HEADERS)
    assert settled.status_code == 200
    assert settled.json()["kind"] == "purchased"
    assert settled.json()["purchase"]["transaction_ref"] == "gateway:ch_42"

    unknown = await client.post(
        "/api/payments/gateway/callback",
        json={"purchase_id": "nope", "success": True},
        headers=GATEWAY_HEADERS,
    )
    assert unknown.status_code == 404


async def test_admin_endpoints_require_admin(client, make_account, add_item) -> None:
    player = await register(client)
    player_id = player["account"]["id"]
    await make_account(role="admin", password="admin-pass")
    admin_login = await client.post(
        "/api/auth/login", json={"email": "player1@example.com", "password": "admin-pass"}
    )
    admin_token = admin_login.json()["access_token"]

    forbidden = await client.post(
        f"/api/admin/accounts/{player_id}/bonus", json={"amount": "1.00"}, headers=auth(player["access_token"])
    )
    assert forbidden.status_code == 403

    bonus = await client.post(
        f"/api/admin/accounts/{player_id}/bonus",
        json={"amount": "5.00", "campaign": "welcome"},
        headers=auth(admin_token),
    )
    assert bonus.status_code == 201
    assert bonus.json()["type"] == "bonus"
    assert bonus.json()["metadata"]["granted_by"] == "player1@example.com"

    item = await add_item(price="2.00", category="megamillion")
    await client.post(
        f"/api/predictions/{item.item_id}/access",
        json={"payment_method": "ledger"},
        headers=auth(player["access_token"]),
    )
    refund = await client.post(
        f"/api/admin/accounts/{player_id}/purchases/{item.item_id}/refund",
        json={"reason": "Draw cancelled"},
        headers=auth(admin_token),
    )
    assert refund.status_code == 200
    assert refund.json()["purchase"]["payment_status"] == "refunded"
    assert refund.json()["transaction"]["type"] == "refund"

    wallet = await client.get("/api/wallet", headers=auth(player["access_token"]))
    assert wallet.json()["balance"] == "5.00"


async def test_oversized_amount_is_a_validation_error(client) -> None:
    token = (await register(client))["access_token"]

    huge = await client.post("/api/wallet/deposit", json={"amount": "100000000000000000.00"}, headers=auth(token))
    assert huge.status_code == 422

    withdraw = await client.post("/api/wallet/withdraw", json={"amount": "1e27"}, headers=auth(token))
    assert withdraw.status_code == 422

    wallet = await client.get("/api/wallet", headers=auth(token))
    assert wallet.json()["transaction_count"] == 0


async def test_wallet_payment(client) -> None:
    token = (await register(client))["access_token"]

    broke = await client.post(
        "/api/wallet/payment", json={"amount": "3.00", "item_id": "pick3-draw"}, headers=auth(token)
    )
    assert broke.status_code == 402

    await client.post("/api/wallet/deposit", json={"amount": "5.00"}, headers=auth(token))
    paid = await client.post(
        "/api/wallet/payment",
        json={"amount": "3.00", "item_id": "pick3-draw", "category": "pick3"},
        headers=auth(token),
    )
    assert paid.status_code == 201
    assert paid.json()["type"] == "payment"
    assert paid.json()["reference"] == "item:pick3-draw"
    assert paid.json()["metadata"]["category"] == "pick3"

    missing_item = await client.post("/api/wallet/payment", json={"amount": "1.00"}, headers=auth(token))
    assert missing_item.status_code == 422

    wallet = await client.get("/api/wallet", headers=auth(token))
    assert wallet.json()["balance"] == "2.00"


async def test_gateway_callback_declined_and_duplicate(client, add_item) -> None:
    token = (await register(client))["access_token"]
    item = await add_item(price="3.00", category="pick3")

    async def open_intent() -> str:
        intent = await client.post(
            f"/api/predictions/{item.item_id}/access",
            json={"payment_method": "external_gateway"},
            headers=auth(token),
        )
        assert intent.json()["kind"] == "payment_intent"
        return intent.json()["purchase_id"]

    declined_id = await open_intent()
    declined = await client.post(
        "/api/payments/gateway/callback",
        json={"purchase_id": declined_id, "success": False},
        headers=GATEWAY_HEADERS,
    )
    assert declined.status_code == 200
    assert declined.json()["kind"] == "payment_declined"
    assert declined.json()["purchase"]["payment_status"] == "failed"

    first_id, second_id = await open_intent(), await open_intent()
    first = await client.post(
        "/api/payments/gateway/callback",
        json={"purchase_id": first_id, "success": True, "gateway_reference": "ch_1"},
        headers=GATEWAY_HEADERS,
    )
    assert first.json()["kind"] == "purchased"

    duplicate = await client.post(
        "/api/payments/gateway/callback",
        json={"purchase_id": second_id, "success": True, "gateway_reference": "ch_2"},
        headers=GATEWAY_HEADERS,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["kind"] == "already_purchased"
    assert duplicate.json()["item_id"] == item.item_id
