"""Shared fixtures: a scratch SQLite ledger per test and the wired services."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine

from prediction_ledger.core.config import LedgerSettings, Settings
from prediction_ledger.core.container import ApplicationContainer
from prediction_ledger.infrastructure.database.models import Account, Prediction, PurchaseRecord, WalletTransaction
from prediction_ledger.infrastructure.database.session import build_session_factory, init_db
from prediction_ledger.modules.accounts import AccountCreateInput, AccountService
from prediction_ledger.utils.money import to_cents

TRIAL_START = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


class RecordingDispatcher:
    def __init__(self) -> None:
        self.events: list = []

    async def notify(self, event) -> None:
        self.events.append(event)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        ledger=LedgerSettings(retry_backoff_seconds=0.0, max_retries=3),
    )


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def notifier() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def container(settings, session_factory, notifier) -> ApplicationContainer:
    return ApplicationContainer(settings=settings, session_factory=session_factory, notifier=notifier)


@pytest.fixture
def store(container):
    return container.store


@pytest.fixture
def wallet(container):
    return container.wallet


@pytest.fixture
def entitlements(container):
    return container.entitlements


@pytest.fixture
def make_account(session_factory, wallet):
    counter = {"n": 0}

    async def _make(
        *,
        category: str = "powerball",
        balance: str | None = None,
        start: datetime = TRIAL_START,
        role: str = "user",
        password: str = "secret123",
    ) -> str:
        counter["n"] += 1
        async with session_factory() as session:
            service = AccountService.with_session(session, password_rounds=4)
            account = await service.register(
                AccountCreateInput(
                    email=f"player{counter['n']}@example.com",
                    password=password,
                    first_name="Test",
                    last_name=f"Player{counter['n']}",
                    selected_category=category,
                    role=role,
                ),
                now=start,
            )
            await session.commit()
        if balance is not None:
            await wallet.apply_transaction(account.id, "credit", balance, "Opening balance", now=start)
        return account.id

    return _make


@pytest.fixture
def add_item(session_factory, container):
    async def _add(price: str = "2.00", category: str = "megamillion", is_active: bool = True):
        async with session_factory() as session:
            model = Prediction(category=category, price_cents=to_cents(price), is_active=is_active)
            session.add(model)
            await session.commit()
            item_id = model.id
        return await container.catalog.get_item(item_id)

    return _add


@pytest.fixture
def ledger_state(session_factory):
    """Read back what is actually stored for an account."""

    async def _state(account_id: str) -> dict:
        async with session_factory() as session:
            account = await session.get(Account, account_id)
            transactions = (
                await session.execute(
                    select(WalletTransaction)
                    .where(WalletTransaction.account_id == account_id)
                    .order_by(WalletTransaction.sequence)
                )
            ).scalars().all()
            completed = await session.scalar(
                select(func.count(PurchaseRecord.id)).where(
                    PurchaseRecord.account_id == account_id,
                    PurchaseRecord.payment_status == "completed",
                )
            )
            records = await session.scalar(
                select(func.count(PurchaseRecord.id)).where(PurchaseRecord.account_id == account_id)
            )
        return {
            "balance": Decimal(account.balance_cents) / 100,
            "trial_consumed": account.trial_consumed,
            "last_trial_access_date": account.last_trial_access_date,
            "transactions": [(tx.sequence, tx.type, tx.amount_cents, tx.status) for tx in transactions],
            "completed_purchases": completed,
            "purchase_records": records,
        }

    return _state
