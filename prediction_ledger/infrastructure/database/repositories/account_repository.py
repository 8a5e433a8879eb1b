"""SQLAlchemy implementation of the account repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from prediction_ledger.infrastructure.database.models import Account as AccountModel
from prediction_ledger.modules.accounts.exceptions import AccountAlreadyExistsError
from prediction_ledger.modules.accounts.models import Account
from prediction_ledger.utils.money import from_cents


class SqlAccountRepository:
    """Account repository backed by SQLAlchemy models."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, account_id: str) -> Account | None:
        stmt = (
            select(AccountModel)
            .where(AccountModel.id == account_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return to_domain(result.scalar_one_or_none())

    async def get_by_email(self, email: str) -> Account | None:
        stmt = select(AccountModel).where(AccountModel.email == email)
        result = await self._session.execute(stmt)
        return to_domain(result.scalar_one_or_none())

    async def create_account(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        phone: str | None,
        role: str,
        selected_category: str,
        trial_start_at: datetime,
        trial_end_at: datetime,
    ) -> Account:
        model = AccountModel(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role,
            selected_category=selected_category,
            trial_start_at=trial_start_at,
            trial_end_at=trial_end_at,
            balance_cents=0,
            total_credited_cents=0,
            total_debited_cents=0,
            transaction_count=0,
            trial_consumed=False,
        )
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            raise AccountAlreadyExistsError(f"email already registered: {email}") from exc
        return to_domain(model)

    async def set_last_login(self, account_id: str, timestamp: datetime) -> None:
        stmt = (
            update(AccountModel)
            .where(AccountModel.id == account_id)
            .values(last_login_at=timestamp)
        )
        await self._session.execute(stmt)


def to_domain(model: AccountModel | None) -> Account | None:
    if model is None:
        return None
    return Account(
        id=str(model.id),
        email=model.email,
        first_name=model.first_name,
        last_name=model.last_name,
        role=model.role or "user",
        is_active=bool(model.is_active),
        password_hash=model.password_hash,
        phone=model.phone,
        balance=from_cents(model.balance_cents),
        total_credited=from_cents(model.total_credited_cents),
        total_debited=from_cents(model.total_debited_cents),
        transaction_count=model.transaction_count or 0,
        last_transaction_at=model.last_transaction_at,
        trial_start_at=model.trial_start_at,
        trial_end_at=model.trial_end_at,
        selected_category=model.selected_category,
        trial_consumed=bool(model.trial_consumed),
        last_trial_access_date=model.last_trial_access_date,
        notifications_enabled=bool(model.notifications_enabled),
        created_at=model.created_at,
        last_login_at=model.last_login_at,
    )
