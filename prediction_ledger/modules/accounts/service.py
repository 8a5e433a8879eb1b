"""Domain services for account registration and sign-in."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from prediction_ledger.core.crypto import BCRYPT_ROUNDS, hash_password, verify_password
from prediction_ledger.modules.catalog.models import CATEGORIES
from prediction_ledger.modules.trial.policy import DEFAULT_TRIAL_DAYS, trial_window

from .exceptions import AccountAlreadyExistsError, InvalidCategoryError
from .models import Account, AccountCreateInput
from .repository import AccountRepository


class AccountService:
    """Encapsulates core account use cases."""

    def __init__(
        self,
        repository: AccountRepository,
        *,
        trial_days: int = DEFAULT_TRIAL_DAYS,
        password_rounds: int = BCRYPT_ROUNDS,
    ) -> None:
        self._repository = repository
        self._trial_days = trial_days
        self._password_rounds = password_rounds

    @classmethod
    def with_session(cls, session: AsyncSession, **kwargs) -> "AccountService":
        # Deferred import: the SQL repository imports this package's models.
        from prediction_ledger.infrastructure.database.repositories.account_repository import SqlAccountRepository

        return cls(SqlAccountRepository(session), **kwargs)

    async def get_by_id(self, account_id: str) -> Account | None:
        return await self._repository.get_by_id(account_id)

    async def get_by_email(self, email: str) -> Account | None:
        return await self._repository.get_by_email(email.strip().lower())

    async def authenticate(self, email: str, password: str) -> Account | None:
        account = await self.get_by_email(email)
        if account is None or not account.is_active:
            return None
        if not verify_password(password, account.password_hash):
            return None
        return account

    async def register(self, payload: AccountCreateInput, *, now: datetime | None = None) -> Account:
        """Create an account with a zero balance and a trial window starting ``now``."""
        if payload.selected_category not in CATEGORIES:
            raise InvalidCategoryError(f"unknown lottery category: {payload.selected_category}")

        email = payload.email.strip().lower()
        if await self._repository.get_by_email(email) is not None:
            raise AccountAlreadyExistsError(f"email already registered: {email}")

        start, end = trial_window(now or datetime.now(timezone.utc), self._trial_days)
        return await self._repository.create_account(
            email=email,
            password_hash=hash_password(payload.password, rounds=self._password_rounds),
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            phone=payload.phone,
            role=payload.role,
            selected_category=payload.selected_category,
            trial_start_at=start,
            trial_end_at=end,
        )

    async def set_last_login(self, account_id: str) -> None:
        await self._repository.set_last_login(account_id, datetime.now(timezone.utc))
