"""Lazy application of the trial-consumed flag."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from prediction_ledger.modules.wallets.exceptions import AccountNotFoundError

from .policy import TrialStatus, is_trial_active, mark_consumed_if_expired, resolve_timezone, trial_status

if TYPE_CHECKING:
    from prediction_ledger.infrastructure.database.ledger_store import AccountUnit, LedgerStore

logger = logging.getLogger(__name__)


class TrialService:
    """Observes accounts on authenticated access; there is no background timer."""

    def __init__(self, store: "LedgerStore", *, timezone_name: str = "UTC") -> None:
        self._store = store
        self.timezone = resolve_timezone(timezone_name)

    async def observe(self, account_id: str, now: datetime | None = None) -> bool:
        """Set ``trial_consumed`` if the window has closed. True only on the call that flips it."""
        now = now or datetime.now(timezone.utc)
        async with self._store.reader() as reader:
            account = await reader.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        if account.trial_consumed or is_trial_active(account, now):
            return False

        async def work(unit: "AccountUnit") -> bool:
            return mark_consumed_if_expired(unit.account, now)

        flipped = await self._store.run(account_id, work)
        if flipped:
            logger.info("Trial consumed for account %s", account_id)
        return flipped

    async def status(self, account_id: str, now: datetime | None = None) -> TrialStatus:
        now = now or datetime.now(timezone.utc)
        await self.observe(account_id, now)
        async with self._store.reader() as reader:
            account = await reader.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return trial_status(account, now, self.timezone)
