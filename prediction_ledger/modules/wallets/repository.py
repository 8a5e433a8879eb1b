"""Repository protocol for the wallet transaction log."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from prediction_ledger.infrastructure.database.models import WalletTransaction as WalletTransactionModel


class TransactionRepository(Protocol):
    async def append(
        self,
        *,
        account_id: str,
        sequence: int,
        type: str,
        amount_cents: int,
        status: str,
        description: str,
        reference: str | None,
        meta: str,
        created_at: datetime,
    ) -> WalletTransactionModel:
        ...

    async def signed_total(self, account_id: str) -> int:
        ...

    async def list_transactions(
        self,
        account_id: str,
        limit: int,
        offset: int,
        *,
        type: str | None = None,
        status: str | None = None,
    ) -> Sequence[WalletTransactionModel]:
        ...

    async def count_transactions(self, account_id: str, *, type: str | None = None, status: str | None = None) -> int:
        ...

    async def list_since(self, account_id: str, since: datetime) -> Sequence[WalletTransactionModel]:
        ...
