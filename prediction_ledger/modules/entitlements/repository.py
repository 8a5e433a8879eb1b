"""Repository protocol for purchase records."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from prediction_ledger.infrastructure.database.models import PurchaseRecord as PurchaseRecordModel


class PurchaseRepository(Protocol):
    async def get(self, purchase_id: str, *, for_update: bool = False) -> PurchaseRecordModel | None:
        ...

    async def get_completed(self, account_id: str, item_id: str) -> PurchaseRecordModel | None:
        ...

    async def create(
        self,
        *,
        account_id: str,
        item_id: str,
        amount_cents: int,
        payment_method: str,
        payment_status: str,
        created_at: datetime,
    ) -> PurchaseRecordModel:
        ...

    async def update_status(
        self,
        record: PurchaseRecordModel,
        *,
        payment_status: str,
        transaction_ref: str | None = None,
        refund_reason: str | None = None,
        refunded_at: datetime | None = None,
    ) -> PurchaseRecordModel:
        ...

    async def increment_views(self, purchase_id: str, viewed_at: datetime) -> PurchaseRecordModel | None:
        ...

    async def list_completed(self, account_id: str, limit: int, offset: int) -> Sequence[PurchaseRecordModel]:
        ...

    async def count_completed(self, account_id: str) -> int:
        ...
