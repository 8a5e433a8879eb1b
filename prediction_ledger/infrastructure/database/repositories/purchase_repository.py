"""SQLAlchemy implementation for purchase records."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from prediction_ledger.infrastructure.database.models import PurchaseRecord

COMPLETED_PURCHASE_INDEX = "uq_purchase_records_completed"


def is_completed_purchase_violation(exc: IntegrityError) -> bool:
    """True when ``exc`` came from the one-completed-purchase-per-item index."""
    message = str(exc.orig if exc.orig is not None else exc)
    if COMPLETED_PURCHASE_INDEX in message:
        return True
    # SQLite names the columns rather than the index.
    return "purchase_records.account_id" in message and "purchase_records.item_id" in message


class SqlPurchaseRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, purchase_id: str, *, for_update: bool = False) -> PurchaseRecord | None:
        stmt = select(PurchaseRecord).where(PurchaseRecord.id == purchase_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_completed(self, account_id: str, item_id: str) -> PurchaseRecord | None:
        stmt = select(PurchaseRecord).where(
            PurchaseRecord.account_id == account_id,
            PurchaseRecord.item_id == item_id,
            PurchaseRecord.payment_status == "completed",
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create(
        self,
        *,
        account_id: str,
        item_id: str,
        amount_cents: int,
        payment_method: str,
        payment_status: str,
        created_at: datetime,
    ) -> PurchaseRecord:
        record = PurchaseRecord(
            account_id=account_id,
            item_id=item_id,
            amount_cents=amount_cents,
            payment_method=payment_method,
            payment_status=payment_status,
            created_at=created_at,
        )
        self.session.add(record)
        await self.session.flush()
        return record

    async def update_status(
        self,
        record: PurchaseRecord,
        *,
        payment_status: str,
        transaction_ref: str | None = None,
        refund_reason: str | None = None,
        refunded_at: datetime | None = None,
    ) -> PurchaseRecord:
        record.payment_status = payment_status
        if transaction_ref is not None:
            record.transaction_ref = transaction_ref
        if refund_reason is not None:
            record.refund_reason = refund_reason
        if refunded_at is not None:
            record.refunded_at = refunded_at
        await self.session.flush()
        return record

    async def increment_views(self, purchase_id: str, viewed_at: datetime) -> PurchaseRecord | None:
        await self.session.execute(
            update(PurchaseRecord)
            .where(PurchaseRecord.id == purchase_id)
            .values(view_count=PurchaseRecord.view_count + 1, last_viewed_at=viewed_at)
            .execution_options(synchronize_session=False)
        )
        stmt = (
            select(PurchaseRecord)
            .where(PurchaseRecord.id == purchase_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_completed(self, account_id: str, limit: int, offset: int) -> Sequence[PurchaseRecord]:
        stmt = (
            select(PurchaseRecord)
            .where(PurchaseRecord.account_id == account_id, PurchaseRecord.payment_status == "completed")
            .order_by(desc(PurchaseRecord.created_at))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_completed(self, account_id: str) -> int:
        stmt = select(func.count(PurchaseRecord.id)).where(
            PurchaseRecord.account_id == account_id,
            PurchaseRecord.payment_status == "completed",
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
