"""SQLAlchemy implementation of the wallet transaction log."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import case, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from prediction_ledger.infrastructure.database.models import WalletTransaction

_INFLOW = ("credit", "refund", "bonus")


class SqlTransactionRepository:
    """Append-only access to ``wallet_transactions``; there is no update or delete."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

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
    ) -> WalletTransaction:
        tx = WalletTransaction(
            account_id=account_id,
            sequence=sequence,
            type=type,
            amount_cents=amount_cents,
            status=status,
            description=description,
            reference=reference,
            meta=meta,
            created_at=created_at,
        )
        self.session.add(tx)
        await self.session.flush()
        return tx

    async def signed_total(self, account_id: str) -> int:
        """Balance derived from the log: inflows minus outflows, in cents."""
        signed = case(
            (WalletTransaction.type.in_(_INFLOW), WalletTransaction.amount_cents),
            else_=-WalletTransaction.amount_cents,
        )
        stmt = select(func.coalesce(func.sum(signed), 0)).where(WalletTransaction.account_id == account_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    def _filtered(self, stmt, account_id: str, type: str | None, status: str | None):
        stmt = stmt.where(WalletTransaction.account_id == account_id)
        if type and type != "all":
            stmt = stmt.where(WalletTransaction.type == type)
        if status and status != "all":
            stmt = stmt.where(WalletTransaction.status == status)
        return stmt

    async def list_transactions(
        self,
        account_id: str,
        limit: int,
        offset: int,
        *,
        type: str | None = None,
        status: str | None = None,
    ) -> Sequence[WalletTransaction]:
        stmt = self._filtered(select(WalletTransaction), account_id, type, status)
        stmt = stmt.order_by(desc(WalletTransaction.sequence)).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_transactions(self, account_id: str, *, type: str | None = None, status: str | None = None) -> int:
        stmt = self._filtered(select(func.count(WalletTransaction.id)), account_id, type, status)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def list_since(self, account_id: str, since: datetime) -> Sequence[WalletTransaction]:
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.account_id == account_id)
            .where(WalletTransaction.created_at >= since)
            .order_by(desc(WalletTransaction.sequence))
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
