"""Read access to the prediction catalog plus its popularity counters."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prediction_ledger.infrastructure.database.models import Prediction
from prediction_ledger.modules.catalog.models import CatalogItem
from prediction_ledger.utils.money import from_cents


class SqlCatalogRepository:
    """Catalog provider over the ``predictions`` table.

    Each call runs in its own short session so the counters can be bumped
    after a ledger unit has already committed.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_item(self, item_id: str) -> CatalogItem | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Prediction).where(Prediction.id == item_id))
            model = result.scalars().first()
        if model is None:
            return None
        return CatalogItem(
            item_id=model.id,
            price=from_cents(model.price_cents),
            category=model.category,
            is_active=bool(model.is_active),
            draw_date=model.draw_date,
            notes=model.notes,
        )

    async def record_purchase(self, item_id: str) -> None:
        await self._bump(item_id, purchase_count=Prediction.purchase_count + 1)

    async def record_view(self, item_id: str) -> None:
        await self._bump(item_id, view_count=Prediction.view_count + 1)

    async def _bump(self, item_id: str, **values) -> None:
        async with self._session_factory() as session:
            await session.execute(update(Prediction).where(Prediction.id == item_id).values(**values))
            await session.commit()
