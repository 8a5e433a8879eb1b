"""Catalog boundary consumed by the entitlement engine."""

from __future__ import annotations

from typing import Protocol

from .models import CatalogItem


class CatalogProvider(Protocol):
    async def get_item(self, item_id: str) -> CatalogItem | None:
        ...

    async def record_purchase(self, item_id: str) -> None:
        ...

    async def record_view(self, item_id: str) -> None:
        ...
