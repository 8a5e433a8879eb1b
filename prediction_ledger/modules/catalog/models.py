"""Catalog item as seen by the entitlement engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

CATEGORIES = ("gopher5", "pick3", "lottoamerica", "megamillion", "powerball")

CATEGORY_DISPLAY_NAMES = {
    "gopher5": "Gopher 5",
    "pick3": "Pick 3",
    "lottoamerica": "Lotto America",
    "megamillion": "Mega Million",
    "powerball": "Powerball",
}


def display_name(category: str) -> str:
    return CATEGORY_DISPLAY_NAMES.get(category, category)


@dataclass(slots=True, frozen=True)
class CatalogItem:
    """Price and category are authoritative at call time; nothing here is cached."""

    item_id: str
    price: Decimal
    category: str
    is_active: bool = True
    draw_date: Optional[date] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError("catalog price cannot be negative")
