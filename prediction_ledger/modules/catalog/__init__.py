"""Catalog boundary exports."""

from .models import CATEGORIES, CatalogItem, display_name
from .repository import CatalogProvider

__all__ = [
    "CATEGORIES",
    "CatalogItem",
    "CatalogProvider",
    "display_name",
]
