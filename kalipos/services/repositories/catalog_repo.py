"""Catalog Repository - read-only item lookups."""
import re
from typing import List, Optional

from kalipos.models import CatalogItem
from .base import BaseRepository

ITEM_COLUMNS = "item_name, category, default_supplier, measure_unit"

# Characters with meaning inside a PostgREST or() filter
_FILTER_RESERVED = re.compile(r"[,()*\\]")


def _filter_value(query: str) -> str:
    return _FILTER_RESERVED.sub(" ", query).strip()


class CatalogRepository(BaseRepository):
    """Item lookups by exact name, category substring and free text."""

    async def get_by_name(self, item_name: str) -> Optional[CatalogItem]:
        """Exact name lookup."""
        result = await self.client.table("items").select(ITEM_COLUMNS).eq(
            "item_name", item_name
        ).limit(1).execute()
        return CatalogItem(**result.data[0]) if result.data else None

    async def get_all(self, limit: Optional[int] = None) -> List[CatalogItem]:
        """All items ordered by name."""
        query = self.client.table("items").select("*").order("item_name")
        if limit:
            query = query.limit(limit)
        result = await query.execute()
        return [CatalogItem(**row) for row in result.data]

    async def get_by_category(self, category: str, limit: int = 50) -> List[CatalogItem]:
        """Items whose category contains ``category`` (case-insensitive)."""
        result = await self.client.table("items").select(ITEM_COLUMNS).ilike(
            "category", f"%{_filter_value(category)}%"
        ).limit(limit).execute()
        return [CatalogItem(**row) for row in result.data]

    async def search(self, query: str, limit: int = 50) -> List[CatalogItem]:
        """Items whose name or category contains ``query`` (case-insensitive)."""
        value = _filter_value(query)
        result = await self.client.table("items").select(ITEM_COLUMNS).or_(
            f"item_name.ilike.%{value}%,category.ilike.%{value}%"
        ).limit(limit).execute()
        return [CatalogItem(**row) for row in result.data]
