from __future__ import annotations

from typing import Protocol, Sequence

from anyio import to_thread
from brush_core.config import TABLE_ARTWORKS
from brush_core.errors import CatalogError
from brush_core.pgrest import PAGE_SIZE, PGREST_ERRORS, fetch_all, map_pgrest
from brush_core.types import CatalogAttribute

# catalog column per projected attribute; colors are stored as an array
ATTRIBUTE_COLUMNS: dict[CatalogAttribute, str] = {
    CatalogAttribute.MEDIUM: "medium",
    CatalogAttribute.STYLE: "style",
    CatalogAttribute.COLOR: "dominant_colors",
}


class CatalogService(Protocol):
    async def distinct_values(self, attribute: CatalogAttribute) -> Sequence[str]: ...


def distinct_in_order(rows: list[dict], column: str) -> list[str]:
    seen: dict[str, None] = {}
    for row in rows:
        value = row.get(column)
        items = value if isinstance(value, list) else [value]
        for item in items:
            if isinstance(item, str) and item and item not in seen:
                seen[item] = None
    return list(seen)


class SupabaseCatalogRepo:
    def __init__(self, client, *, table: str = TABLE_ARTWORKS, page_size: int = PAGE_SIZE):
        self.client = client
        self.table = table
        self.page_size = page_size

    # ---------- Async facade ----------
    async def distinct_values(self, attribute: CatalogAttribute) -> list[str]:
        return await to_thread.run_sync(self._distinct_values_sync, attribute)

    # ---------- Private sync impls ----------
    def _distinct_values_sync(self, attribute: CatalogAttribute) -> list[str]:
        column = ATTRIBUTE_COLUMNS[CatalogAttribute(attribute)]
        try:
            # every row; a truncated read drops layout dimensions
            rows = fetch_all(
                lambda: self.client.table(self.table).select(column).order(column),
                page_size=self.page_size,
            )
        except PGREST_ERRORS as e:
            raise map_pgrest(e, f"catalog {column}", CatalogError) from e
        return distinct_in_order(rows, column)
