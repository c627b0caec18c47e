"""Menu query for order composition."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from orderpad.errors import BackendError, RowFormatError
from orderpad.models import MenuCategory, MenuItem, parse_rows
from orderpad.results import FetchResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MenuSnapshot:
    """Categories in display order and the items currently available."""

    categories: tuple[MenuCategory, ...]
    items: tuple[MenuItem, ...]

    @property
    def active_category_id(self) -> str | None:
        if not self.categories:
            return None
        return self.categories[0].id

    def items_in(self, category_id: str | None) -> list[MenuItem]:
        return [item for item in self.items if item.category_id == category_id]

    def __bool__(self) -> bool:
        return bool(self.categories or self.items)


class MenuQuery:
    def __init__(self, backend) -> None:
        self.backend = backend

    async def fetch(self) -> FetchResult[MenuSnapshot]:
        """Fetch categories and available items concurrently."""
        try:
            category_rows, item_rows = await asyncio.gather(
                self.backend.fetch_categories(),
                self.backend.fetch_available_items(),
            )
        except BackendError as exc:
            logger.error("menu_fetch_failed error=%s", exc.message)
            return FetchResult.failure(exc.message)

        try:
            categories = sorted(parse_rows(MenuCategory, category_rows), key=lambda category: category.display_order)
            items = tuple(parse_rows(MenuItem, [row for row in item_rows if row.get("available", True)]))
        except RowFormatError as exc:
            logger.error("menu_parse_failed error=%s", exc.message)
            return FetchResult.failure(exc.message)

        logger.info("menu_fetched categories=%d items=%d", len(categories), len(items))
        return FetchResult.success(MenuSnapshot(categories=tuple(categories), items=items))
