"""In-memory order composition."""

from __future__ import annotations

from decimal import Decimal

from orderpad.models import CartItem, MenuItem


class Cart:
    """Selected menu items keyed by id, in the order they were first added.

    Quantities are always at least 1: setting a quantity of zero or less
    removes the entry. Mutators ignore ids that are not in the cart.
    """

    def __init__(self) -> None:
        self._items: list[CartItem] = []

    def _find(self, item_id: str) -> CartItem | None:
        for entry in self._items:
            if entry.id == item_id:
                return entry
        return None

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def item_count(self) -> int:
        return sum(entry.quantity for entry in self._items)

    @property
    def total(self) -> Decimal:
        return sum((entry.line_total for entry in self._items), Decimal("0.00"))

    def __len__(self) -> int:
        return len(self._items)

    def quantity_of(self, item_id: str) -> int:
        entry = self._find(item_id)
        return entry.quantity if entry is not None else 0

    def add(self, item: MenuItem) -> CartItem:
        """Add one of ``item``, appending a new entry on first add."""
        entry = self._find(item.id)
        if entry is None:
            entry = CartItem(menu_item=item, quantity=1)
            self._items.append(entry)
        else:
            entry.quantity += 1
        return entry

    def set_quantity(self, item_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(item_id)
            return
        entry = self._find(item_id)
        if entry is not None:
            entry.quantity = quantity

    def increment(self, item_id: str) -> None:
        self.set_quantity(item_id, self.quantity_of(item_id) + 1)

    def decrement(self, item_id: str) -> None:
        self.set_quantity(item_id, self.quantity_of(item_id) - 1)

    def set_notes(self, item_id: str, notes: str) -> None:
        entry = self._find(item_id)
        if entry is not None:
            entry.notes = notes

    def remove(self, item_id: str) -> None:
        self._items = [entry for entry in self._items if entry.id != item_id]

    def clear(self) -> None:
        self._items.clear()
