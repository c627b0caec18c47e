"""Domain models for orderpad."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable

from orderpad.constant import STATUS_FLOW, STATUS_NEW, STATUS_PREPARING, STATUS_READY
from orderpad.errors import RowFormatError

Row = dict[str, Any]

_FRACTION = re.compile(r"\.(\d+)")
_SHORT_OFFSET = re.compile(r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?[+-]\d{2})$")


class OrderStatus(str, Enum):
    NEW = STATUS_NEW
    PREPARING = STATUS_PREPARING
    READY = STATUS_READY

    @property
    def next(self) -> OrderStatus | None:
        following = STATUS_FLOW[self.value]
        return OrderStatus(following) if following is not None else None


def to_money(value: Any) -> Decimal:
    """Convert a wire number to a two-place Decimal."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(Decimal("0.01"))


def money_to_wire(value: Decimal) -> float:
    """Convert a Decimal amount to the JSON number the backend expects."""
    return float(value.quantize(Decimal("0.01")))


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp column, tolerating a trailing Z."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # Postgres trims trailing zeros from fractions and may send "+00" offsets.
    text = _FRACTION.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), text, count=1)
    text = _SHORT_OFFSET.sub(r"\1:00", text)
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class Branch:
    """A restaurant branch; one per staff session."""

    id: str
    name: str
    email: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Row) -> Branch:
        return cls(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            email=row.get("email"),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class MenuCategory:
    id: str
    name: str
    display_order: int = 0

    @classmethod
    def from_row(cls, row: Row) -> MenuCategory:
        return cls(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            display_order=int(row.get("display_order") or 0),
        )


@dataclass(frozen=True)
class MenuItem:
    """A menu item offered for order composition."""

    id: str
    category_id: str
    name: str
    price: Decimal
    description: str = ""
    available: bool = True
    image_url: str | None = None

    @classmethod
    def from_row(cls, row: Row) -> MenuItem:
        return cls(
            id=str(row["id"]),
            category_id=str(row.get("category_id") or ""),
            name=str(row.get("name") or ""),
            price=to_money(row.get("price")),
            description=str(row.get("description") or ""),
            available=bool(row.get("available", True)),
            image_url=row.get("image_url"),
        )


@dataclass(frozen=True)
class OrderItem:
    """A persisted order line; unit_price is the price at order time."""

    id: str
    order_id: str
    menu_item_id: str
    quantity: int
    unit_price: Decimal
    notes: str = ""

    @classmethod
    def from_row(cls, row: Row) -> OrderItem:
        return cls(
            id=str(row.get("id") or ""),
            order_id=str(row.get("order_id") or ""),
            menu_item_id=str(row.get("menu_item_id") or ""),
            quantity=int(row.get("quantity") or 0),
            unit_price=to_money(row.get("unit_price")),
            notes=str(row.get("notes") or ""),
        )

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderLine:
    """An order item joined with its menu item, if the menu row still exists."""

    item: OrderItem
    menu_item: MenuItem | None = None

    @classmethod
    def from_row(cls, row: Row) -> OrderLine:
        menu_row = row.get("menu_items")
        return cls(
            item=OrderItem.from_row(row),
            menu_item=MenuItem.from_row(menu_row) if menu_row else None,
        )

    @property
    def name(self) -> str:
        if self.menu_item is None:
            return "(removed item)"
        return self.menu_item.name


@dataclass(frozen=True)
class Order:
    """An order header."""

    id: str
    branch_id: str
    table_number: str
    status: OrderStatus
    total_amount: Decimal
    notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Row) -> Order:
        return cls(
            id=str(row["id"]),
            branch_id=str(row.get("branch_id") or ""),
            table_number=str(row.get("table_number") or ""),
            status=OrderStatus(row.get("status") or STATUS_NEW),
            total_amount=to_money(row.get("total_amount")),
            notes=str(row.get("notes") or ""),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
        )


@dataclass(frozen=True)
class OrderWithItems:
    """An order with its nested lines, as read by the order feed."""

    order: Order
    lines: tuple[OrderLine, ...] = ()

    @classmethod
    def from_row(cls, row: Row) -> OrderWithItems:
        return cls(
            order=Order.from_row(row),
            lines=tuple(OrderLine.from_row(item) for item in row.get("order_items") or []),
        )

    @property
    def id(self) -> str:
        return self.order.id

    @property
    def status(self) -> OrderStatus:
        return self.order.status

    @property
    def item_count(self) -> int:
        return sum(line.item.quantity for line in self.lines)

    def with_header(self, row: Row) -> OrderWithItems:
        """Return a copy with header columns patched from a change record."""
        merged = {
            "id": self.order.id,
            "branch_id": self.order.branch_id,
            "table_number": self.order.table_number,
            "status": self.order.status.value,
            "total_amount": self.order.total_amount,
            "notes": self.order.notes,
            "created_at": self.order.created_at,
            "updated_at": self.order.updated_at,
        }
        merged.update({key: value for key, value in row.items() if key in merged})
        return replace(self, order=parse_row(Order, merged))


@dataclass
class CartItem:
    """A menu item being composed into an order."""

    menu_item: MenuItem
    quantity: int = 1
    notes: str = ""

    @property
    def id(self) -> str:
        return self.menu_item.id

    @property
    def line_total(self) -> Decimal:
        return self.menu_item.price * self.quantity


@dataclass(frozen=True)
class AuthSession:
    """The authenticated backend user for this client."""

    user_id: str
    email: str | None = None
    access_token: str | None = None


@dataclass(frozen=True)
class OrderChange:
    """A row-level change pushed for the orders table."""

    event: str
    record: Row = field(default_factory=dict)
    old_record: Row = field(default_factory=dict)

    @property
    def order_id(self) -> str | None:
        value = self.record.get("id") or self.old_record.get("id")
        return str(value) if value is not None else None


_PARSE_ERRORS = (KeyError, TypeError, ValueError, ArithmeticError)


def parse_row(model: Any, row: Row) -> Any:
    """Build ``model`` from one row, raising RowFormatError on bad data."""
    try:
        return model.from_row(row)
    except _PARSE_ERRORS as exc:
        raise RowFormatError(f"Unreadable {model.__name__} row {row.get('id', '?')}: {exc}") from exc


def parse_rows(model: Any, rows: Iterable[Row]) -> list[Any]:
    return [parse_row(model, row) for row in rows]
