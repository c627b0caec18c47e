"""Rendering helpers for orders, menu items and the cart."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from rich.text import Text

from orderpad.config import CURRENCY_SYMBOL
from orderpad.constant import DEFAULT_BADGE_STYLE, STATUS_BADGE_STYLES
from orderpad.models import CartItem, MenuItem, OrderStatus, OrderWithItems


def badge_style(status: OrderStatus | str) -> str:
    """Return a consistent badge style for an order status."""
    value = status.value if isinstance(status, OrderStatus) else str(status)
    return STATUS_BADGE_STYLES.get(value, DEFAULT_BADGE_STYLE)


def format_money(amount: Decimal) -> str:
    return f"{CURRENCY_SYMBOL}{amount:.2f}"


def format_time(value: datetime | None, with_date: bool = False) -> str:
    if value is None:
        return "--:--"
    local = value.astimezone() if value.tzinfo is not None else value
    if with_date:
        return local.strftime("%d %b %Y %H:%M")
    return local.strftime("%H:%M")


def format_status_badge(status: OrderStatus) -> Text:
    return Text(f" {status.value} ", style=badge_style(status))


def format_order_label(entry: OrderWithItems, with_date: bool = False) -> Text:
    """Render an order card: table, time, status badge, count and total."""
    order = entry.order
    text = Text()
    text.append(f"Table {order.table_number}", style="bold")
    text.append(f"  {format_time(order.created_at, with_date=with_date)}  ", style="dim")
    text.append_text(format_status_badge(order.status))
    text.append(f"\n    {entry.item_count} items  ")
    text.append(format_money(order.total_amount), style="bold")
    if order.notes:
        text.append(f"\n    {order.notes}", style="italic")
    return text


def format_order_lines(entry: OrderWithItems) -> Text:
    """Render the lines of one order with per-line totals and notes."""
    text = Text()
    for idx, line in enumerate(entry.lines):
        if idx > 0:
            text.append("\n")
        text.append(f"{line.item.quantity}x {line.name}")
        text.append(f"  {format_money(line.item.line_total)}", style="dim")
        if line.item.notes:
            text.append(f"\n    Note: {line.item.notes}", style="italic")
    if not entry.lines:
        text.append("(no items)", style="dim")
    return text


def format_menu_item(item: MenuItem, quantity: int = 0) -> Text:
    text = Text()
    text.append(item.name)
    text.append(f"  {format_money(item.price)}", style="bold")
    if quantity > 0:
        text.append(f"  x{quantity}", style="bold #d97706")
    return text


def format_cart_line(entry: CartItem) -> Text:
    """Render a cart entry as ``name`` then ``£price x qty = £line``."""
    text = Text()
    text.append(entry.menu_item.name, style="bold")
    text.append(
        f"\n    {format_money(entry.menu_item.price)} x {entry.quantity} = {format_money(entry.line_total)}"
    )
    if entry.notes:
        text.append(f"\n    [{entry.notes}]", style="italic")
    return text
