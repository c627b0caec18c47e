"""Orders list: every branch order, newest first."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widgets import Static

from orderpad.base_screen import TabScreen, move_selection, window_bounds
from orderpad.constant import STATUS_ACTION_LABELS
from orderpad.errors import OrderpadError
from orderpad.models import OrderWithItems
from orderpad.order_details_modal import OrderDetailsModal
from orderpad.orders import OrderFeed
from orderpad.rendering import format_order_label


class OrdersScreen(TabScreen):
    TAB_NAME = "orders"

    BINDINGS = [
        ("j", "move_selection(1)", "Next order"),
        ("down", "move_selection(1)", "Next order"),
        ("k", "move_selection(-1)", "Previous order"),
        ("up", "move_selection(-1)", "Previous order"),
        ("enter", "view_selected", "View details"),
        ("v", "view_selected", "View details"),
        ("a", "advance_selected", "Advance status"),
        ("r", "refresh", "Refresh"),
    ]

    CSS = """
    #orders-pane {
        height: 1fr;
        border: round $primary;
        padding: 1;
    }

    #orders-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }
    """

    def __init__(self, feed: OrderFeed) -> None:
        super().__init__()
        self.feed = feed
        self.selected_index: int | None = None
        self._stop_listening = None

    def compose(self) -> ComposeResult:
        yield from self.compose_chrome()
        with Vertical(id="orders-pane"):
            yield Static("All Orders", classes="pane-title")
            yield Static("(no orders yet)", id="orders-list")
        yield from self.compose_status()

    def on_mount(self) -> None:
        self._stop_listening = self.feed.subscribe(lambda _feed: self._refresh_orders())
        self._refresh_orders()
        self._refresh_status()

    def on_unmount(self) -> None:
        if self._stop_listening is not None:
            self._stop_listening()

    def help_text(self) -> str:
        return "J/K select, Enter view details, A advance status, R refresh"

    def _selected(self) -> OrderWithItems | None:
        if self.selected_index is None or not (0 <= self.selected_index < len(self.feed.orders)):
            return None
        return self.feed.orders[self.selected_index]

    def action_move_selection(self, delta: int) -> None:
        self.selected_index = move_selection(self.selected_index, delta, len(self.feed.orders))
        self._refresh_orders()

    def action_view_selected(self) -> None:
        entry = self._selected()
        if entry is None:
            return
        self.app.push_screen(OrderDetailsModal(entry))

    async def action_advance_selected(self) -> None:
        entry = self._selected()
        if entry is None:
            return
        try:
            status = await self.feed.advance_status(entry)
        except OrderpadError as exc:
            self.set_status(exc.message)
            return
        self.set_status(f"Table {entry.order.table_number} -> {status.value}")

    async def action_refresh(self) -> None:
        result = await self.feed.refresh()
        self.set_status(result.error or "Refreshed")

    def _refresh_orders(self) -> None:
        try:
            orders_widget = self.query_one("#orders-list", Static)
        except NoMatches:
            return

        orders = self.feed.orders
        if self.feed.last_result is not None and not self.feed.last_result.ok:
            self.set_status(f"Could not load orders: {self.feed.last_result.error}")
        if not orders:
            self.selected_index = None
            orders_widget.update("(no orders yet)")
            return

        if self.selected_index is not None and self.selected_index >= len(orders):
            self.selected_index = len(orders) - 1

        visible_rows = self.visible_rows(orders_widget, lines_per_row=3)
        start, end = window_bounds(len(orders), visible_rows, self.selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            entry = orders[idx]
            pointer = "➤ " if idx == self.selected_index else "  "
            lines.append(pointer)
            lines.append_text(format_order_label(entry, with_date=True))
            action = STATUS_ACTION_LABELS.get(entry.status.value)
            if action and idx == self.selected_index:
                lines.append(f"\n    [A] {action}", style="bold #d97706")

        if end < len(orders):
            lines.append("\n⋮", style="dim")

        orders_widget.update(lines)
