"""Dashboard: orders in New / Preparing / Ready columns."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.widgets import Static

from orderpad.base_screen import TabScreen, move_selection, window_bounds
from orderpad.constant import STATUS_ACTION_LABELS, STATUS_SECTION_TITLES
from orderpad.errors import OrderpadError
from orderpad.models import OrderStatus, OrderWithItems
from orderpad.orders import OrderFeed
from orderpad.rendering import badge_style, format_money, format_time

_COLUMN_IDS = {
    OrderStatus.NEW: "column-new",
    OrderStatus.PREPARING: "column-preparing",
    OrderStatus.READY: "column-ready",
}


class DashboardScreen(TabScreen):
    """Live status board for the signed-in branch."""

    TAB_NAME = "dashboard"

    BINDINGS = [
        ("j", "move_selection(1)", "Next order"),
        ("down", "move_selection(1)", "Next order"),
        ("k", "move_selection(-1)", "Previous order"),
        ("up", "move_selection(-1)", "Previous order"),
        ("enter", "advance_selected", "Advance status"),
        ("a", "advance_selected", "Advance status"),
        ("r", "refresh", "Refresh"),
    ]

    CSS = """
    #board {
        height: 1fr;
    }

    .status-column {
        width: 1fr;
        border: round $primary;
        padding: 0 1;
    }

    .column-body {
        height: 1fr;
    }
    """

    def __init__(self, feed: OrderFeed) -> None:
        super().__init__()
        self.feed = feed
        self.selected_index: int | None = None
        self._stop_listening = None

    def compose(self) -> ComposeResult:
        yield from self.compose_chrome()
        with Horizontal(id="board"):
            for status, column_id in _COLUMN_IDS.items():
                with Vertical(classes="status-column"):
                    yield Static(id=f"{column_id}-title", classes="pane-title")
                    yield Static(id=column_id, classes="column-body")
        yield from self.compose_status()

    def on_mount(self) -> None:
        self._stop_listening = self.feed.subscribe(lambda _feed: self._refresh_board())
        self._refresh_board()
        self._refresh_status()

    def on_unmount(self) -> None:
        if self._stop_listening is not None:
            self._stop_listening()

    def help_text(self) -> str:
        return "J/K select, Enter/A advance status, R refresh"

    def _ordered(self) -> list[OrderWithItems]:
        groups = self.feed.grouped()
        return [entry for status in OrderStatus for entry in groups[status]]

    def _selected(self) -> OrderWithItems | None:
        ordered = self._ordered()
        if self.selected_index is None or not (0 <= self.selected_index < len(ordered)):
            return None
        return ordered[self.selected_index]

    def action_move_selection(self, delta: int) -> None:
        self.selected_index = move_selection(self.selected_index, delta, len(self._ordered()))
        self._refresh_board()

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

    def _refresh_board(self) -> None:
        ordered = self._ordered()
        if self.selected_index is not None and self.selected_index >= len(ordered):
            self.selected_index = len(ordered) - 1 if ordered else None
        selected = self._selected()
        groups = self.feed.grouped()

        for status, column_id in _COLUMN_IDS.items():
            try:
                title = self.query_one(f"#{column_id}-title", Static)
                body = self.query_one(f"#{column_id}", Static)
            except NoMatches:
                return
            entries = groups[status]
            title.update(Text(f" {STATUS_SECTION_TITLES[status.value]} ({len(entries)}) ", style=badge_style(status)))
            body.update(self._column_text(entries, selected, self.visible_rows(body, lines_per_row=3)))

        if self.feed.last_result is not None and not self.feed.last_result.ok:
            self.set_status(f"Could not load orders: {self.feed.last_result.error}")

    def _column_text(self, entries: list[OrderWithItems], selected: OrderWithItems | None, rows: int) -> Text:
        if not entries:
            return Text("No orders", style="dim")

        selected_pos = next((idx for idx, entry in enumerate(entries) if entry is selected), None)
        start, end = window_bounds(len(entries), rows, selected_pos)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            entry = entries[idx]
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if entry is selected else "  "
            lines.append(pointer)
            lines.append(f"Table {entry.order.table_number}", style="bold")
            lines.append(f"  {format_time(entry.order.created_at)}", style="dim")
            lines.append(f"\n    {entry.item_count} items  {format_money(entry.order.total_amount)}")
            action = STATUS_ACTION_LABELS.get(entry.status.value)
            if action and entry is selected:
                lines.append(f"\n    [Enter] {action}", style="bold #d97706")
        if end < len(entries):
            lines.append("\n⋮", style="dim")
        return lines
