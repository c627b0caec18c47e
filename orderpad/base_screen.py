"""Shared layout and list-window helpers for the tab screens."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.css.query import NoMatches
from textual.screen import Screen
from textual.widgets import Header, Static

from orderpad.alert_modal import AlertModal

TABS: list[tuple[str, str, str]] = [
    ("dashboard", "F1", "Dashboard"),
    ("new_order", "F2", "New Order"),
    ("orders", "F3", "Orders"),
    ("settings", "F4", "Settings"),
]


def window_bounds(total: int, rows: int, selected: int | None) -> tuple[int, int]:
    """Return the [start, end) slice that keeps ``selected`` centered in view."""
    if total <= 0:
        return (0, 0)

    rows = max(1, rows)
    if total <= rows:
        return (0, total)

    if selected is None:
        start = 0
    else:
        half = rows // 2
        start = selected - half
        start = max(0, start)
        start = min(start, total - rows)

    return (start, start + rows)


def move_selection(current: int | None, delta: int, total: int) -> int | None:
    if total <= 0:
        return None
    if current is None:
        return 0 if delta > 0 else total - 1
    return (current + delta) % total


class TabScreen(Screen):
    """A main screen with the tab bar on top and a status line at the bottom."""

    TAB_NAME = ""

    DEFAULT_CSS = """
    TabScreen {
        layout: vertical;
    }

    #tab-bar {
        height: 1;
        padding: 0 1;
        background: $panel;
    }

    #status-line {
        height: 2;
        padding: 0 1;
        color: $text-muted;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    def __init__(self) -> None:
        super().__init__()
        self.status_message = ""

    def compose_chrome(self) -> ComposeResult:
        yield Header()
        yield Static(self._tab_bar_text(), id="tab-bar")

    def compose_status(self) -> ComposeResult:
        yield Static(id="status-line")

    def _tab_bar_text(self) -> Text:
        text = Text()
        for idx, (name, key, label) in enumerate(TABS):
            if idx > 0:
                text.append("  ")
            style = "bold #ffffff on #d97706" if name == self.TAB_NAME else "#9ca3af"
            text.append(f" {key} {label} ", style=style)
        return text

    def help_text(self) -> str:
        return ""

    def set_status(self, message: str) -> None:
        self.status_message = message
        self._refresh_status()

    def _refresh_status(self) -> None:
        try:
            line = self.query_one("#status-line", Static)
        except NoMatches:
            return
        text = Text(self.help_text(), style="dim")
        if self.status_message:
            text.append(f"\n{self.status_message}")
        line.update(text)

    def alert(self, title: str, message: str) -> None:
        self.app.push_screen(AlertModal(title, message))

    def visible_rows(self, widget: Static, lines_per_row: int = 1) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height // max(1, lines_per_row))
