"""Order details modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Static

from orderpad.models import OrderWithItems
from orderpad.rendering import format_money, format_order_lines, format_status_badge, format_time


class OrderDetailsModal(ModalScreen[None]):
    """Read-only view of one order and its lines."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("enter", "close", "Close"),
    ]

    CSS = """
    OrderDetailsModal {
        align: center middle;
        background: $background 60%;
    }

    #details-dialog {
        width: 72;
        height: auto;
        max-height: 90%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #details-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #details-body {
        color: white;
    }

    #details-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, entry: OrderWithItems) -> None:
        super().__init__()
        self.entry = entry

    def compose(self) -> ComposeResult:
        with Container(id="details-dialog"):
            yield Static("Order Details", id="details-title")
            yield Static(id="details-body")
            yield Static("Esc / q / Enter to close", id="details-help")

    def on_mount(self) -> None:
        order = self.entry.order
        body = Text()
        body.append(f"Table {order.table_number}", style="bold")
        body.append(f"  {format_time(order.created_at, with_date=True)}  ", style="dim")
        body.append_text(format_status_badge(order.status))
        body.append("\n\n")
        body.append_text(format_order_lines(self.entry))
        if order.notes:
            body.append(f"\n\nOrder notes: {order.notes}", style="italic")
        body.append(f"\n\nTotal: {format_money(order.total_amount)}", style="bold")
        self.query_one("#details-body", Static).update(body)

    def action_close(self) -> None:
        self.dismiss()
