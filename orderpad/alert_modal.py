"""Blocking alert and confirmation modal."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Static


class AlertModal(ModalScreen[bool]):
    """Centered message box; dismisses True on confirm, False on cancel."""

    BINDINGS = [
        ("enter", "confirm", "OK"),
        ("y", "confirm", "Yes"),
        ("escape", "cancel", "Cancel"),
        ("n", "cancel", "No"),
        ("q", "cancel", "Close"),
    ]

    CSS = """
    AlertModal {
        align: center middle;
        background: $background 60%;
    }

    #alert-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #alert-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #alert-body {
        color: white;
        margin-bottom: 1;
    }

    #alert-help {
        color: #dddddd;
    }
    """

    def __init__(self, title: str, message: str | Text, confirm: bool = False) -> None:
        super().__init__()
        self.title_text = title
        self.body_text = message
        self.is_confirm = confirm

    def compose(self) -> ComposeResult:
        help_text = "Enter/Y confirm, Esc/N cancel" if self.is_confirm else "Enter/Esc close"
        with Container(id="alert-dialog"):
            yield Static(self.title_text, id="alert-title")
            yield Static(self.body_text, id="alert-body")
            yield Static(help_text, id="alert-help")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
