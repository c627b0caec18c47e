"""Single-line text entry modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static


class TextPromptModal(ModalScreen[str | None]):
    """Prompt for one line of text: table number, order notes or item notes.

    Dismisses with the trimmed text on Enter, or ``None`` on Esc/Ctrl+C.
    """

    CSS = """
    TextPromptModal {
        align: center middle;
        background: $background 60%;
    }

    #prompt-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #prompt-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #prompt-text {
        color: white;
        margin-bottom: 1;
    }

    #prompt-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #prompt-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #prompt-help {
        color: #dddddd;
    }
    """

    def __init__(
        self,
        title: str,
        prompt: str,
        value: str = "",
        max_length: int = 200,
        required: bool = False,
        required_message: str = "A value is required.",
    ) -> None:
        super().__init__()
        self.title_text = title
        self.prompt_text = prompt
        self.value = value
        self.max_length = max_length
        self.required = required
        self.required_message = required_message
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="prompt-dialog"):
            yield Static(self.title_text, id="prompt-title")
            yield Static(self.prompt_text, id="prompt-text")
            yield Static(id="prompt-value")
            yield Static(id="prompt-error")
            yield Static("Enter confirm. Backspace delete. Ctrl+U clear. Esc/Ctrl+C cancel.", id="prompt-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self.error = ""
                self._refresh_content()
            event.stop()
            return

        if event.key == "ctrl+u":
            self.value = ""
            self.error = ""
            self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            if len(self.value) < self.max_length:
                self.value += event.character
            self.error = ""
            self._refresh_content()
            event.stop()

    def _confirm(self) -> None:
        normalized = self.value.strip()
        if self.required and not normalized:
            self.error = self.required_message
            self._refresh_content()
            return
        self.dismiss(normalized)

    def _refresh_content(self) -> None:
        value_widget = self.query_one("#prompt-value", Static)
        error_widget = self.query_one("#prompt-error", Static)
        value_widget.update(f"{self.value}|")
        error_widget.update(self.error or "")
