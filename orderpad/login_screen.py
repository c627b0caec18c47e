"""Branch login screen."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.css.query import NoMatches
from textual.events import Key
from textual.screen import Screen
from textual.widgets import Header, Static

from orderpad.alert_modal import AlertModal
from orderpad.constant import APP_TITLE, MSG_AUTH_FAILED, MSG_FILL_ALL_FIELDS
from orderpad.errors import InvalidCredentialsError, OrderpadError, OrderValidationError
from orderpad.session import SessionStore

logger = logging.getLogger(__name__)

FIELD_EMAIL = "email"
FIELD_PASSWORD = "password"


class LoginScreen(Screen):
    """Typed branch email and password; Enter signs in."""

    BINDINGS = [
        Binding("tab", "switch_field", "Next field", priority=True),
        Binding("shift+tab", "switch_field", "Previous field", priority=True),
    ]

    CSS = """
    LoginScreen {
        align: center middle;
    }

    #login-dialog {
        width: 60;
        height: auto;
        border: round $primary;
        padding: 1 3;
    }

    #login-title {
        text-style: bold;
        color: #d97706;
        content-align: center middle;
        width: 100%;
    }

    #login-subtitle {
        color: $text-muted;
        content-align: center middle;
        width: 100%;
        margin-bottom: 1;
    }

    #login-form {
        margin-bottom: 1;
    }

    #login-help {
        color: $text-muted;
    }
    """

    def __init__(self, store: SessionStore) -> None:
        super().__init__()
        self.store = store
        self.email = ""
        self.password = ""
        self.active_field = FIELD_EMAIL
        self.signing_in = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="login-dialog"):
            yield Static(APP_TITLE, id="login-title")
            yield Static("Branch Login", id="login-subtitle")
            yield Static(id="login-form")
            yield Static("Tab switch field. Enter sign in. Use your branch credentials.", id="login-help")

    def on_mount(self) -> None:
        self._refresh_form()

    def on_key(self, event: Key) -> None:
        if self.signing_in:
            event.stop()
            return

        if event.key == "enter":
            if self.active_field == FIELD_EMAIL and not self.password:
                self.active_field = FIELD_PASSWORD
                self._refresh_form()
            else:
                self.run_worker(self.submit(), exclusive=True)
            event.stop()
            return

        if event.key == "backspace":
            self._set_value(self._value()[:-1])
            event.stop()
            return

        if event.is_printable and event.character:
            self._set_value(self._value() + event.character)
            event.stop()

    def action_switch_field(self) -> None:
        self.active_field = FIELD_PASSWORD if self.active_field == FIELD_EMAIL else FIELD_EMAIL
        self._refresh_form()

    def _value(self) -> str:
        return self.email if self.active_field == FIELD_EMAIL else self.password

    def _set_value(self, value: str) -> None:
        if self.active_field == FIELD_EMAIL:
            self.email = value
        else:
            self.password = value
        self._refresh_form()

    async def submit(self) -> None:
        if not self.email.strip() or not self.password:
            self.app.push_screen(AlertModal("Error", MSG_FILL_ALL_FIELDS))
            return

        self.signing_in = True
        self._refresh_form()
        try:
            await self.store.sign_in_with_branch(self.email, self.password)
        except (InvalidCredentialsError, OrderValidationError) as exc:
            self.app.push_screen(AlertModal("Login Failed", exc.message))
        except OrderpadError as exc:
            logger.error("login_failed error=%s", exc.message)
            self.app.push_screen(AlertModal("Login Failed", exc.message or MSG_AUTH_FAILED))
        else:
            self.password = ""
        finally:
            self.signing_in = False
            self._refresh_form()

    def _refresh_form(self) -> None:
        try:
            form = self.query_one("#login-form", Static)
        except NoMatches:
            return
        text = Text()
        for field, label, shown in (
            (FIELD_EMAIL, "Branch Email", self.email),
            (FIELD_PASSWORD, "Branch Password", "•" * len(self.password)),
        ):
            active = field == self.active_field
            pointer = "➤ " if active else "  "
            text.append(f"{pointer}{label}\n", style="bold" if active else "")
            cursor = "|" if active and not self.signing_in else ""
            text.append(f"    [{shown}{cursor}]\n\n", style="bold white" if active else "white")
        text.append("Signing In..." if self.signing_in else "Sign In (Enter)", style="bold #d97706")
        form.update(text)
