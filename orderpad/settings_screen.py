"""Settings: branch and account info, sign-out."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widgets import Static

from orderpad.alert_modal import AlertModal
from orderpad.base_screen import TabScreen
from orderpad.constant import APP_TITLE, MSG_SIGN_OUT_FAILED
from orderpad.errors import OrderpadError
from orderpad.rendering import format_time
from orderpad.session import SessionStore

logger = logging.getLogger(__name__)


class SettingsScreen(TabScreen):
    TAB_NAME = "settings"

    BINDINGS = [
        ("s", "sign_out", "Sign out"),
    ]

    CSS = """
    #settings-pane {
        height: 1fr;
        border: round $primary;
        padding: 1 2;
    }

    #settings-body {
        height: 1fr;
    }
    """

    def __init__(self, store: SessionStore) -> None:
        super().__init__()
        self.store = store
        self._stop_listening = None

    def compose(self) -> ComposeResult:
        yield from self.compose_chrome()
        with Vertical(id="settings-pane"):
            yield Static("Settings", classes="pane-title")
            yield Static(id="settings-body")
        yield from self.compose_status()

    def on_mount(self) -> None:
        self._stop_listening = self.store.subscribe(lambda _store: self._refresh_body())
        self._refresh_body()
        self._refresh_status()

    def on_unmount(self) -> None:
        if self._stop_listening is not None:
            self._stop_listening()

    def help_text(self) -> str:
        return "S sign out"

    def action_sign_out(self) -> None:
        def _confirmed(confirmed: bool | None) -> None:
            if confirmed:
                self.run_worker(self._sign_out(), exclusive=True)

        self.app.push_screen(AlertModal("Sign Out", "Are you sure you want to sign out?", confirm=True), _confirmed)

    async def _sign_out(self) -> None:
        try:
            await self.store.sign_out()
        except OrderpadError as exc:
            logger.error("sign_out_failed error=%s", exc.message)
            self.alert("Error", MSG_SIGN_OUT_FAILED)

    def _refresh_body(self) -> None:
        try:
            body = self.query_one("#settings-body", Static)
        except NoMatches:
            return

        branch = self.store.branch
        session = self.store.session
        text = Text()
        text.append("Branch Information\n", style="bold #d97706")
        text.append(f"  Branch: {branch.name if branch else '-'}\n")
        text.append(f"  Branch email: {(branch.email if branch else None) or '-'}\n")
        text.append(f"  Since: {format_time(branch.created_at, with_date=True) if branch else '-'}\n\n")
        text.append("Account\n", style="bold #d97706")
        text.append(f"  Signed in as: {(session.email if session else None) or '-'}\n")
        text.append(f"  User id: {session.user_id if session else '-'}\n\n")
        text.append("System\n", style="bold #d97706")
        text.append(f"  {APP_TITLE} Restaurant Management System\n")
        text.append("  Optimized for tablet devices\n")
        if self.store.error:
            text.append(f"\n{self.store.error}", style="#ffb3b3")
        body.update(text)
