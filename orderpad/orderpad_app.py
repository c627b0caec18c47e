"""Main Textual app class."""

from __future__ import annotations

import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen, Screen
from textual.widgets import Header, Static

from orderpad.auth import BranchSignIn
from orderpad.backend import SupabaseBackend
from orderpad.config import DASHBOARD_CHANNEL, ORDERS_LIST_CHANNEL, BackendSettings
from orderpad.constant import APP_SUB_TITLE, APP_TITLE
from orderpad.dashboard_screen import DashboardScreen
from orderpad.errors import OrderpadError
from orderpad.login_screen import LoginScreen
from orderpad.menu import MenuQuery
from orderpad.models import Branch
from orderpad.new_order_screen import NewOrderScreen
from orderpad.orders import OrderFeed, OrderSubmitter
from orderpad.orders_screen import OrdersScreen
from orderpad.session import SessionStore
from orderpad.settings_screen import SettingsScreen

logger = logging.getLogger(__name__)

GATE_LOADING = "loading"
GATE_LOGIN = "login"
GATE_MAIN = "main"


class OrderpadApp(App):
    """Branch order client: login, dashboard, new order, orders and settings."""

    TITLE = APP_TITLE
    SUB_TITLE = APP_SUB_TITLE

    CSS = """
    #boot-status {
        width: 100%;
        height: 1fr;
        content-align: center middle;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("f1", "show_tab('dashboard')", "Dashboard"),
        Binding("f2", "show_tab('new_order')", "New Order"),
        Binding("f3", "show_tab('orders')", "Orders"),
        Binding("f4", "show_tab('settings')", "Settings"),
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(self, settings: BackendSettings | None = None, backend=None) -> None:
        super().__init__()
        self.settings = settings
        self.backend = backend
        self.store: SessionStore | None = None
        self.menu_query: MenuQuery | None = None
        self.submitter: OrderSubmitter | None = None
        self.dashboard_feed: OrderFeed | None = None
        self.orders_feed: OrderFeed | None = None
        self._gate = GATE_LOADING
        self._gate_branch: Branch | None = None
        self._tabs: dict[str, str] = {}
        self._generation = 0

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("Loading...", id="boot-status")

    async def on_mount(self) -> None:
        if self.backend is None:
            if self.settings is None:
                raise RuntimeError("OrderpadApp needs backend settings or a backend")
            try:
                self.backend = await SupabaseBackend.connect(self.settings)
            except OrderpadError as exc:
                logger.error("backend_connect_failed error=%s", exc.message)
                self.query_one("#boot-status", Static).update(f"Could not reach the backend: {exc.message}")
                return

        provision = self.settings.provision_on_first_use if self.settings is not None else True
        self.store = SessionStore(self.backend, BranchSignIn(self.backend, provision_on_first_use=provision))
        self.menu_query = MenuQuery(self.backend)
        self.submitter = OrderSubmitter(self.backend)
        self.dashboard_feed = OrderFeed(self.backend, DASHBOARD_CHANNEL)
        self.orders_feed = OrderFeed(self.backend, ORDERS_LIST_CHANNEL)

        self.store.subscribe(self._on_session_change)
        await self.store.initialize()

    def _on_session_change(self, store: SessionStore) -> None:
        if store.loading:
            target = GATE_LOADING
        elif store.is_authenticated and store.branch is not None:
            target = GATE_MAIN
        else:
            target = GATE_LOGIN

        if target == self._gate and (target != GATE_MAIN or store.branch == self._gate_branch):
            return

        logger.info("gate_change from=%s to=%s", self._gate, target)
        previous = self._gate
        self._gate = target
        self._gate_branch = store.branch if target == GATE_MAIN else None
        if target == GATE_MAIN:
            self.run_worker(self._enter_branch(store.branch), exclusive=True, group="gate")
        elif target == GATE_LOGIN:
            self.run_worker(self._leave_branch(show_login=True), exclusive=True, group="gate")
        elif previous == GATE_MAIN:
            self.run_worker(self._leave_branch(show_login=False), exclusive=True, group="gate")

    async def _clear_modals(self) -> None:
        while isinstance(self.screen, ModalScreen):
            await self.pop_screen()

    async def _show(self, screen: Screen | str) -> None:
        # The boot screen stays at the bottom of the stack.
        if len(self.screen_stack) <= 1:
            await self.push_screen(screen)
        else:
            await self.switch_screen(screen)

    async def _enter_branch(self, branch: Branch) -> None:
        await self._stop_feeds()
        previous_tabs = list(self._tabs.values())
        self._generation += 1

        screens = {
            "dashboard": DashboardScreen(self.dashboard_feed),
            "new_order": NewOrderScreen(self.store, self.menu_query, self.submitter),
            "orders": OrdersScreen(self.orders_feed),
            "settings": SettingsScreen(self.store),
        }
        self._tabs = {}
        for tab, screen in screens.items():
            installed_name = f"{tab}-{self._generation}"
            self.install_screen(screen, name=installed_name)
            self._tabs[tab] = installed_name

        await self._clear_modals()
        await self._show(self._tabs["dashboard"])
        await self._discard(previous_tabs)
        logger.info("branch_entered branch_id=%s", branch.id)

        for feed in (self.dashboard_feed, self.orders_feed):
            result = await feed.start(branch)
            if not result.ok:
                logger.error("feed_start_failed channel=%s error=%s", feed.channel_name, result.error)

    async def _leave_branch(self, show_login: bool) -> None:
        await self._stop_feeds()
        await self._clear_modals()
        if not show_login:
            return
        await self._show(LoginScreen(self.store))
        if self.store is not None and self.store.error:
            self.notify(self.store.error, severity="error")
        await self._discard(list(self._tabs.values()))
        self._tabs = {}

    async def _discard(self, names: list[str]) -> None:
        """Uninstall tab screens that are off the stack and unmount them."""
        for name in names:
            if not self.is_screen_installed(name):
                continue
            screen = self.get_screen(name)
            if screen in self.screen_stack:
                continue
            self.uninstall_screen(name)
            if screen.is_attached:
                await screen.remove()

    async def _stop_feeds(self) -> None:
        for feed in (self.dashboard_feed, self.orders_feed):
            if feed is not None:
                await feed.stop()

    async def action_show_tab(self, name: str) -> None:
        if self._gate != GATE_MAIN or name not in self._tabs:
            return
        await self._clear_modals()
        await self.switch_screen(self._tabs[name])

    async def action_quit(self) -> None:
        await self._stop_feeds()
        if self.store is not None:
            await self.store.close()
        self.exit()
