"""New order screen: menu browser, cart and submission."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.widgets import Static

from orderpad.alert_modal import AlertModal
from orderpad.base_screen import TabScreen, move_selection, window_bounds
from orderpad.cart import Cart
from orderpad.config import ORDER_NOTES_MAX_LEN, TABLE_NUMBER_MAX_LEN
from orderpad.constant import MSG_NO_TABLE, MSG_ORDER_FAILED, MSG_ORDER_PLACED
from orderpad.errors import BackendError, OrderpadError, OrderValidationError
from orderpad.menu import MenuQuery, MenuSnapshot
from orderpad.models import MenuItem
from orderpad.orders import OrderSubmitter
from orderpad.prompt_modal import TextPromptModal
from orderpad.rendering import format_cart_line, format_menu_item, format_money
from orderpad.session import SessionStore

logger = logging.getLogger(__name__)

PANE_MENU = "menu"
PANE_CART = "cart"


class NewOrderScreen(TabScreen):
    """Compose an order from the menu and send it to the kitchen."""

    TAB_NAME = "new_order"

    BINDINGS = [
        Binding("tab", "switch_pane", "Switch pane", priority=True),
        ("left", "cycle_category(-1)", "Previous category"),
        ("h", "cycle_category(-1)", "Previous category"),
        ("right", "cycle_category(1)", "Next category"),
        ("l", "cycle_category(1)", "Next category"),
        ("j", "move_selection(1)", "Next"),
        ("down", "move_selection(1)", "Next"),
        ("k", "move_selection(-1)", "Previous"),
        ("up", "move_selection(-1)", "Previous"),
        ("enter", "activate", "Add / notes"),
        ("plus", "increment", "Quantity +1"),
        ("equals_sign", "increment", "Quantity +1"),
        ("minus", "decrement", "Quantity -1"),
        ("n", "edit_item_notes", "Item notes"),
        ("d", "remove_item", "Remove item"),
        ("t", "edit_table_number", "Table number"),
        ("o", "edit_order_notes", "Order notes"),
        ("r", "reload_menu", "Reload menu"),
        Binding("ctrl+s", "place_order", "Place order", priority=True),
    ]

    CSS = """
    #order-layout {
        height: 1fr;
    }

    #menu-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #cart-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #category-bar {
        height: 2;
    }

    #menu-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #order-form {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(self, store: SessionStore, menu_query: MenuQuery, submitter: OrderSubmitter) -> None:
        super().__init__()
        self.store = store
        self.menu_query = menu_query
        self.submitter = submitter
        self.cart = Cart()
        self.menu: MenuSnapshot | None = None
        self.menu_loading = True
        self.category_index = 0
        self.menu_selected_index: int | None = None
        self.cart_selected_index: int | None = None
        self.active_pane = PANE_MENU
        self.table_number = ""
        self.order_notes = ""

    def compose(self) -> ComposeResult:
        yield from self.compose_chrome()
        with Horizontal(id="order-layout"):
            with Vertical(id="menu-pane"):
                yield Static("Menu", classes="pane-title")
                yield Static(id="category-bar")
                yield Static("Loading menu...", id="menu-list")
            with Vertical(id="cart-pane"):
                yield Static(id="cart-title", classes="pane-title")
                yield Static("(cart is empty)", id="cart-list")
                yield Static(id="order-form")
        yield from self.compose_status()

    def on_mount(self) -> None:
        self._refresh_all()
        self.run_worker(self.action_reload_menu(), exclusive=True)

    def help_text(self) -> str:
        return "←/→ category, J/K move, Tab pane, Enter add/notes, +/- qty, D remove, T table, O notes, Ctrl+S place order"

    # Menu

    async def action_reload_menu(self) -> None:
        self.menu_loading = True
        self._refresh_menu()
        result = await self.menu_query.fetch()
        self.menu_loading = False
        if not result.ok:
            self.set_status(f"Could not load menu: {result.error}")
            self._refresh_menu()
            return
        self.menu = result.data
        self.category_index = 0
        self.menu_selected_index = 0 if self._menu_items() else None
        self.set_status("Menu is empty" if result.is_empty else "")
        self._refresh_all()

    def _active_category_id(self) -> str | None:
        if self.menu is None or not self.menu.categories:
            return None
        index = min(self.category_index, len(self.menu.categories) - 1)
        return self.menu.categories[index].id

    def _menu_items(self) -> list[MenuItem]:
        if self.menu is None:
            return []
        return self.menu.items_in(self._active_category_id())

    def _selected_menu_item(self) -> MenuItem | None:
        items = self._menu_items()
        if self.menu_selected_index is None or not (0 <= self.menu_selected_index < len(items)):
            return None
        return items[self.menu_selected_index]

    def action_cycle_category(self, delta: int) -> None:
        if self.menu is None or not self.menu.categories:
            return
        self.category_index = (self.category_index + delta) % len(self.menu.categories)
        self.menu_selected_index = 0 if self._menu_items() else None
        self._refresh_menu()

    # Selection

    def action_switch_pane(self) -> None:
        self.active_pane = PANE_CART if self.active_pane == PANE_MENU else PANE_MENU
        if self.active_pane == PANE_CART and self.cart_selected_index is None and not self.cart.is_empty:
            self.cart_selected_index = 0
        self._refresh_all()

    def action_move_selection(self, delta: int) -> None:
        if self.active_pane == PANE_MENU:
            self.menu_selected_index = move_selection(self.menu_selected_index, delta, len(self._menu_items()))
            self._refresh_menu()
        else:
            self.cart_selected_index = move_selection(self.cart_selected_index, delta, len(self.cart))
            self._refresh_cart()

    def _selected_cart_id(self) -> str | None:
        entries = self.cart.items
        if self.cart_selected_index is None or not (0 <= self.cart_selected_index < len(entries)):
            return None
        return entries[self.cart_selected_index].id

    # Cart

    def action_activate(self) -> None:
        if self.active_pane == PANE_MENU:
            item = self._selected_menu_item()
            if item is not None:
                self.cart.add(item)
                self._refresh_all()
            return
        self.action_edit_item_notes()

    def action_increment(self) -> None:
        if self.active_pane == PANE_MENU:
            self.action_activate()
            return
        item_id = self._selected_cart_id()
        if item_id is not None:
            self.cart.increment(item_id)
            self._refresh_all()

    def action_decrement(self) -> None:
        if self.active_pane == PANE_MENU:
            item = self._selected_menu_item()
            item_id = item.id if item is not None else None
        else:
            item_id = self._selected_cart_id()
        if item_id is None:
            return
        self.cart.decrement(item_id)
        self._refresh_all()

    def action_remove_item(self) -> None:
        item_id = self._selected_cart_id()
        if self.active_pane != PANE_CART or item_id is None:
            return
        self.cart.remove(item_id)
        self._refresh_all()

    def action_edit_item_notes(self) -> None:
        item_id = self._selected_cart_id()
        if self.active_pane != PANE_CART or item_id is None:
            return
        entry = next(entry for entry in self.cart.items if entry.id == item_id)

        def _apply(notes: str | None) -> None:
            if notes is None:
                return
            self.cart.set_notes(item_id, notes)
            self._refresh_cart()

        self.app.push_screen(
            TextPromptModal(entry.menu_item.name, "Special instructions", value=entry.notes, max_length=ORDER_NOTES_MAX_LEN),
            _apply,
        )

    # Order form

    def action_edit_table_number(self) -> None:
        def _apply(value: str | None) -> None:
            if value is None:
                return
            self.table_number = value
            self._refresh_form()

        self.app.push_screen(
            TextPromptModal(
                "Table Number",
                "Enter the table number",
                value=self.table_number,
                max_length=TABLE_NUMBER_MAX_LEN,
                required=True,
                required_message=MSG_NO_TABLE,
            ),
            _apply,
        )

    def action_edit_order_notes(self) -> None:
        def _apply(value: str | None) -> None:
            if value is None:
                return
            self.order_notes = value
            self._refresh_form()

        self.app.push_screen(
            TextPromptModal("Order Notes", "Notes for the whole order", value=self.order_notes, max_length=ORDER_NOTES_MAX_LEN),
            _apply,
        )

    async def action_place_order(self) -> None:
        if self.submitter.in_flight:
            return
        try:
            order = await self.submitter.submit(self.store.branch, self.table_number, self.cart, self.order_notes)
        except OrderValidationError as exc:
            logger.info("submit_blocked reason=%r", exc.message)
            self.app.push_screen(AlertModal("Error", exc.message))
            return
        except BackendError as exc:
            logger.error("submit_failed error=%s", exc.message)
            self.app.push_screen(AlertModal("Error", f"{MSG_ORDER_FAILED}\n{exc.message}"))
            return
        except OrderpadError as exc:
            self.set_status(exc.message)
            return

        self.cart.clear()
        self.table_number = ""
        self.order_notes = ""
        self.cart_selected_index = None
        self.set_status(f"Placed order for table {order.table_number}: {format_money(order.total_amount)}")
        self._refresh_all()
        self.app.push_screen(AlertModal("Success", MSG_ORDER_PLACED))

    # Rendering

    def _refresh_all(self) -> None:
        self._refresh_menu()
        self._refresh_cart()
        self._refresh_form()
        self._refresh_status()

    def _refresh_menu(self) -> None:
        try:
            bar = self.query_one("#category-bar", Static)
            menu_widget = self.query_one("#menu-list", Static)
        except NoMatches:
            return

        categories = self.menu.categories if self.menu is not None else ()
        bar_text = Text()
        for idx, category in enumerate(categories):
            if idx > 0:
                bar_text.append(" ")
            active = category.id == self._active_category_id()
            style = "bold #ffffff on #d97706" if active else "#9ca3af"
            bar_text.append(f" {category.name} ", style=style)
        bar.update(bar_text)

        if self.menu_loading:
            menu_widget.update("Loading menu...")
            return
        items = self._menu_items()
        if not items:
            menu_widget.update("No items in this category")
            return

        focused = self.active_pane == PANE_MENU
        start, end = window_bounds(len(items), self.visible_rows(menu_widget), self.menu_selected_index)
        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if focused and idx == self.menu_selected_index else "  "
            lines.append(pointer)
            lines.append_text(format_menu_item(items[idx], self.cart.quantity_of(items[idx].id)))
        if end < len(items):
            lines.append("\n⋮", style="dim")
        menu_widget.update(lines)

    def _refresh_cart(self) -> None:
        try:
            title = self.query_one("#cart-title", Static)
            cart_widget = self.query_one("#cart-list", Static)
        except NoMatches:
            return

        title.update(f"Cart ({self.cart.item_count})")
        entries = self.cart.items
        if not entries:
            self.cart_selected_index = None
            cart_widget.update("(cart is empty)")
            return
        if self.cart_selected_index is not None and self.cart_selected_index >= len(entries):
            self.cart_selected_index = len(entries) - 1

        focused = self.active_pane == PANE_CART
        start, end = window_bounds(len(entries), self.visible_rows(cart_widget, lines_per_row=2), self.cart_selected_index)
        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if focused and idx == self.cart_selected_index else "  "
            lines.append(pointer)
            lines.append_text(format_cart_line(entries[idx]))
        if end < len(entries):
            lines.append("\n⋮", style="dim")
        cart_widget.update(lines)

    def _refresh_form(self) -> None:
        try:
            form = self.query_one("#order-form", Static)
        except NoMatches:
            return
        text = Text()
        text.append("Table: ")
        text.append(self.table_number or "(press T)", style="bold" if self.table_number else "dim")
        text.append("\nNotes: ")
        text.append(self.order_notes or "(press O)", style="" if self.order_notes else "dim")
        text.append("\nTotal: ")
        text.append(format_money(self.cart.total), style="bold #d97706")
        text.append("\nCtrl+S place order", style="dim")
        form.update(text)
