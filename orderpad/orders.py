"""Order submission and the branch order feed."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from orderpad.cart import Cart
from orderpad.constant import MSG_EMPTY_CART, MSG_NO_BRANCH, MSG_NO_TABLE
from orderpad.errors import (
    BackendError,
    OrderValidationError,
    RowFormatError,
    StatusTransitionError,
    SubmissionInProgressError,
)
from orderpad.models import Branch, Order, OrderChange, OrderStatus, OrderWithItems, money_to_wire, parse_rows
from orderpad.results import FetchResult

logger = logging.getLogger(__name__)

FeedListener = Callable[["OrderFeed"], None]

CHANGE_INSERT = "INSERT"
CHANGE_UPDATE = "UPDATE"
CHANGE_DELETE = "DELETE"


class OrderSubmitter:
    """Write an order header and its lines as one unit.

    Preconditions are checked before any write. Only one submission runs at
    a time; a second call while one is in flight is rejected. When the lines
    cannot be written the header is deleted again, so no order is left
    without items.
    """

    def __init__(self, backend) -> None:
        self.backend = backend
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def submit(self, branch: Branch | None, table_number: str, cart: Cart, notes: str = "") -> Order:
        if branch is None:
            raise OrderValidationError(MSG_NO_BRANCH)
        table_number = table_number.strip()
        if not table_number:
            raise OrderValidationError(MSG_NO_TABLE)
        if cart.is_empty:
            raise OrderValidationError(MSG_EMPTY_CART)
        if self._in_flight:
            raise SubmissionInProgressError()

        self._in_flight = True
        try:
            return await self._write(branch, table_number, cart, notes.strip())
        finally:
            self._in_flight = False

    async def _write(self, branch: Branch, table_number: str, cart: Cart, notes: str) -> Order:
        entries = cart.items
        header = await self.backend.insert_order(
            {
                "branch_id": branch.id,
                "table_number": table_number,
                "total_amount": money_to_wire(cart.total),
                "notes": notes,
                "status": OrderStatus.NEW.value,
            }
        )
        order = Order.from_row(header)

        lines = [
            {
                "order_id": order.id,
                "menu_item_id": entry.menu_item.id,
                "quantity": entry.quantity,
                "unit_price": money_to_wire(entry.menu_item.price),
                "notes": entry.notes,
            }
            for entry in entries
        ]
        try:
            await self.backend.insert_order_items(lines)
        except BackendError:
            logger.error("submit_items_failed order_id=%s rows=%d rolling_back", order.id, len(lines))
            try:
                await self.backend.delete_order(order.id)
            except BackendError as rollback_exc:
                logger.error("rollback_failed order_id=%s error=%s", order.id, rollback_exc.message)
            raise

        logger.info(
            "submit_saved order_id=%s branch_id=%s table=%s rows=%d total=%s",
            order.id,
            branch.id,
            table_number,
            len(lines),
            order.total_amount,
        )
        return order


class OrderFeed:
    """Newest-first orders of one branch, kept fresh by the change feed.

    Any change event schedules a full re-fetch. Update and delete events are
    also applied to the local list straight away, keyed by order id, so
    subscribers see status moves without waiting for the fetch.
    """

    def __init__(self, backend, channel_name: str) -> None:
        self.backend = backend
        self.channel_name = channel_name
        self.branch: Branch | None = None
        self.orders: list[OrderWithItems] = []
        self.last_result: FetchResult[list[OrderWithItems]] | None = None
        self._listeners: list[FeedListener] = []
        self._unsubscribe: Callable[[], Awaitable[None]] | None = None
        self._pending: set[asyncio.Task] = set()

    def subscribe(self, listener: FeedListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def start(self, branch: Branch) -> FetchResult[list[OrderWithItems]]:
        """Follow the branch's change feed, then load its orders."""
        await self.stop()
        self.branch = branch
        try:
            self._unsubscribe = await self.backend.subscribe_orders(self.channel_name, branch.id, self.handle_change)
        except BackendError as exc:
            # The list still loads; it just needs manual refreshes.
            logger.error("orders_subscribe_failed channel=%s error=%s", self.channel_name, exc.message)
        return await self.refresh()

    @property
    def live(self) -> bool:
        return self._unsubscribe is not None

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            await unsubscribe()
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()

    async def refresh(self) -> FetchResult[list[OrderWithItems]]:
        """Re-fetch every order for the branch; keeps the old list on failure."""
        if self.branch is None:
            return FetchResult.failure(MSG_NO_BRANCH)

        try:
            rows = await self.backend.fetch_orders(self.branch.id)
        except BackendError as exc:
            logger.error("orders_fetch_failed branch_id=%s error=%s", self.branch.id, exc.message)
            self.last_result = FetchResult.failure(exc.message)
            self._notify()
            return self.last_result

        try:
            orders = parse_rows(OrderWithItems, rows)
        except RowFormatError as exc:
            logger.error("orders_parse_failed branch_id=%s error=%s", self.branch.id, exc.message)
            self.last_result = FetchResult.failure(exc.message)
            self._notify()
            return self.last_result

        orders.sort(key=lambda entry: entry.order.created_at.timestamp() if entry.order.created_at else 0.0, reverse=True)
        self.orders = orders
        self.last_result = FetchResult.success(orders)
        self._notify()
        return self.last_result

    def handle_change(self, change: OrderChange) -> None:
        """Apply a pushed change locally and schedule a confirming re-fetch."""
        logger.info("order_change event=%s order_id=%s", change.event, change.order_id)
        if change.event == CHANGE_DELETE and change.order_id is not None:
            self.orders = [entry for entry in self.orders if entry.id != change.order_id]
            self._notify()
        elif change.event == CHANGE_UPDATE and change.order_id is not None:
            try:
                patched = [
                    entry.with_header(change.record) if entry.id == change.order_id else entry for entry in self.orders
                ]
            except RowFormatError as exc:
                logger.error("order_change_unreadable order_id=%s error=%s", change.order_id, exc.message)
            else:
                self.orders = patched
                self._notify()
        self._schedule_refresh()

    def _schedule_refresh(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_idle(self) -> None:
        """Wait for change-triggered re-fetches that are still running."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def find(self, order_id: str) -> OrderWithItems | None:
        for entry in self.orders:
            if entry.id == order_id:
                return entry
        return None

    def grouped(self) -> dict[OrderStatus, list[OrderWithItems]]:
        """Split orders into status columns, each newest first."""
        groups: dict[OrderStatus, list[OrderWithItems]] = {status: [] for status in OrderStatus}
        for entry in self.orders:
            groups[entry.status].append(entry)
        return groups

    async def update_status(self, order_id: str, status: OrderStatus | str) -> None:
        """Write a new status for one order."""
        try:
            value = OrderStatus(status)
        except ValueError as exc:
            raise StatusTransitionError(f"Unknown order status: {status}") from exc
        await self.backend.update_order_status(order_id, value.value)
        logger.info("order_status_written order_id=%s status=%s", order_id, value.value)

    async def advance_status(self, entry: OrderWithItems) -> OrderStatus:
        """Move an order one step along New -> Preparing -> Ready."""
        following = entry.status.next
        if following is None:
            raise StatusTransitionError(f"Order for table {entry.order.table_number} is already {entry.status.value}")
        await self.update_status(entry.id, following)
        return following
