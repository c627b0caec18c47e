from __future__ import annotations

import asyncio
import itertools
from datetime import datetime, timedelta, timezone

import pytest

from orderpad.errors import BackendError
from orderpad.models import AuthSession, Branch, OrderChange

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeBackend:
    """In-memory stand-in for SupabaseBackend with the same method set."""

    def __init__(self) -> None:
        self.branches: list[dict] = []
        self.branch_sessions: dict[str, str] = {}
        self.categories: list[dict] = []
        self.menu_items: list[dict] = []
        self.orders: dict[str, dict] = {}
        self.order_items: list[dict] = []
        self.users: dict[str, tuple[str, str]] = {}
        self.session: AuthSession | None = None
        self.writes: list[tuple[str, object]] = []
        self.auth_calls: list[tuple[str, str]] = []
        self.fail: set[str] = set()
        self.insert_gate: asyncio.Event | None = None
        self._auth_listeners: list = []
        self._change_listeners: dict[str, tuple[str, object]] = {}
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    def _check(self, name: str) -> None:
        if name in self.fail:
            raise BackendError(f"{name} failed")

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def _now(self) -> str:
        return (BASE_TIME + timedelta(minutes=next(self._clock))).isoformat()

    def _emit(self, branch_id: str, change: OrderChange) -> None:
        for listener_branch, listener in list(self._change_listeners.values()):
            if listener_branch == branch_id:
                listener(change)

    def _emit_auth(self, event: str) -> None:
        for listener in list(self._auth_listeners):
            listener(event, self.session)

    # Auth

    async def get_session(self) -> AuthSession | None:
        self._check("get_session")
        return self.session

    async def sign_in(self, email: str, password: str) -> AuthSession | None:
        self.auth_calls.append(("sign_in", email))
        self._check("sign_in")
        user = self.users.get(email)
        if user is None or user[1] != password:
            return None
        self.session = AuthSession(user_id=user[0], email=email, access_token="token")
        return self.session

    async def sign_up(self, email: str, password: str) -> AuthSession | None:
        self.auth_calls.append(("sign_up", email))
        self._check("sign_up")
        if email in self.users:
            return None
        self.users[email] = (self._next_id("user"), password)
        return await self.sign_in(email, password)

    async def sign_out(self) -> None:
        self.auth_calls.append(("sign_out", ""))
        self._check("sign_out")
        self.session = None
        self._emit_auth("SIGNED_OUT")

    def on_auth_state_change(self, listener):
        self._auth_listeners.append(listener)

        def _unsubscribe() -> None:
            self._auth_listeners.remove(listener)

        return _unsubscribe

    # Branches

    async def find_branch_by_email(self, email: str) -> dict | None:
        self._check("find_branch_by_email")
        return next((row for row in self.branches if row.get("email") == email), None)

    async def find_branch_for_user(self, user_id: str) -> dict | None:
        self._check("find_branch_for_user")
        branch_id = self.branch_sessions.get(user_id)
        return next((row for row in self.branches if row["id"] == branch_id), None)

    async def upsert_branch_session(self, user_id: str, branch_id: str) -> None:
        self._check("upsert_branch_session")
        self.writes.append(("branch_sessions", {"user_id": user_id, "branch_id": branch_id}))
        self.branch_sessions[user_id] = branch_id

    # Menu

    async def fetch_categories(self) -> list[dict]:
        self._check("fetch_categories")
        return sorted(self.categories, key=lambda row: row["display_order"])

    async def fetch_available_items(self) -> list[dict]:
        self._check("fetch_available_items")
        return [row for row in self.menu_items if row["available"]]

    # Orders

    async def insert_order(self, row: dict) -> dict:
        if self.insert_gate is not None:
            await self.insert_gate.wait()
        self._check("insert_order")
        stamp = self._now()
        stored = {"id": self._next_id("order"), "created_at": stamp, "updated_at": stamp, **row}
        self.orders[stored["id"]] = stored
        self.writes.append(("orders", stored))
        self._emit(stored["branch_id"], OrderChange("INSERT", record=dict(stored)))
        return dict(stored)

    async def insert_order_items(self, rows: list[dict]) -> list[dict]:
        self._check("insert_order_items")
        stored = [{"id": self._next_id("item"), **row} for row in rows]
        self.order_items.extend(stored)
        self.writes.append(("order_items", stored))
        return stored

    async def delete_order(self, order_id: str) -> None:
        self._check("delete_order")
        row = self.orders.pop(order_id, None)
        self.order_items = [item for item in self.order_items if item["order_id"] != order_id]
        self.writes.append(("delete_order", order_id))
        if row is not None:
            self._emit(row["branch_id"], OrderChange("DELETE", old_record={"id": order_id}))

    async def fetch_orders(self, branch_id: str) -> list[dict]:
        self._check("fetch_orders")
        menu_by_id = {row["id"]: row for row in self.menu_items}
        result = []
        for order in self.orders.values():
            if order["branch_id"] != branch_id:
                continue
            items = [
                {**item, "menu_items": menu_by_id.get(item["menu_item_id"])}
                for item in self.order_items
                if item["order_id"] == order["id"]
            ]
            result.append({**order, "order_items": items})
        result.sort(key=lambda row: row["created_at"], reverse=True)
        return result

    async def update_order_status(self, order_id: str, status: str) -> None:
        self._check("update_order_status")
        row = self.orders[order_id]
        row["status"] = status
        row["updated_at"] = self._now()
        self.writes.append(("update_status", (order_id, status)))
        self._emit(row["branch_id"], OrderChange("UPDATE", record=dict(row)))

    # Realtime

    async def subscribe_orders(self, channel_name: str, branch_id: str, listener):
        self._check("subscribe_orders")
        self._change_listeners[channel_name] = (branch_id, listener)

        async def _unsubscribe() -> None:
            self._change_listeners.pop(channel_name, None)

        return _unsubscribe


def menu_item_row(item_id: str, name: str, price: float, category_id: str = "cat-1", available: bool = True) -> dict:
    return {
        "id": item_id,
        "category_id": category_id,
        "name": name,
        "description": "",
        "price": price,
        "available": available,
        "image_url": None,
    }


@pytest.fixture
def backend() -> FakeBackend:
    fake = FakeBackend()
    fake.branches = [
        {"id": "branch-cardiff", "name": "Cardiff", "email": "cardiff@tasteofpeshawar.com", "created_at": "2024-01-01T00:00:00Z"},
        {"id": "branch-wembley", "name": "Wembley", "email": "wembley@tasteofpeshawar.com", "created_at": "2024-01-01T00:00:00Z"},
    ]
    fake.categories = [
        {"id": "cat-2", "name": "Curries", "display_order": 2},
        {"id": "cat-1", "name": "Starters", "display_order": 1},
    ]
    fake.menu_items = [
        menu_item_row("item-a", "Samosa", 5.00, "cat-1"),
        menu_item_row("item-b", "Pakora", 3.50, "cat-1"),
        menu_item_row("item-c", "Karahi", 12.95, "cat-2"),
        menu_item_row("item-d", "Seasonal Special", 9.00, "cat-2", available=False),
    ]
    return fake


@pytest.fixture
def cardiff(backend: FakeBackend) -> Branch:
    return Branch.from_row(backend.branches[0])
