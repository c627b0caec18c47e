"""Gateway to the hosted Supabase backend.

All reads and writes against the database, the auth service and the realtime
change feed go through :class:`SupabaseBackend`. Callers receive plain row
dicts and orderpad models; SDK and transport exceptions are converted to
:class:`~orderpad.errors.BackendError`.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

import httpx
from supabase import AsyncClient, AuthError, PostgrestAPIError, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from orderpad.config import BackendSettings
from orderpad.errors import BackendError
from orderpad.models import AuthSession, OrderChange, Row

logger = logging.getLogger(__name__)

ORDER_WITH_ITEMS_SELECT = "*, order_items(*, menu_items(*))"
BRANCH_SESSION_SELECT = "branch_id, branches(id, name, email, created_at)"

AuthListener = Callable[[str, "AuthSession | None"], None]
ChangeListener = Callable[[OrderChange], None]
Unsubscribe = Callable[[], Awaitable[None]]

_BACKEND_ERRORS = (PostgrestAPIError, AuthError, httpx.HTTPError)


def _error_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or exc.__class__.__name__


def _to_auth_session(session: Any) -> AuthSession | None:
    if session is None or getattr(session, "user", None) is None:
        return None
    return AuthSession(
        user_id=str(session.user.id),
        email=getattr(session.user, "email", None),
        access_token=getattr(session, "access_token", None),
    )


def _to_order_change(payload: Any) -> OrderChange:
    data = payload.get("data", payload) if isinstance(payload, dict) else {}
    event = data.get("type") or data.get("eventType") or ""
    record = data.get("record") or data.get("new") or {}
    old_record = data.get("old_record") or data.get("old") or {}
    return OrderChange(event=str(event).upper(), record=dict(record), old_record=dict(old_record))


class SupabaseBackend:
    """Async data, auth and realtime calls for one client process."""

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    @classmethod
    async def connect(cls, settings: BackendSettings) -> SupabaseBackend:
        """Create the SDK client from settings read at startup."""
        options = AsyncClientOptions(auto_refresh_token=True, persist_session=True)
        try:
            client = await acreate_client(settings.url, settings.anon_key, options=options)
        except Exception as exc:
            raise BackendError(_error_message(exc)) from exc
        logger.info("backend_connected url=%s", settings.url)
        return cls(client)

    async def _execute(self, label: str, query: Any) -> list[Row]:
        try:
            response = await query.execute()
        except _BACKEND_ERRORS as exc:
            logger.error("backend_failed call=%s error=%r", label, exc)
            raise BackendError(_error_message(exc)) from exc
        data = response.data if response is not None else None
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return list(data)

    # Auth

    async def get_session(self) -> AuthSession | None:
        try:
            session = await self.client.auth.get_session()
        except _BACKEND_ERRORS as exc:
            raise BackendError(_error_message(exc)) from exc
        return _to_auth_session(session)

    async def sign_in(self, email: str, password: str) -> AuthSession | None:
        """Sign in with password; return None when the credentials are rejected."""
        try:
            response = await self.client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as exc:
            logger.info("auth_sign_in_rejected email=%s error=%r", email, exc)
            return None
        except httpx.HTTPError as exc:
            raise BackendError(_error_message(exc)) from exc
        return _to_auth_session(response.session)

    async def sign_up(self, email: str, password: str) -> AuthSession | None:
        """Register a backend user; return its session if one was issued."""
        try:
            response = await self.client.auth.sign_up({"email": email, "password": password})
        except AuthError as exc:
            logger.info("auth_sign_up_rejected email=%s error=%r", email, exc)
            return None
        except httpx.HTTPError as exc:
            raise BackendError(_error_message(exc)) from exc
        return _to_auth_session(response.session)

    async def sign_out(self) -> None:
        try:
            await self.client.auth.sign_out()
        except _BACKEND_ERRORS as exc:
            raise BackendError(_error_message(exc)) from exc

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Forward auth events; returns a function that stops forwarding."""

        def _forward(event: Any, session: Any) -> None:
            listener(str(getattr(event, "value", event)), _to_auth_session(session))

        subscription = self.client.auth.on_auth_state_change(_forward)
        return subscription.unsubscribe

    # Branches

    async def find_branch_by_email(self, email: str) -> Row | None:
        rows = await self._execute(
            "find_branch_by_email",
            self.client.table("branches").select("*").eq("email", email).limit(1),
        )
        return rows[0] if rows else None

    async def find_branch_for_user(self, user_id: str) -> Row | None:
        rows = await self._execute(
            "find_branch_for_user",
            self.client.table("branch_sessions").select(BRANCH_SESSION_SELECT).eq("user_id", user_id).limit(1),
        )
        if not rows:
            return None
        return rows[0].get("branches")

    async def upsert_branch_session(self, user_id: str, branch_id: str) -> None:
        await self._execute(
            "upsert_branch_session",
            self.client.table("branch_sessions").upsert(
                {"user_id": user_id, "branch_id": branch_id},
                on_conflict="user_id",
            ),
        )

    # Menu

    async def fetch_categories(self) -> list[Row]:
        return await self._execute(
            "fetch_categories",
            self.client.table("menu_categories").select("*").order("display_order"),
        )

    async def fetch_available_items(self) -> list[Row]:
        return await self._execute(
            "fetch_available_items",
            self.client.table("menu_items").select("*").eq("available", True),
        )

    # Orders

    async def insert_order(self, row: Row) -> Row:
        rows = await self._execute("insert_order", self.client.table("orders").insert(row))
        if not rows:
            raise BackendError("Order insert returned no row")
        return rows[0]

    async def insert_order_items(self, rows: list[Row]) -> list[Row]:
        return await self._execute("insert_order_items", self.client.table("order_items").insert(rows))

    async def delete_order(self, order_id: str) -> None:
        await self._execute("delete_order", self.client.table("orders").delete().eq("id", order_id))

    async def fetch_orders(self, branch_id: str) -> list[Row]:
        return await self._execute(
            "fetch_orders",
            self.client.table("orders")
            .select(ORDER_WITH_ITEMS_SELECT)
            .eq("branch_id", branch_id)
            .order("created_at", desc=True),
        )

    async def update_order_status(self, order_id: str, status: str) -> None:
        await self._execute(
            "update_order_status",
            self.client.table("orders").update({"status": status}).eq("id", order_id),
        )

    # Realtime

    async def subscribe_orders(self, channel_name: str, branch_id: str, listener: ChangeListener) -> Unsubscribe:
        """Follow insert/update/delete events for one branch's orders."""

        def _forward(payload: Any) -> None:
            listener(_to_order_change(payload))

        channel = self.client.channel(channel_name)
        channel.on_postgres_changes(
            "*",
            schema="public",
            table="orders",
            filter=f"branch_id=eq.{branch_id}",
            callback=_forward,
        )
        try:
            await channel.subscribe()
        except Exception as exc:
            logger.error("realtime_subscribe_failed channel=%s error=%r", channel_name, exc)
            raise BackendError(_error_message(exc)) from exc
        logger.info("realtime_subscribed channel=%s branch_id=%s", channel_name, branch_id)

        async def _unsubscribe() -> None:
            await self.client.remove_channel(channel)
            logger.info("realtime_unsubscribed channel=%s", channel_name)

        return _unsubscribe
