"""Session store: current auth session, resolved branch and loading flag."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from orderpad.auth import BranchSignIn, SignInResult
from orderpad.errors import BackendError
from orderpad.models import AuthSession, Branch

logger = logging.getLogger(__name__)

Listener = Callable[["SessionStore"], None]


class SessionStore:
    """Holds who is signed in and for which branch; screens gate on it.

    ``loading`` stays True until the first branch resolution finishes. A
    failed branch lookup clears ``loading`` and leaves the message in
    ``error`` for the screen to show.
    """

    def __init__(self, backend, sign_in_flow: BranchSignIn | None = None) -> None:
        self.backend = backend
        self.sign_in_flow = sign_in_flow or BranchSignIn(backend)
        self.session: AuthSession | None = None
        self.branch: Branch | None = None
        self.loading = True
        self.error: str | None = None
        self._listeners: list[Listener] = []
        self._stop_auth_events: Callable[[], None] | None = None
        self._pending: set[asyncio.Task] = set()
        self._auth_events = 0

    @property
    def user_id(self) -> str | None:
        return self.session.user_id if self.session is not None else None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def is_ready(self) -> bool:
        return not self.loading and self.branch is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns the matching unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def initialize(self) -> None:
        """Follow auth events, then load the existing session and resolve its branch."""
        if self._stop_auth_events is None:
            self._stop_auth_events = self.backend.on_auth_state_change(self._on_auth_event)

        seen = self._auth_events
        try:
            session = await self.backend.get_session()
        except BackendError as exc:
            logger.error("session_restore_failed error=%s", exc.message)
            session = None
            self.error = exc.message

        if self._auth_events != seen:
            # An auth event arrived meanwhile and already set the state.
            return

        self.session = session
        self._notify()
        if session is not None:
            await self._resolve_branch(session.user_id)
        else:
            self.loading = False
            self._notify()

    def _on_auth_event(self, event: str, session: AuthSession | None) -> None:
        self._auth_events += 1
        task = asyncio.ensure_future(self.handle_auth_change(event, session))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def handle_auth_change(self, event: str, session: AuthSession | None) -> None:
        logger.info("auth_event event=%s user_id=%s", event, session.user_id if session else None)
        self.session = session
        self._notify()
        if session is not None:
            await self._resolve_branch(session.user_id)
        else:
            self.branch = None
            self.loading = False
            self._notify()

    async def _resolve_branch(self, user_id: str) -> None:
        try:
            row = await self.backend.find_branch_for_user(user_id)
        except BackendError as exc:
            logger.error("branch_lookup_failed user_id=%s error=%s", user_id, exc.message)
            self.error = exc.message
            self.loading = False
            self._notify()
            return

        if row is None:
            logger.error("branch_lookup_failed user_id=%s error=no_branch_session", user_id)
            # A sign-in in progress links the branch after the auth event fires.
            if self.branch is None:
                self.error = "No branch is linked to this account"
        else:
            self.branch = Branch.from_row(row)
            self.error = None
        self.loading = False
        self._notify()

    async def sign_in_with_branch(self, email: str, password: str) -> SignInResult:
        """Sign in and adopt the resulting session and branch."""
        result = await self.sign_in_flow.sign_in(email, password)
        self.session = result.session
        self.branch = result.branch
        self.error = None
        self.loading = False
        self._notify()
        return result

    async def sign_out(self) -> None:
        await self.backend.sign_out()
        self.session = None
        self.branch = None
        self.loading = False
        self._notify()

    async def close(self) -> None:
        """Stop following auth events and wait for in-flight resolutions."""
        if self._stop_auth_events is not None:
            self._stop_auth_events()
            self._stop_auth_events = None
        if self._pending:
            await asyncio.gather(*self._pending)
