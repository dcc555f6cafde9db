# app/client/inactivity.py
"""
Idle logout for the client.

The server expires idle tokens on its own (see app.core.activity). The
monitor polls GET /user/activity-status so the warning follows the server's
clock, and falls back to local activity when the server cannot answer.
Whichever budget runs out first ends the session.
"""
import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import httpx

from app.client.session_store import SessionStore

logger = logging.getLogger(__name__)

ACTIVITY_STATUS_PATH = "/user/activity-status"


@dataclass(frozen=True)
class InactivityWarning:
    seconds_remaining: float


WarningListener = Callable[[Optional[InactivityWarning]], None]


class InactivityMonitor:
    def __init__(
        self,
        store: SessionStore,
        timeout: float = 60 * 60,
        warning_time: float = 60,
        check_interval: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ):
        if warning_time >= timeout:
            raise ValueError("warning_time must be shorter than timeout")
        self.store = store
        self.timeout = timeout
        self.warning_time = warning_time
        self.check_interval = check_interval
        self.clock = clock

        self.warning: Optional[InactivityWarning] = None
        self._last_active = clock()
        self._logged_out = False
        self._was_authenticated = store.get_state().is_authenticated
        self._listeners: List[WarningListener] = []
        self._task: Optional[asyncio.Task] = None

        store.subscribe(self._on_session_change)

    def on_warning(self, listener: WarningListener) -> Callable[[], None]:
        """Called with the current warning, or None when it is dismissed."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_warning(self, warning: Optional[InactivityWarning]) -> None:
        if warning is None and self.warning is None:
            return
        self.warning = warning
        for listener in list(self._listeners):
            listener(warning)

    def _on_session_change(self) -> None:
        authenticated = self.store.get_state().is_authenticated
        if authenticated and not self._was_authenticated:
            # New session: idle time starts from the login
            self.record_activity()
        self._was_authenticated = authenticated

    def record_activity(self) -> None:
        self._last_active = self.clock()
        self._logged_out = False
        self._set_warning(None)

    async def extend_session(self) -> None:
        """Explicit "keep me signed in" from the warning dialog.

        Any authenticated request refreshes the server's idle clock; GET /user
        is the cheapest one.
        """
        self.record_activity()
        try:
            response = await self.store.authorized_get("/user")
            if response is not None and response.is_error:
                logger.warning("Session extension answered %s", response.status_code)
        except httpx.HTTPError as exc:
            logger.warning("Session extension failed (%s)", exc)

    def idle_seconds(self) -> float:
        return max(0.0, self.clock() - self._last_active)

    def seconds_remaining(self) -> float:
        return max(0.0, self.timeout - self.idle_seconds())

    async def server_seconds_remaining(self) -> Optional[float]:
        """Idle budget left according to the server, or None if it cannot tell.

        A 401 means the server has already expired or revoked the token.
        """
        try:
            response = await self.store.authorized_get(ACTIVITY_STATUS_PATH)
        except httpx.HTTPError as exc:
            logger.debug("Activity status unavailable (%s)", exc)
            return None
        if response is None:
            return None
        if response.status_code == 401:
            return 0.0
        if response.is_error:
            return None
        try:
            return float(response.json()["seconds_remaining"])
        except (ValueError, KeyError, TypeError):
            logger.warning("Unexpected activity status payload")
            return None

    async def check(self) -> None:
        if not self.store.get_state().is_authenticated:
            self._set_warning(None)
            return

        remaining = self.seconds_remaining()
        server_remaining = await self.server_seconds_remaining()
        if not self.store.get_state().is_authenticated:
            # Logged out while the status request was in flight
            self._set_warning(None)
            return
        if server_remaining is not None:
            remaining = min(remaining, server_remaining)

        if remaining <= 0:
            if not self._logged_out:
                self._logged_out = True
                self._set_warning(None)
                logger.info("Logging out after inactivity (idle %.0fs locally)", self.idle_seconds())
                await self.store.logout()
            return

        if remaining <= self.warning_time:
            self._set_warning(InactivityWarning(seconds_remaining=remaining))
        else:
            self._set_warning(None)

    async def run(self) -> None:
        while True:
            await self.check()
            await asyncio.sleep(self.check_interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
