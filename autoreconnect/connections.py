"""Single shared connection with idempotent connect/disconnect."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .drivers import Driver, DriverHandle
from .errors import ConnectFailure, DisconnectFailure, error_message
from .models import ConnectionParams, ConnectionState, StateListener

LOG = logging.getLogger(__name__)


class ConnectionManager:
    """Owns the one connection handle and the attempt that produces it.

    ``_attempt`` is ``None`` while disconnected. Otherwise it is the task that
    opens the connection: pending while connecting, finished once connected.
    Every caller awaits that same task, so only one driver connect is ever in
    flight.
    """

    def __init__(self, driver: Driver, params: ConnectionParams | None = None) -> None:
        self._driver = driver
        self._params = params
        self._attempt: asyncio.Task[DriverHandle] | None = None
        self._listeners: set[StateListener] = set()
        self._last_state = ConnectionState.DISCONNECTED

    @property
    def driver(self) -> Driver:
        return self._driver

    @property
    def params(self) -> ConnectionParams | None:
        return self._params

    @property
    def state(self) -> ConnectionState:
        attempt = self._attempt
        if attempt is None:
            return ConnectionState.DISCONNECTED
        if attempt.done() and not attempt.cancelled() and attempt.exception() is None:
            return ConnectionState.CONNECTED
        return ConnectionState.CONNECTING

    def set_connection_params(self, params: ConnectionParams) -> None:
        """Store params for later connects; a live connection is left untouched."""

        self._params = params

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Subscribe to state transitions; returns an unsubscribe handle."""

        self._listeners.add(listener)

        def _unsubscribe() -> None:
            self._listeners.discard(listener)

        return _unsubscribe

    async def connect(self) -> DriverHandle:
        """Return the live handle, joining or starting the connection attempt."""

        self._drop_cancelled()
        if self._attempt is None:
            if self._params is None:
                raise ConnectFailure("Connection parameters are not set.")
            self._attempt = asyncio.create_task(self._establish(self._params))
            self._notify()
        # Shielded so one cancelled waiter does not abort the attempt for everyone.
        return await asyncio.shield(self._attempt)

    async def disconnect(self) -> None:
        """Release the connection; a no-op when already disconnected."""

        self._drop_cancelled()
        attempt = self._attempt
        if attempt is None:
            return
        try:
            handle = await asyncio.shield(attempt)
        except ConnectFailure:
            return
        await self._teardown(attempt, handle)

    async def invalidate(self, handle: DriverHandle) -> None:
        """Disconnect only if ``handle`` is still the live connection."""

        attempt = self._attempt
        if attempt is None or not attempt.done() or attempt.cancelled():
            return
        if attempt.exception() is not None or attempt.result() is not handle:
            return
        await self._teardown(attempt, handle)

    async def _teardown(self, attempt: asyncio.Task[DriverHandle], handle: DriverHandle) -> None:
        if self._attempt is not attempt:
            # Someone else already tore this connection down.
            return
        self._attempt = None
        self._notify()
        try:
            await handle.release()
        except Exception as exc:
            message = error_message(exc)
            LOG.error("Database disconnect failed", extra={"error": message})
            raise DisconnectFailure(message) from exc
        LOG.debug("Database connection released")

    async def _establish(self, params: ConnectionParams) -> DriverHandle:
        try:
            handle = await self._driver.connect(params)
        except Exception as exc:
            message = error_message(exc)
            LOG.error(
                "Database connect failed",
                extra={"connect_string": params.connect_string, "error": message},
            )
            if self._attempt is asyncio.current_task():
                self._attempt = None
                self._notify()
            raise ConnectFailure(message) from exc
        LOG.debug("Database connected", extra={"connect_string": params.connect_string})
        if self._attempt is asyncio.current_task():
            self._notify(ConnectionState.CONNECTED)
        return handle

    def _drop_cancelled(self) -> None:
        if self._attempt is not None and self._attempt.cancelled():
            self._attempt = None
            self._notify()

    def _notify(self, state: ConnectionState | None = None) -> None:
        # The attempt task is not done yet while it reports its own success.
        state = state or self.state
        if state is self._last_state:
            return
        self._last_state = state
        LOG.debug("Connection state changed", extra={"state": state.value})
        for listener in tuple(self._listeners):
            try:
                listener(state)
            except Exception:
                LOG.exception("Connection state listener failed", extra={"state": state.value})


__all__ = ["ConnectionManager"]
