"""Query execution with transparent reconnect on connection loss."""

from __future__ import annotations

import logging
from typing import Pattern, Sequence

from .connections import ConnectionManager
from .drivers import DriverHandle
from .errors import ConnectionLostError, DisconnectFailure, DriverError, FatalQueryError, error_message
from .models import AssociatedRow, SqlSelectResult
from .projection import transform_to_associated
from .signatures import is_connection_loss

LOG = logging.getLogger(__name__)


class QueryExecutor:
    """Runs statements on the managed connection, reconnecting when it drops."""

    def __init__(
        self,
        connections: ConnectionManager,
        *,
        max_reconnects: int = 1,
        connection_loss_signatures: tuple[Pattern[str], ...] | None = None,
    ) -> None:
        if max_reconnects < 0:
            raise ValueError("max_reconnects must be >= 0")
        self._connections = connections
        self._max_reconnects = max_reconnects
        self._signatures = (
            connection_loss_signatures
            if connection_loss_signatures is not None
            else connections.driver.connection_loss_signatures
        )

    @property
    def max_reconnects(self) -> int:
        return self._max_reconnects

    async def query(self, sql: str, params: Sequence[object] = ()) -> SqlSelectResult:
        """Execute ``sql`` with ``params``, connecting first if needed.

        A connection-loss error drops the handle and retries on a fresh
        connection, at most ``max_reconnects`` times. Any other error drops the
        handle and raises FatalQueryError.
        """

        reconnects = 0
        while True:
            handle = await self._connections.connect()
            try:
                return await handle.execute(sql, params)
            except Exception as exc:
                message = exc.message if isinstance(exc, DriverError) else error_message(exc)
                LOG.warning("Error executing query", extra={"error": message})
                lost = is_connection_loss(message, self._signatures)
                await self._discard(handle)
                if not lost:
                    raise FatalQueryError(message) from exc
                if reconnects >= self._max_reconnects:
                    raise ConnectionLostError(message) from exc
            reconnects += 1
            LOG.info("Database connection lost, reconnecting", extra={"attempt": reconnects})

    async def query_associated(self, sql: str, params: Sequence[object] = ()) -> list[AssociatedRow]:
        """Execute ``sql`` and return rows keyed by column name."""

        return transform_to_associated(await self.query(sql, params))

    async def _discard(self, handle: DriverHandle) -> None:
        try:
            await self._connections.invalidate(handle)
        except DisconnectFailure:
            # Already logged; the state is disconnected either way.
            pass


__all__ = ["QueryExecutor"]
