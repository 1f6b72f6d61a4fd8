"""Facade wiring the driver, connection manager and query executor together."""

from __future__ import annotations

from types import TracebackType
from typing import Callable, Sequence

from .config import AppConfig
from .connections import ConnectionManager
from .drivers import AsyncpgDriver, Driver, DriverHandle, OracledbDriver
from .errors import DisconnectFailure
from .models import AssociatedRow, ConnectionParams, ConnectionState, SqlSelectResult, StateListener
from .projection import transform_to_associated
from .query import QueryExecutor


class Database:
    """One auto-connecting, auto-reconnecting database connection.

    Usage::

        db = Database(params=ConnectionParams("postgresql://localhost/app", "app", "secret"))
        async with db:
            rows = await db.query_associated("SELECT id, name FROM users WHERE id = $1", [1])
    """

    def __init__(
        self,
        driver: Driver | None = None,
        *,
        params: ConnectionParams | None = None,
        max_reconnects: int = 1,
    ) -> None:
        self._connections = ConnectionManager(driver or AsyncpgDriver(), params)
        self._executor = QueryExecutor(self._connections, max_reconnects=max_reconnects)

    @classmethod
    def from_config(cls, config: AppConfig, driver: Driver | None = None) -> Database:
        """Build a database from loaded configuration."""

        if driver is None:
            factory = OracledbDriver if config.driver == "oracledb" else AsyncpgDriver
            driver = factory(connect_timeout=config.connect_timeout)
        return cls(
            driver,
            params=config.connection_params(),
            max_reconnects=config.max_reconnects,
        )

    @property
    def state(self) -> ConnectionState:
        return self._connections.state

    @property
    def connections(self) -> ConnectionManager:
        return self._connections

    def set_connection_params(self, params: ConnectionParams) -> None:
        self._connections.set_connection_params(params)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._connections.subscribe(listener)

    async def connect(self) -> DriverHandle:
        """Connect explicitly; normally ``query`` does this on demand."""

        return await self._connections.connect()

    async def disconnect(self) -> None:
        await self._connections.disconnect()

    async def query(self, sql: str, params: Sequence[object] = ()) -> SqlSelectResult:
        return await self._executor.query(sql, params)

    async def query_associated(self, sql: str, params: Sequence[object] = ()) -> list[AssociatedRow]:
        return await self._executor.query_associated(sql, params)

    @staticmethod
    def transform_to_associated(result: SqlSelectResult) -> list[AssociatedRow]:
        return transform_to_associated(result)

    async def __aenter__(self) -> Database:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        try:
            await self.disconnect()
        except DisconnectFailure:
            if exc is None:
                raise
            # Already logged; keep the error raised inside the block.


__all__ = ["Database"]
