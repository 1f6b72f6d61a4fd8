"""Driver adapters exposing an awaitable connect/execute/release surface."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, Mapping, Pattern, Protocol, Sequence, runtime_checkable

import asyncpg
import oracledb

from .errors import DriverError, error_message
from .models import ColumnMetadata, ConnectionParams, SqlSelectResult
from .signatures import ORACLE_CONNECTION_LOSS, ORACLEDB_CONNECTION_LOSS, POSTGRES_CONNECTION_LOSS

# SQLSTATE codes used when asyncpg reports a dead socket without one.
CONNECTION_DOES_NOT_EXIST = "08003"
CONNECTION_FAILURE = "08006"


@runtime_checkable
class DriverHandle(Protocol):
    """Open session obtained from a driver."""

    async def execute(self, sql: str, params: Sequence[object]) -> SqlSelectResult:
        """Run a statement and return its rows."""

    async def release(self) -> None:
        """Close the session."""


@runtime_checkable
class Driver(Protocol):
    """Protocol implemented by database drivers."""

    connection_loss_signatures: tuple[Pattern[str], ...]

    async def connect(self, params: ConnectionParams) -> DriverHandle:
        """Open a new session for the given parameters."""


class AsyncpgHandle:
    """Session wrapper around an asyncpg connection.

    asyncpg rejects a second operation while one is in flight, so calls on
    the shared handle are serialized.
    """

    def __init__(self, connection: Any) -> None:
        self._conn = connection
        self._lock = asyncio.Lock()

    async def execute(self, sql: str, params: Sequence[object]) -> SqlSelectResult:
        async with self._lock:
            try:
                statement = await self._conn.prepare(sql)
                records = await statement.fetch(*params)
                status = statement.get_statusmsg()
            except Exception as exc:
                raise DriverError(self._describe(exc)) from exc
        metadata = tuple(ColumnMetadata(name=attr.name) for attr in statement.get_attributes())
        rows = tuple(tuple(record) for record in records)
        return SqlSelectResult(
            metadata=metadata,
            rows=rows,
            row_count=_row_count_from_status(status, len(rows)),
            status=status or None,
        )

    async def release(self) -> None:
        async with self._lock:
            try:
                await self._conn.close()
            except Exception as exc:
                raise DriverError(self._describe(exc)) from exc

    def _describe(self, exc: Exception) -> str:
        sqlstate = getattr(exc, "sqlstate", None)
        if not sqlstate:
            if isinstance(exc, OSError):
                sqlstate = CONNECTION_FAILURE
            elif isinstance(exc, asyncpg.exceptions.InterfaceError) and self._conn.is_closed():
                sqlstate = CONNECTION_DOES_NOT_EXIST
        message = error_message(exc)
        return f"{sqlstate}: {message}" if sqlstate else message


class AsyncpgDriver:
    """Connects to PostgreSQL via asyncpg."""

    connection_loss_signatures = POSTGRES_CONNECTION_LOSS

    def __init__(self, *, connect_timeout: float = 5.0) -> None:
        self._connect_timeout = connect_timeout

    async def connect(self, params: ConnectionParams) -> AsyncpgHandle:
        try:
            connection = await asyncpg.connect(**self._connect_kwargs(params))
        except Exception as exc:
            sqlstate = getattr(exc, "sqlstate", None)
            message = error_message(exc)
            raise DriverError(f"{sqlstate}: {message}" if sqlstate else message) from exc
        return AsyncpgHandle(connection)

    def _connect_kwargs(self, params: ConnectionParams) -> dict[str, object]:
        kwargs: dict[str, object] = {"dsn": params.connect_string}
        if params.user:
            kwargs["user"] = params.user
        if params.password:
            kwargs["password"] = params.password
        kwargs["timeout"] = self._connect_timeout
        return kwargs


class OracledbHandle:
    """Session wrapper around a python-oracledb async connection."""

    def __init__(self, connection: Any) -> None:
        self._conn = connection
        self._lock = asyncio.Lock()

    async def execute(self, sql: str, params: Sequence[object]) -> SqlSelectResult:
        binds = params if isinstance(params, Mapping) else list(params)
        async with self._lock:
            try:
                cursor = self._conn.cursor()
                try:
                    await cursor.execute(sql, binds)
                    description = cursor.description
                    records = await cursor.fetchall() if description else []
                    row_count = cursor.rowcount
                finally:
                    cursor.close()
            except Exception as exc:
                raise DriverError(error_message(exc)) from exc
        metadata = tuple(ColumnMetadata(name=column[0]) for column in description or ())
        return SqlSelectResult(
            metadata=metadata,
            rows=tuple(tuple(record) for record in records),
            row_count=row_count,
        )

    async def release(self) -> None:
        async with self._lock:
            try:
                await self._conn.close()
            except Exception as exc:
                raise DriverError(error_message(exc)) from exc


class OracledbDriver:
    """Connects to Oracle via python-oracledb's asyncio API."""

    connection_loss_signatures = ORACLEDB_CONNECTION_LOSS

    def __init__(self, *, connect_timeout: float = 5.0) -> None:
        self._connect_timeout = connect_timeout

    async def connect(self, params: ConnectionParams) -> OracledbHandle:
        try:
            connection = await oracledb.connect_async(
                user=params.user,
                password=params.password,
                dsn=params.connect_string,
                tcp_connect_timeout=self._connect_timeout,
            )
        except Exception as exc:
            raise DriverError(error_message(exc)) from exc
        return OracledbHandle(connection)


class CallbackHandle:
    """Awaitable view of a handle exposing ``execute(sql, params, cb)`` and ``release(cb)``."""

    def __init__(self, raw: Any) -> None:
        self._raw = raw

    async def execute(self, sql: str, params: Sequence[object]) -> SqlSelectResult:
        result = await _call_with_callback(self._raw.execute, sql, list(params))
        try:
            return coerce_result(result)
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
            raise DriverError(f"Malformed driver result: {error_message(exc)}") from exc

    async def release(self) -> None:
        await _call_with_callback(self._raw.release)


class CallbackDriver:
    """Adapts a callback-style client (``get_connection(params, cb)``) to the Driver protocol."""

    def __init__(
        self,
        client: Any,
        *,
        connection_loss_signatures: tuple[Pattern[str], ...] = ORACLE_CONNECTION_LOSS,
        params_factory: Callable[[ConnectionParams], object] | None = None,
    ) -> None:
        self._client = client
        self.connection_loss_signatures = connection_loss_signatures
        self._params_factory = params_factory or _callback_params

    async def connect(self, params: ConnectionParams) -> CallbackHandle:
        raw = await _call_with_callback(self._client.get_connection, self._params_factory(params))
        return CallbackHandle(raw)


def coerce_result(result: Any) -> SqlSelectResult:
    """Normalize a driver result into a SqlSelectResult, keeping the payload in ``raw``."""

    if isinstance(result, SqlSelectResult):
        return result
    if result is None:
        return SqlSelectResult()
    if isinstance(result, Mapping):
        columns = result.get("metaData", result.get("metadata")) or ()
        rows = result.get("rows") or ()
        affected = result.get("rowsAffected")
    else:
        columns = getattr(result, "metaData", getattr(result, "metadata", ())) or ()
        rows = getattr(result, "rows", ()) or ()
        affected = getattr(result, "rowsAffected", None)
    metadata = tuple(
        column if isinstance(column, ColumnMetadata) else ColumnMetadata(name=_column_name(column))
        for column in columns
    )
    rows = tuple(tuple(row) for row in rows)
    row_count = int(affected) if affected is not None else len(rows)
    return SqlSelectResult(metadata=metadata, rows=rows, row_count=row_count, raw=result)


def _row_count_from_status(status: str | None, fetched: int) -> int:
    # Command tags end with the affected count: "UPDATE 3", "INSERT 0 1".
    if status:
        tail = status.rsplit(None, 1)[-1]
        if tail.isdigit():
            return int(tail)
    return fetched


def _column_name(column: Any) -> str:
    if isinstance(column, Mapping):
        return str(column["name"])
    return str(getattr(column, "name", column))


def _callback_params(params: ConnectionParams) -> dict[str, str]:
    return {
        "connectString": params.connect_string,
        "user": params.user,
        "password": params.password,
    }


async def _call_with_callback(func: Callable[..., Any], *args: Any) -> Any:
    """Invoke ``func(*args, callback)`` and await the callback's outcome."""

    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()
    owner = threading.get_ident()

    def _settle(error: object, value: object) -> None:
        if future.done():
            return
        if error:
            exc = DriverError(error_message(error))
            if isinstance(error, BaseException):
                exc.__cause__ = error
            future.set_exception(exc)
        else:
            future.set_result(value)

    def _callback(error: object = None, value: object = None) -> None:
        if threading.get_ident() == owner:
            _settle(error, value)
        else:
            loop.call_soon_threadsafe(_settle, error, value)

    try:
        func(*args, _callback)
    except Exception as exc:
        raise DriverError(error_message(exc)) from exc
    return await future


__all__ = [
    "AsyncpgDriver",
    "AsyncpgHandle",
    "CallbackDriver",
    "CallbackHandle",
    "Driver",
    "DriverHandle",
    "OracledbDriver",
    "OracledbHandle",
    "coerce_result",
]
