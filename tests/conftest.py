"""Shared fakes for the driver boundary."""

from __future__ import annotations

import asyncio
from typing import Callable, Sequence

import pytest

from autoreconnect.errors import DriverError
from autoreconnect.models import ColumnMetadata, ConnectionParams, SqlSelectResult
from autoreconnect.signatures import ORACLE_CONNECTION_LOSS

DEFAULT_RESULT = SqlSelectResult(
    metadata=(ColumnMetadata("ID"), ColumnMetadata("FIRSTNAME")),
    rows=((1, "JOHN"), (2, "JARYN")),
)


class FakeHandle:
    def __init__(self, driver: "FakeDriver", ident: int) -> None:
        self.driver = driver
        self.ident = ident
        self.released = False

    async def execute(self, sql: str, params: Sequence[object]) -> SqlSelectResult:
        self.driver.executed.append((self.ident, sql, tuple(params)))
        await asyncio.sleep(0)
        outcome = self.driver.outcomes.pop(0) if self.driver.outcomes else DEFAULT_RESULT
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def release(self) -> None:
        self.driver.releases.append(self.ident)
        if self.driver.on_release is not None:
            self.driver.on_release()
        await asyncio.sleep(0)
        self.released = True
        if self.driver.release_error is not None:
            raise DriverError(self.driver.release_error)


class FakeDriver:
    connection_loss_signatures = ORACLE_CONNECTION_LOSS

    def __init__(self) -> None:
        self.connect_calls: list[ConnectionParams] = []
        self.connect_errors: list[Exception] = []
        self.outcomes: list[SqlSelectResult | Exception] = []
        self.executed: list[tuple[int, str, tuple[object, ...]]] = []
        self.releases: list[int] = []
        self.handles: list[FakeHandle] = []
        self.release_error: str | None = None
        self.on_release: Callable[[], None] | None = None
        self.gate: asyncio.Event | None = None

    async def connect(self, params: ConnectionParams) -> FakeHandle:
        self.connect_calls.append(params)
        await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()
        if self.connect_errors:
            raise self.connect_errors.pop(0)
        handle = FakeHandle(self, len(self.connect_calls))
        self.handles.append(handle)
        return handle


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def params() -> ConnectionParams:
    return ConnectionParams(connect_string="db.example.com/XE", user="scott", password="tiger")
