"""Shared dataclasses used across connection/query modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

AssociatedRow = dict[str, object]


class ConnectionState(str, Enum):
    """Lifecycle of the single shared connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


StateListener = Callable[[ConnectionState], None]


@dataclass(frozen=True, slots=True)
class ConnectionParams:
    """Target and credentials handed to the driver on every connect."""

    connect_string: str
    user: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class ColumnMetadata:
    """Column description attached to a select result."""

    name: str


@dataclass(frozen=True, slots=True)
class SqlSelectResult:
    """Positional rows plus the column metadata describing them.

    ``row_count`` is the number of rows fetched or affected, ``status`` the
    driver's command tag when it reports one, and ``raw`` the untouched
    driver payload for callback-style clients.
    """

    metadata: tuple[ColumnMetadata, ...] = ()
    rows: tuple[tuple[object, ...], ...] = ()
    row_count: int | None = None
    status: str | None = None
    raw: object = field(default=None, repr=False, compare=False)

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(column.name for column in self.metadata)


__all__ = [
    "AssociatedRow",
    "ColumnMetadata",
    "ConnectionParams",
    "ConnectionState",
    "SqlSelectResult",
    "StateListener",
]
