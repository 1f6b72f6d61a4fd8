"""Single-connection database access that reconnects when the session drops."""

from __future__ import annotations

from .config import AppConfig, ConnectionParamsConfig, load_config
from .connections import ConnectionManager
from .database import Database
from .drivers import AsyncpgDriver, CallbackDriver, Driver, DriverHandle, OracledbDriver
from .errors import (
    AutoreconnectError,
    ConnectFailure,
    ConnectionLostError,
    DisconnectFailure,
    DriverError,
    FatalQueryError,
)
from .models import AssociatedRow, ColumnMetadata, ConnectionParams, ConnectionState, SqlSelectResult
from .projection import transform_to_associated
from .query import QueryExecutor
from .signatures import (
    ORACLE_CONNECTION_LOSS,
    ORACLEDB_CONNECTION_LOSS,
    POSTGRES_CONNECTION_LOSS,
    is_connection_loss,
)

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "AssociatedRow",
    "AsyncpgDriver",
    "AutoreconnectError",
    "CallbackDriver",
    "ColumnMetadata",
    "ConnectFailure",
    "ConnectionLostError",
    "ConnectionManager",
    "ConnectionParams",
    "ConnectionParamsConfig",
    "ConnectionState",
    "Database",
    "DisconnectFailure",
    "Driver",
    "DriverError",
    "DriverHandle",
    "FatalQueryError",
    "ORACLE_CONNECTION_LOSS",
    "ORACLEDB_CONNECTION_LOSS",
    "OracledbDriver",
    "POSTGRES_CONNECTION_LOSS",
    "QueryExecutor",
    "SqlSelectResult",
    "__version__",
    "load_config",
    "transform_to_associated",
    "is_connection_loss",
]
