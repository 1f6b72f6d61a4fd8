"""Error signatures meaning the session behind a handle is gone."""

from __future__ import annotations

import re
from typing import Iterable, Pattern

# ORA-03114: not connected to ORACLE
# ORA-03135: connection lost contact
# ORA-02396: exceeded maximum idle time, please connect again
# ORA-01012: not logged on
ORACLE_CONNECTION_LOSS: tuple[Pattern[str], ...] = (
    re.compile(r"^ORA-(03114|03135|02396|01012)"),
)

# python-oracledb thin mode reports the same conditions as DPY errors:
# DPY-1001 not connected, DPY-4011 the database or network closed the connection.
ORACLEDB_CONNECTION_LOSS: tuple[Pattern[str], ...] = ORACLE_CONNECTION_LOSS + (
    re.compile(r"^DPY-(1001|4011)"),
)

# Class 08 connection exceptions, server shutdown (57P01-57P03),
# idle_in_transaction_session_timeout (25P03), idle_session_timeout (57P05).
POSTGRES_CONNECTION_LOSS: tuple[Pattern[str], ...] = (
    re.compile(r"^08[0-9A-Z]{3}\b"),
    re.compile(r"^(57P01|57P02|57P03|57P05|25P03)\b"),
)


def is_connection_loss(message: str, signatures: Iterable[Pattern[str]]) -> bool:
    """Return True when the message matches one of the loss signatures."""

    return any(pattern.match(message) for pattern in signatures)


__all__ = ["ORACLE_CONNECTION_LOSS", "ORACLEDB_CONNECTION_LOSS", "POSTGRES_CONNECTION_LOSS", "is_connection_loss"]
