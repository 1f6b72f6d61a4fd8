"""Error types surfaced to callers."""

from __future__ import annotations


def error_message(error: object) -> str:
    """Reduce a driver error (exception, string or anything else) to plain text."""

    if error is None:
        return "no error message"
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return str(error)


class AutoreconnectError(RuntimeError):
    """Base class for failures raised by the connection and query layers."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DriverError(AutoreconnectError):
    """Raised by driver adapters; wraps whatever the underlying client raised."""


class ConnectFailure(AutoreconnectError):
    """The driver could not establish a connection."""


class DisconnectFailure(AutoreconnectError):
    """The driver failed to release the connection handle."""


class FatalQueryError(AutoreconnectError):
    """Query failed with an error that is not a connection loss."""


class ConnectionLostError(AutoreconnectError):
    """Connection kept dropping after the allowed reconnect attempts."""


__all__ = [
    "AutoreconnectError",
    "ConnectFailure",
    "ConnectionLostError",
    "DisconnectFailure",
    "DriverError",
    "FatalQueryError",
    "error_message",
]
