"""Configuration loading helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import tomllib

from pydantic import BaseModel, Field, ValidationError

from .models import ConnectionParams

LOG = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "autoreconnect" / "config.toml"


class ConnectionParamsConfig(BaseModel):
    """Connection target and credentials stored in config.toml."""

    connect_string: str
    user: str = ""
    password: str = Field(default="", repr=False)

    def to_params(self) -> ConnectionParams:
        return ConnectionParams(
            connect_string=self.connect_string,
            user=self.user,
            password=self.password,
        )


class AppConfig(BaseModel):
    """Shape of the configuration file."""

    connection: ConnectionParamsConfig | None = None
    driver: Literal["asyncpg", "oracledb"] = "asyncpg"
    connect_timeout: float = Field(default=5.0, gt=0)
    max_reconnects: int = Field(default=1, ge=0)

    def connection_params(self) -> ConnectionParams | None:
        """Runtime params for the configured connection, if any."""

        if self.connection is None:
            return None
        return self.connection.to_params()

    def with_connection(self, params: ConnectionParams) -> AppConfig:
        """Return a copy pointing at a different connection."""

        connection = ConnectionParamsConfig(
            connect_string=params.connect_string,
            user=params.user,
            password=params.password,
        )
        return self.model_copy(update={"connection": connection})


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing or invalid."""

    try:
        data = _read_config_file(path or CONFIG_FILE)
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError) as exc:
        LOG.warning("Ignoring unreadable config file", extra={"error": str(exc)})
        return AppConfig()

    connection: ConnectionParamsConfig | None = None
    if "connection" in data:
        try:
            connection = ConnectionParamsConfig.model_validate(data.pop("connection"))
        except ValidationError as exc:
            LOG.warning("Ignoring invalid [connection] table", extra={"error": str(exc)})

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as exc:
        LOG.warning("Ignoring invalid config settings", extra={"error": str(exc)})
        config = AppConfig()
    return config.model_copy(update={"connection": connection})


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    connection = raw.get("connection")
    if isinstance(connection, dict):
        data["connection"] = {
            key: value
            for key, value in connection.items()
            if key in ("connect_string", "user", "password") and isinstance(value, str)
        }
    driver = raw.get("driver")
    if isinstance(driver, str):
        data["driver"] = driver
    timeout = raw.get("connect_timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
        data["connect_timeout"] = float(timeout)
    reconnects = raw.get("max_reconnects")
    if isinstance(reconnects, int) and not isinstance(reconnects, bool):
        data["max_reconnects"] = reconnects
    return data
