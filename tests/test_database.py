"""Tests for the Database facade."""

from __future__ import annotations

import pytest

from autoreconnect.config import AppConfig, ConnectionParamsConfig
from autoreconnect.database import Database
from autoreconnect.drivers import AsyncpgDriver, OracledbDriver
from autoreconnect.errors import DisconnectFailure, DriverError
from autoreconnect.models import ConnectionParams, ConnectionState


@pytest.mark.anyio
async def test_query_uses_latest_params(driver, params) -> None:
    db = Database(driver, params=params)
    replacement = ConnectionParams(connect_string="standby/XE", user="scott", password="tiger")

    db.set_connection_params(replacement)
    rows = await db.query_associated("SELECT id, firstname FROM people")

    assert driver.connect_calls == [replacement]
    assert rows[0] == {"ID": 1, "FIRSTNAME": "JOHN"}


@pytest.mark.anyio
async def test_context_manager_disconnects(driver, params) -> None:
    async with Database(driver, params=params) as db:
        await db.connect()
        assert db.state is ConnectionState.CONNECTED

    assert db.state is ConnectionState.DISCONNECTED
    assert driver.releases == [1]


@pytest.mark.anyio
async def test_database_reconnects_after_loss(driver, params) -> None:
    driver.outcomes = [DriverError("ORA-01012: not logged on")]
    db = Database(driver, params=params)
    states: list[ConnectionState] = []
    db.subscribe(states.append)

    result = await db.query("SELECT id, firstname FROM people")

    assert db.transform_to_associated(result)[1] == {"ID": 2, "FIRSTNAME": "JARYN"}
    assert states == [
        ConnectionState.CONNECTING,
        ConnectionState.CONNECTED,
        ConnectionState.DISCONNECTED,
        ConnectionState.CONNECTING,
        ConnectionState.CONNECTED,
    ]


def test_from_config_wires_settings(driver) -> None:
    config = AppConfig(
        connection=ConnectionParamsConfig(connect_string="db/XE", user="scott", password="tiger"),
        max_reconnects=0,
    )

    db = Database.from_config(config, driver=driver)

    assert db.connections.params == ConnectionParams(connect_string="db/XE", user="scott", password="tiger")
    assert db.connections.driver is driver


def test_from_config_defaults_to_asyncpg() -> None:
    db = Database.from_config(AppConfig(connect_timeout=1.5))

    assert isinstance(db.connections.driver, AsyncpgDriver)
    assert db.state is ConnectionState.DISCONNECTED


@pytest.mark.anyio
async def test_context_manager_keeps_body_error_when_release_fails(driver, params) -> None:
    driver.release_error = "ORA-03114: not connected to ORACLE"

    with pytest.raises(ValueError, match="bad row"):
        async with Database(driver, params=params) as db:
            await db.connect()
            raise ValueError("bad row")

    assert driver.releases == [1]
    assert db.state is ConnectionState.DISCONNECTED


@pytest.mark.anyio
async def test_context_manager_raises_release_failure_on_clean_exit(driver, params) -> None:
    driver.release_error = "ORA-03114: not connected to ORACLE"

    with pytest.raises(DisconnectFailure):
        async with Database(driver, params=params) as db:
            await db.connect()


def test_from_config_selects_oracledb() -> None:
    db = Database.from_config(AppConfig(driver="oracledb"))

    assert isinstance(db.connections.driver, OracledbDriver)
