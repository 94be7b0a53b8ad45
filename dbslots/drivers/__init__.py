"""Database drivers the connection manager can open sessions with."""

from __future__ import annotations

from typing import Callable

from .base import Driver, DriverConnection, DriverError, DriverResult, QueryHandle, parse_host_string
from .mysql import MySQLDriver
from .postgres import PostgresDriver

DRIVERS: dict[str, Callable[[], Driver]] = {
    MySQLDriver.name: MySQLDriver,
    PostgresDriver.name: PostgresDriver,
}


def create_driver(name: str) -> Driver:
    """Instantiate the driver registered under ``name``."""

    try:
        factory = DRIVERS[name]
    except KeyError:
        raise ValueError(f"Unknown driver '{name}'. Expected one of: {', '.join(sorted(DRIVERS))}.") from None
    return factory()


__all__ = [
    "DRIVERS",
    "Driver",
    "DriverConnection",
    "DriverError",
    "DriverResult",
    "MySQLDriver",
    "PostgresDriver",
    "QueryHandle",
    "create_driver",
    "parse_host_string",
]
