"""Ownership of the single live driver connection."""

from __future__ import annotations

import logging
import threading

from .config import DatabaseSettings
from .drivers.base import Driver, DriverConnection, DriverError
from .models import DatabaseError

LOG = logging.getLogger(__name__)

SUPERUSER_WARNING_DELAY = 0.1


class ConnectionFailedError(DatabaseError):
    """Raised when no live connection could be established."""


def build_host_string(server: str, database: str, port: int, socket: str | None = None) -> str:
    host_string = f"dbname={database};host={server};port={port}"
    if socket:
        host_string += f";unix_socket={socket}"
    return host_string


class ConnectionManager:
    """Creates the connection lazily and re-creates it once it drops."""

    def __init__(
        self,
        settings: DatabaseSettings,
        driver: Driver,
        *,
        warning_delay: float = SUPERUSER_WARNING_DELAY,
    ) -> None:
        self._settings = settings
        self._driver = driver
        self._warning_delay = warning_delay
        self._connection: DriverConnection | None = None
        self._lock = threading.RLock()
        self._warned_superuser = False
        self._warning_timer: threading.Timer | None = None

    @property
    def connection(self) -> DriverConnection | None:
        return self._connection

    @property
    def connected(self) -> bool:
        connection = self._connection
        return connection is not None and connection.is_connected()

    def require(self) -> DriverConnection:
        """Return a live connection, reconnecting first if needed."""

        with self._lock:
            if not self.ensure_connected() or self._connection is None:
                raise ConnectionFailedError("Connection to database failed.")
            return self._connection

    def ensure_connected(self) -> bool:
        with self._lock:
            if self.connected:
                return True
            if self._connection is not None:
                LOG.info("Database connection dropped; reconnecting.")
                self._drop()
            return self.connect()

    def connect(self) -> bool:
        settings = self._settings
        host_string = build_host_string(settings.server, settings.database, settings.port, settings.socket)
        with self._lock:
            self._drop()
            try:
                self._connection = self._driver.open(host_string, settings.user, settings.password)
            except DriverError as exc:
                LOG.error("Connection to %s failed: %s", self._driver.name, exc)
                return False
            if settings.user in self._driver.superusers:
                self._warn_superuser(settings.user)
            return True

    def disconnect(self) -> None:
        with self._lock:
            self._drop()
            if self._warning_timer is not None:
                self._warning_timer.cancel()
                self._warning_timer = None

    def _drop(self) -> None:
        connection, self._connection = self._connection, None
        if connection is not None:
            connection.destroy()

    def _warn_superuser(self, user: str) -> None:
        if self._warned_superuser:
            return
        self._warned_superuser = True
        self._warning_timer = threading.Timer(
            self._warning_delay,
            LOG.warning,
            args=("Connecting to your database as '%s' is strongly discouraged.", user),
        )
        self._warning_timer.daemon = True
        self._warning_timer.start()


__all__ = ["ConnectionFailedError", "ConnectionManager", "build_host_string"]
