"""Single-connection query handle manager with bounded polling."""

from __future__ import annotations

from .config import DatabaseSettings, load_settings, settings_from_store
from .connections import ConnectionFailedError, ConnectionManager
from .drivers import DriverError, create_driver
from .interpolate import InterpolationError, UnsupportedValueError, escape, interpolate
from .models import DatabaseError, PollError, PollOutcome, PollSuccess, PollTimeout, Row
from .poller import QueryPoller
from .pool import PoolExhaustedError, QueryHandlePool
from .query import CallerNotAllowedError, PollTimeoutError, QueryError
from .session import DatabaseSession

__all__ = [
    "CallerNotAllowedError",
    "ConnectionFailedError",
    "ConnectionManager",
    "DatabaseError",
    "DatabaseSession",
    "DatabaseSettings",
    "DriverError",
    "InterpolationError",
    "PollError",
    "PollOutcome",
    "PollSuccess",
    "PollTimeout",
    "PollTimeoutError",
    "PoolExhaustedError",
    "QueryError",
    "QueryHandlePool",
    "QueryPoller",
    "Row",
    "UnsupportedValueError",
    "create_driver",
    "escape",
    "interpolate",
    "load_settings",
    "settings_from_store",
]
