"""Failure types and row shaping for the query entry points."""

from __future__ import annotations

import re
from typing import Any, Iterable

from .models import DatabaseError, RawRow, Row

POLL_TIMEOUT_MESSAGE = "Poll timeout."

_INTEGER = re.compile(r"\s*[-+]?[0-9]+\s*")
_HEX = re.compile(r"\s*[-+]?0[xX][0-9a-fA-F]+\s*")
_FLOAT = re.compile(r"\s*[-+]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][-+]?[0-9]+)?\s*")


class QueryError(DatabaseError):
    """Raised when the driver rejects a query or a slot is unknown."""


class PollTimeoutError(QueryError):
    """Raised when a query did not resolve within the poll timeout."""

    def __init__(self, message: str = POLL_TIMEOUT_MESSAGE) -> None:
        super().__init__(message)


class CallerNotAllowedError(DatabaseError):
    """Raised when a blocked caller uses a fetching entry point."""


def coerce_value(value: Any) -> Any:
    """Turn numeric-looking text into ``int``/``float``; leave the rest alone."""

    if not isinstance(value, str):
        return value
    if _INTEGER.fullmatch(value):
        return int(value)
    if _HEX.fullmatch(value):
        return int(value.strip(), 16)
    if _FLOAT.fullmatch(value):
        return float(value)
    return value


def shape_row(row: RawRow) -> Row:
    return {str(key): coerce_value(value) for key, value in row.items() if value is not None}


def shape_rows(rows: Iterable[RawRow]) -> list[Row]:
    return [shape_row(row) for row in rows]


__all__ = [
    "CallerNotAllowedError",
    "POLL_TIMEOUT_MESSAGE",
    "PollTimeoutError",
    "QueryError",
    "coerce_value",
    "shape_row",
    "shape_rows",
]
