"""Shared dataclasses and the base error used across the query modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

Row = dict[str, Any]
RawRow = Mapping[str, Any]
ResultSets = tuple[tuple[RawRow, ...], ...]


class DatabaseError(RuntimeError):
    """Base class for every failure surfaced to callers."""


@dataclass(frozen=True, slots=True)
class PollSuccess:
    """Result sets and summary metadata of a resolved query."""

    result_sets: ResultSets
    affected_rows: int
    last_insert_id: int | None = None

    @property
    def rows(self) -> tuple[RawRow, ...]:
        """Rows of the first result set."""

        if not self.result_sets:
            return ()
        return self.result_sets[0]


@dataclass(frozen=True, slots=True)
class PollError:
    """Driver error reported while resolving a query."""

    message: str
    code: int | str | None = None


@dataclass(frozen=True, slots=True)
class PollTimeout:
    """No resolution arrived within the deadline."""

    timeout_ms: int


PollOutcome = Union[PollSuccess, PollError, PollTimeout]


__all__ = [
    "DatabaseError",
    "PollError",
    "PollOutcome",
    "PollSuccess",
    "PollTimeout",
    "RawRow",
    "ResultSets",
    "Row",
]
