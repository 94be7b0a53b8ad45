"""Escaping and positional substitution of caller values into query text."""

from __future__ import annotations

from decimal import Decimal
import math
import re
from typing import Protocol

from .models import DatabaseError

_INTEGER_PLACEHOLDER = re.compile(r"%[%d]")


class InterpolationError(DatabaseError):
    """Raised when arguments cannot be substituted into a template."""


class UnsupportedValueError(InterpolationError, TypeError):
    """Raised for argument types that have no SQL text form."""


class Escaper(Protocol):
    def escape_string(self, text: str) -> str: ...


def escape(connection: Escaper, value: object) -> str:
    """Return ``value`` as text that is safe to place inside a query.

    Strings go through the connection's escaping primitive; numbers are
    rendered as decimal text. Escaped strings are not quoted, so text
    placeholders must be quoted in the template (``name = '%s'``).
    """

    if isinstance(value, str):
        return connection.escape_string(value)
    if isinstance(value, bool):
        raise UnsupportedValueError(f"Cannot escape value of type {type(value).__name__}.")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (float, Decimal)):
        finite = value.is_finite() if isinstance(value, Decimal) else math.isfinite(value)
        if not finite:
            raise UnsupportedValueError(f"Cannot escape non-finite number {value!r}.")
        return str(value)
    raise UnsupportedValueError(f"Cannot escape value of type {type(value).__name__}.")


def interpolate(connection: Escaper, template: str, *args: object) -> str:
    """Substitute escaped ``args`` into the ``%s`` placeholders of ``template``.

    Every argument is escaped to text, so ``%d`` placeholders are accepted
    and filled the same way as ``%s``. Without arguments the template is
    returned untouched, so prebuilt statements may contain literal ``%``
    characters; with arguments a literal ``%`` is written ``%%``.
    """

    if not args:
        return template
    escaped = tuple(escape(connection, value) for value in args)
    template = _INTEGER_PLACEHOLDER.sub(_as_text_placeholder, template)
    try:
        return template % escaped
    except (TypeError, ValueError) as exc:
        raise InterpolationError(f"Cannot substitute {len(escaped)} argument(s): {exc}") from exc


def _as_text_placeholder(match: re.Match[str]) -> str:
    return "%%" if match.group() == "%%" else "%s"


__all__ = ["InterpolationError", "UnsupportedValueError", "escape", "interpolate"]
