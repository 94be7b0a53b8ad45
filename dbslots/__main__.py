"""Run one query from the command line: `python -m dbslots "SELECT 1"`."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import load_settings
from .models import DatabaseError
from .session import DatabaseSession

MODES = ("rows", "single", "insert-id", "affected", "forget")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="dbslots", description=__doc__)
    parser.add_argument("query", help="Query template with %%s placeholders")
    parser.add_argument("args", nargs="*", help="Values substituted into the template")
    parser.add_argument("--config", type=Path, default=None, help="Path to a config.toml file")
    parser.add_argument("--mode", choices=MODES, default="rows", help="Which result to print")
    parser.add_argument("--caller", default=None, help="Caller name checked against blocked_callers")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def run(session: DatabaseSession, mode: str, query: str, args: list[str], caller: str | None) -> object:
    if mode == "single":
        return session.query_assoc_single(query, *args, caller=caller)
    if mode == "insert-id":
        return session.query_insertid(query, *args, caller=caller)
    if mode == "affected":
        return session.query_affected_rows(query, *args, caller=caller)
    if mode == "forget":
        return session.query_free(query, *args, caller=caller)
    return session.query_assoc(query, *args, caller=caller)


def main(argv: list[str] | None = None) -> int:
    options = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = load_settings(options.config)
    try:
        with DatabaseSession(settings) as session:
            result = run(session, options.mode, options.query, options.args, options.caller)
    except DatabaseError as exc:
        print(f"error: {str(exc) or type(exc).__name__}", file=sys.stderr)
        return 1
    print(json.dumps(result, default=str, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
