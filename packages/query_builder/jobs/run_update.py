"""Run an INSERT/UPDATE/DELETE and print the affected-row count."""
from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from query_builder.jobs._params import parse_params
from query_builder.support.db_factory import get_database_client

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="query-builder run run_update")
    parser.add_argument("sql", help="Write statement with positional placeholders (? or %%s)")
    parser.add_argument("--param", action="append", default=[], help="Parameter value, repeat in order")
    parser.add_argument("--debug", action="store_true", help="Print the statement duration")

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return int(exc.code or 0)

    client = get_database_client()
    try:
        options = {"debug": True} if args.debug else {}
        affected = client.execute_update(args.sql, parse_params(args.param), **options)
    except Exception as exc:
        logger.error("run_update failed: %s", exc)
        return 1

    print(f"{affected} rows affected")
    return 0


JOB = (main, "Run a write statement and print the affected-row count")
