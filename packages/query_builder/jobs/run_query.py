"""Run a read query and print its rows."""
from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, List, Optional

from query_builder.jobs._params import parse_params
from query_builder.support.db_factory import get_database_client

logger = logging.getLogger(__name__)


def _render_table(rows: List[Dict[str, Any]]) -> str:
    if not rows:
        return "(0 rows)"
    headers = list(rows[0].keys())
    lines = ["\t".join(headers)]
    for row in rows:
        lines.append("\t".join("NULL" if row[h] is None else str(row[h]) for h in headers))
    lines.append(f"({len(rows)} rows)")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="query-builder run run_query")
    parser.add_argument("sql", help="SELECT statement with positional placeholders (? or %%s)")
    parser.add_argument("--param", action="append", default=[], help="Parameter value, repeat in order")
    parser.add_argument("--debug", action="store_true", help="Print the query duration")
    parser.add_argument("--format", choices=("table", "json"), default="table")

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return int(exc.code or 0)

    client = get_database_client()
    try:
        options = {"debug": True} if args.debug else {}
        rows = client.execute_query(args.sql, parse_params(args.param), **options)
    except Exception as exc:
        logger.error("run_query failed: %s", exc)
        return 1

    if args.format == "json":
        print(json.dumps(rows, default=str, indent=2))
    else:
        print(_render_table(rows))
    return 0


JOB = (main, "Run a read query and print its rows")
