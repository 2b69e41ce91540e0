"""Prepared statement emulation over a DB-API cursor.

DB-API drivers take the SQL and the parameter sequence together at execute
time, so the statement keeps the bindings itself and checks positions against
the placeholders it finds in the SQL.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from query_builder.database.errors import MixedPlaceholderError, ParameterIndexError, UnboundParameterError
from query_builder.support.db_interface import CursorProtocol

logger = logging.getLogger(__name__)

QMARK = "qmark"
FORMAT = "format"
PYFORMAT = "pyformat"

_FORMAT_STYLES = (FORMAT, PYFORMAT)


def scan_placeholders(sql: str) -> Tuple[List[Tuple[int, int]], str]:
    """Locate positional placeholders outside literals and comments.

    Recognises ``?`` and ``%s``. A literal ``%%`` is skipped.

    :returns: (list of (start, end) spans, style found: "qmark", "format", or "").
    """
    spans: List[Tuple[int, int]] = []
    styles = set()
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        if ch in ("'", '"'):
            # quoted literal or identifier; a doubled quote is an escape
            i += 1
            while i < n:
                if sql[i] == ch:
                    if i + 1 < n and sql[i + 1] == ch:
                        i += 2
                        continue
                    break
                i += 1
            i += 1
            continue
        if ch == "-" and sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end + 1
            continue
        if ch == "/" and sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        if ch == "?":
            spans.append((i, i + 1))
            styles.add(QMARK)
        elif ch == "%" and i + 1 < n:
            if sql[i + 1] == "%":
                i += 2
                continue
            if sql[i + 1] == "s":
                spans.append((i, i + 2))
                styles.add(FORMAT)
                i += 2
                continue
        i += 1
    if len(styles) > 1:
        raise MixedPlaceholderError("SQL mixes '?' and '%s' placeholders")
    return spans, (styles.pop() if styles else "")


def normalize_placeholders(sql: str, paramstyle: Optional[str]) -> Tuple[str, int]:
    """Rewrite placeholders to the driver's paramstyle.

    Only the positional styles are rewritten (``?`` <-> ``%s``); any other
    paramstyle leaves the SQL unchanged. Format drivers %-interpolate the
    whole statement, literals and comments included, so every other ``%``
    is doubled on the way to ``%s`` and ``%%`` is collapsed on the way to
    ``?``. SQL without placeholders is executed without parameters and is
    never interpolated, so it is returned as is.

    :returns: (driver SQL, number of placeholders).
    """
    spans, found = scan_placeholders(sql)
    if not spans:
        return sql, 0

    if paramstyle == QMARK and found == FORMAT:
        marker = "?"
        escape = _unescape_percent
    elif paramstyle in _FORMAT_STYLES and found == QMARK:
        marker = "%s"
        escape = _escape_percent
    else:
        return sql, len(spans)

    parts: List[str] = []
    last = 0
    for start, end in spans:
        parts.append(escape(sql[last:start]))
        parts.append(marker)
        last = end
    parts.append(escape(sql[last:]))
    return "".join(parts), len(spans)


def _escape_percent(text: str) -> str:
    return text.replace("%", "%%")


def _unescape_percent(text: str) -> str:
    return text.replace("%%", "%")


class PreparedStatement:
    """SQL text, 1-based bindings and the driver cursor that will run them."""

    def __init__(self, cursor: CursorProtocol, raw_query: str, paramstyle: Optional[str] = None) -> None:
        self._cursor = cursor
        self.raw_query = raw_query
        self.sql, self.parameter_count = normalize_placeholders(raw_query, paramstyle)
        self._bindings: Dict[int, Any] = {}
        self.closed = False

    @property
    def cursor(self) -> CursorProtocol:
        return self._cursor

    def bind(self, position: int, value: Any) -> None:
        if isinstance(position, bool) or not isinstance(position, int) or not 1 <= position <= self.parameter_count:
            raise ParameterIndexError(position, self.parameter_count)
        self._bindings[position] = value

    def binding(self, position: int) -> Any:
        if position not in self._bindings:
            raise KeyError(position)
        return self._bindings[position]

    def parameters(self) -> Tuple[Any, ...]:
        missing = [p for p in range(1, self.parameter_count + 1) if p not in self._bindings]
        if missing:
            raise UnboundParameterError(missing)
        return tuple(self._bindings[p] for p in range(1, self.parameter_count + 1))

    def execute(self) -> CursorProtocol:
        params = self.parameters()
        logger.debug("Executing statement with %d parameters: %s", len(params), self.sql)
        if params:
            self._cursor.execute(self.sql, params)
        else:
            self._cursor.execute(self.sql)
        return self._cursor

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._cursor.close()
        finally:
            self.closed = True
