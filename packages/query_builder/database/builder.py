"""Fluent query builder over a DB-API connection.

Typical use::

    rows = (
        QueryBuilder(conn)
        .set_query("SELECT name FROM person WHERE age > ? AND active = ?")
        .set_int(30)
        .set_boolean(True)
        .execute_query()
        .fetch_all(ValueType.STRING)
    )

``execute_query`` and ``update`` close the connection once the statement has
run. Read results are buffered first, so fetches keep working afterwards.
"""
from __future__ import annotations

import logging
import sys
import time
from typing import Any, Callable, List, Optional, Tuple

from query_builder.database.column import Column
from query_builder.database.errors import (
    ConnectionClosedError,
    ConnectionMissingError,
    EmptyQueryError,
    NoResultSetError,
    ParameterTypeError,
    ParameterValueError,
    RowOutOfRangeError,
    StatementNotPreparedError,
)
from query_builder.database.result_set import ColumnRef, ResultSet
from query_builder.database.results import FetchResult
from query_builder.database.statement import PreparedStatement
from query_builder.database.types import TypeSpec, cast, in_int32_range, in_int64_range
from query_builder.support.db_interface import ConnectionProtocol
from query_builder.support.timing import DurationTimer

logger = logging.getLogger(__name__)


def detect_paramstyle(connection: Any) -> Optional[str]:
    """Return the DB-API ``paramstyle`` of the module that created ``connection``."""
    root = type(connection).__module__.split(".")[0]
    module = sys.modules.get(root)
    return getattr(module, "paramstyle", None)


class QueryBuilder:
    """Builder over one prepared statement and the rows it produces.

    Not thread-safe: the parameter index, row pointer and held statement are
    plain instance state.
    """

    def __init__(
        self,
        connection: ConnectionProtocol,
        debug: bool = False,
        paramstyle: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if connection is None:
            raise ConnectionMissingError("QueryBuilder requires an open connection")
        self._timer = DurationTimer(clock)
        self._connection: Optional[ConnectionProtocol] = connection
        self._debug = bool(debug)
        self._paramstyle = paramstyle or detect_paramstyle(connection)
        self._statement: Optional[PreparedStatement] = None
        self._result: Optional[ResultSet] = None
        self._index = 1
        self._row = 0

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def row(self) -> int:
        """Current row pointer; 0 is before the first row."""
        return self._row

    @property
    def parameter_index(self) -> int:
        """Position the next implicit bind will use."""
        return self._index

    @property
    def statement(self) -> Optional[PreparedStatement]:
        return self._statement

    @property
    def result(self) -> Optional[ResultSet]:
        return self._result

    @property
    def is_closed(self) -> bool:
        return self._connection is None

    def __enter__(self) -> "QueryBuilder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close_connection()

    # ------------------------------------------------------------------
    # Statement and binding
    # ------------------------------------------------------------------
    def set_query(self, raw_query: str) -> "QueryBuilder":
        """Prepare ``raw_query``, replacing any statement held before.

        Placeholders may be written as ``?`` or ``%s``; they are rewritten to
        the driver's paramstyle.
        """
        if raw_query is None or not str(raw_query).strip():
            raise EmptyQueryError("Query must be a non-empty string")
        if self._connection is None:
            raise ConnectionClosedError("Connection already closed; create a new QueryBuilder")
        if self._statement is not None:
            self._statement.close()
            self._statement = None
        try:
            cursor = self._connection.cursor()
        except Exception as exc:
            logger.error("Failed to prepare statement: %s", exc)
            raise
        try:
            self._statement = PreparedStatement(cursor, raw_query, self._paramstyle)
        except Exception:
            cursor.close()
            raise
        self._index = 1
        self._result = None
        self._row = 0
        return self

    def _bind(self, value: Any, position: Optional[int]) -> "QueryBuilder":
        if self._statement is None:
            raise StatementNotPreparedError("Call set_query before binding parameters")
        if position is None:
            self._statement.bind(self._index, value)
            self._index += 1
        else:
            self._statement.bind(position, value)
        return self

    @staticmethod
    def _check_integer(value: Any, setter: str) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ParameterTypeError(f"{setter} expects int, got {type(value).__name__}")

    def set_int(self, value: Optional[int], position: Optional[int] = None) -> "QueryBuilder":
        """Bind a 32-bit integer at ``position`` or at the next implicit position."""
        if value is not None:
            self._check_integer(value, "set_int")
            if not in_int32_range(value):
                raise ParameterValueError(f"set_int value {value} does not fit in 32 bits")
        return self._bind(value, position)

    def set_long(self, value: Optional[int], position: Optional[int] = None) -> "QueryBuilder":
        """Bind a 64-bit integer at ``position`` or at the next implicit position."""
        if value is not None:
            self._check_integer(value, "set_long")
            if not in_int64_range(value):
                raise ParameterValueError(f"set_long value {value} does not fit in 64 bits")
        return self._bind(value, position)

    def set_double(self, value: Optional[float], position: Optional[int] = None) -> "QueryBuilder":
        if value is not None:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ParameterTypeError(f"set_double expects float, got {type(value).__name__}")
            value = float(value)
        return self._bind(value, position)

    def set_string(self, value: Optional[str], position: Optional[int] = None) -> "QueryBuilder":
        if value is not None and not isinstance(value, str):
            raise ParameterTypeError(f"set_string expects str, got {type(value).__name__}")
        return self._bind(value, position)

    def set_boolean(self, value: Optional[bool], position: Optional[int] = None) -> "QueryBuilder":
        if value is not None and not isinstance(value, bool):
            raise ParameterTypeError(f"set_boolean expects bool, got {type(value).__name__}")
        return self._bind(value, position)

    def set_null(self, position: Optional[int] = None) -> "QueryBuilder":
        return self._bind(None, position)

    def set_object(self, value: Any, position: Optional[int] = None) -> "QueryBuilder":
        """Bind ``value`` through the setter matching its Python type.

        Integers go through ``set_long``; types without a setter are handed to
        the driver unchanged.
        """
        if value is None:
            return self.set_null(position)
        if isinstance(value, bool):
            return self.set_boolean(value, position)
        if isinstance(value, int):
            return self.set_long(value, position)
        if isinstance(value, float):
            return self.set_double(value, position)
        if isinstance(value, str):
            return self.set_string(value, position)
        return self._bind(value, position)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def _require_statement(self) -> PreparedStatement:
        if self._connection is None:
            raise ConnectionClosedError("Connection already closed; create a new QueryBuilder")
        if self._statement is None:
            raise StatementNotPreparedError("Call set_query before executing")
        return self._statement

    def execute_query(self) -> "QueryBuilder":
        """Run the statement as a read query and buffer its rows.

        The connection is closed whether or not execution succeeds.
        """
        try:
            statement = self._require_statement()
            cursor = statement.execute()
            if cursor.description is None:
                raise NoResultSetError("Statement did not return rows; use update() for writes")
            self._result = ResultSet.from_cursor(cursor)
            self._row = self._result.row
            logger.debug("Query returned %d rows", len(self._result))
        except Exception as exc:
            logger.error("Database query failed: %s", exc)
            raise
        finally:
            self.close_connection()
        return self

    def update(self) -> int:
        """Run the statement as an INSERT/UPDATE/DELETE and return the affected-row count."""
        try:
            statement = self._require_statement()
            cursor = statement.execute()
            affected = cursor.rowcount
            commit = getattr(self._connection, "commit", None)
            if callable(commit):
                commit()
            logger.debug("Update affected %s rows", affected)
        except Exception as exc:
            logger.error("Database update failed: %s", exc)
            raise
        finally:
            self.close_connection()
        return affected

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def _require_result(self) -> ResultSet:
        if self._result is None:
            raise NoResultSetError("No result set; call execute_query first")
        return self._result

    def next_row(self) -> bool:
        """Advance one row; False once the rows are exhausted."""
        result = self._require_result()
        has_row = result.next()
        self._row = result.row
        return has_row

    def set_row(self, row: int) -> "QueryBuilder":
        """Move to the absolute 1-based ``row``."""
        result = self._require_result()
        if not result.contains(row):
            raise RowOutOfRangeError(row, len(result))
        result.absolute(row)
        self._row = result.row
        return self

    def row_exists(self, row: int) -> bool:
        """Report whether ``row`` exists without moving the cursor.

        A failed probe is logged and reported as False.
        """
        try:
            result = self._require_result()
            exists = result.absolute(row)
            result.absolute(self._row)
            return exists
        except Exception as exc:
            logger.warning("row_exists(%s) probe failed: %s", row, exc)
            return False

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    def _failed(self, operation: str, exc: BaseException, value: Any = None, found: bool = False) -> FetchResult:
        logger.warning("%s failed: %s", operation, exc)
        return FetchResult(value=value, error=exc, found=found)

    def fetch(self, column: ColumnRef, value_type: Optional[TypeSpec] = None) -> FetchResult:
        """Read ``column`` (1-based index or label) from the first row."""
        try:
            result = self._require_result()
            on_row = result.first()
            self._row = result.row
            if not on_row:
                return FetchResult()
            return FetchResult(value=cast(result.get(column), value_type), found=True)
        except Exception as exc:
            return self._failed("fetch", exc)

    def fetch_one(self, value_type: Optional[TypeSpec] = None) -> FetchResult:
        """Read the first column of the first row."""
        return self.fetch(1, value_type)

    def fetch_one_into(self, *columns: Column) -> FetchResult:
        """Write the first row's values into ``columns`` by position.

        The result value is the tuple of values written.
        """
        try:
            result = self._require_result()
            on_row = result.first()
            self._row = result.row
            if not on_row:
                return FetchResult()
            written = self._convert_row(result, columns)
            for col, value in zip(columns, written):
                col.value = value
            return FetchResult(value=written, found=True)
        except Exception as exc:
            return self._failed("fetch_one_into", exc)

    def fetch_all_into(self, *columns: Column) -> FetchResult:
        """Append every row's values into ``columns`` by position, in one pass.

        The result value is the number of rows appended.
        """
        count = 0
        try:
            result = self._require_result()
            result.before_first()
            self._row = result.row
            while self.next_row():
                converted = self._convert_row(result, columns)
                for col, value in zip(columns, converted):
                    col.values.append(value)
                count += 1
            return FetchResult(value=count, found=count > 0)
        except Exception as exc:
            return self._failed("fetch_all_into", exc, value=count, found=count > 0)

    @staticmethod
    def _convert_row(result: ResultSet, columns: Tuple[Column, ...]) -> Tuple[Any, ...]:
        # a row is written to the columns only once every value converts
        return tuple(col.convert(result.get(i)) for i, col in enumerate(columns, start=1))

    def fetch_all(self, value_type: Optional[TypeSpec] = None) -> FetchResult:
        """Collect the first column of every row from the current position onwards.

        A conversion failure stops the scan; the result keeps the values read so
        far alongside the error.
        """
        values: List[Any] = []
        try:
            result = self._require_result()
            while self.next_row():
                values.append(cast(result.get(1), value_type))
            return FetchResult(value=values, found=bool(values))
        except Exception as exc:
            return self._failed("fetch_all", exc, value=values, found=bool(values))

    def fetch_all_rows(self) -> FetchResult:
        """Return every row as a dict keyed by column label."""
        rows: List[dict] = []
        try:
            result = self._require_result()
            result.before_first()
            self._row = result.row
            while self.next_row():
                rows.append(result.as_dict())
            return FetchResult(value=rows, found=bool(rows))
        except Exception as exc:
            return self._failed("fetch_all_rows", exc, value=rows, found=bool(rows))

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------
    def close_connection(self) -> None:
        """Close the statement, then the connection. Safe to call repeatedly.

        With debug enabled, the call that releases the connection prints the
        run duration.
        """
        if self._statement is None and self._connection is None:
            return
        statement, connection = self._statement, self._connection
        self._statement = None
        self._connection = None
        try:
            if statement is not None:
                statement.close()
        finally:
            if connection is not None:
                connection.close()
            if self._debug:
                line = self._timer.report()
                logger.debug(line)
                print(line)
