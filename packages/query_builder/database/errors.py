"""Exceptions raised by the query builder.

Driver errors (psycopg2, sqlite3, ...) are not wrapped; they propagate as the
driver's own DB-API exceptions.
"""
from __future__ import annotations


class QueryBuilderError(Exception):
    """Base class for query builder failures."""


class ConnectionMissingError(QueryBuilderError, ValueError):
    """Raised when a builder is constructed without a connection."""


class ConnectionClosedError(QueryBuilderError):
    """Raised when an operation needs a connection that was already released."""


class EmptyQueryError(QueryBuilderError, ValueError):
    """Raised when set_query receives no SQL."""


class StatementNotPreparedError(QueryBuilderError):
    """Raised when binding or executing before set_query."""


class ParameterIndexError(QueryBuilderError, IndexError):
    """Raised when a bind position is outside the statement's placeholders."""

    def __init__(self, position: int, parameter_count: int) -> None:
        super().__init__(
            f"Parameter position {position} out of range (statement has {parameter_count} placeholders)"
        )
        self.position = position
        self.parameter_count = parameter_count


class ParameterTypeError(QueryBuilderError, TypeError):
    """Raised when a bound value does not match the setter's type."""


class ParameterValueError(QueryBuilderError, ValueError):
    """Raised when a bound integer does not fit the setter's width."""


class UnboundParameterError(QueryBuilderError):
    """Raised when executing with placeholders that were never bound."""

    def __init__(self, positions) -> None:
        self.positions = list(positions)
        super().__init__(f"Unbound parameter positions: {self.positions}")


class NoResultSetError(QueryBuilderError):
    """Raised when navigating or reading rows without a read query result."""


class RowOutOfRangeError(QueryBuilderError, IndexError):
    """Raised when seeking to a row that does not exist."""

    def __init__(self, row: int, row_count: int) -> None:
        super().__init__(f"Row {row} out of range (result has {row_count} rows)")
        self.row = row
        self.row_count = row_count


class ColumnNotFoundError(QueryBuilderError, LookupError):
    """Raised when reading a column index or label the result does not have."""


class InvalidCursorPositionError(QueryBuilderError):
    """Raised when reading a value while the cursor is not on a row."""


class ValueConversionError(QueryBuilderError, TypeError):
    """Raised when a fetched value cannot be converted to the requested type."""


class MixedPlaceholderError(QueryBuilderError, ValueError):
    """Raised when SQL uses both ``?`` and ``%s`` placeholders."""
