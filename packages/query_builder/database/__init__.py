"""Fluent query builder and its supporting types."""
from .builder import QueryBuilder
from .column import Column
from .errors import (
    ColumnNotFoundError,
    ConnectionClosedError,
    ConnectionMissingError,
    EmptyQueryError,
    InvalidCursorPositionError,
    MixedPlaceholderError,
    NoResultSetError,
    ParameterIndexError,
    ParameterTypeError,
    ParameterValueError,
    QueryBuilderError,
    RowOutOfRangeError,
    StatementNotPreparedError,
    UnboundParameterError,
    ValueConversionError,
)
from .result_set import ResultSet
from .results import FetchResult
from .statement import PreparedStatement
from .types import ValueType, cast

__all__ = [
    "QueryBuilder",
    "Column",
    "FetchResult",
    "PreparedStatement",
    "ResultSet",
    "ValueType",
    "cast",
    "QueryBuilderError",
    "ColumnNotFoundError",
    "ConnectionClosedError",
    "ConnectionMissingError",
    "EmptyQueryError",
    "InvalidCursorPositionError",
    "MixedPlaceholderError",
    "NoResultSetError",
    "ParameterIndexError",
    "ParameterTypeError",
    "ParameterValueError",
    "RowOutOfRangeError",
    "StatementNotPreparedError",
    "UnboundParameterError",
    "ValueConversionError",
]
