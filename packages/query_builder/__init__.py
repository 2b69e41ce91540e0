"""query_builder: a fluent wrapper over DB-API prepared statements and cursors."""
from query_builder.database import Column, FetchResult, QueryBuilder, QueryBuilderError, ValueType
from query_builder.database.client import DatabaseClient

__all__ = ["Column", "DatabaseClient", "FetchResult", "QueryBuilder", "QueryBuilderError", "ValueType"]
