import io
import unittest
from contextlib import redirect_stdout
from typing import Any, List, Optional, Sequence
from unittest.mock import Mock

from query_builder.database.builder import QueryBuilder
from query_builder.database.column import Column
from query_builder.database.errors import (
    ConnectionClosedError,
    ConnectionMissingError,
    EmptyQueryError,
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
from query_builder.database.types import ValueType


class FakeCursor:
    def __init__(self, rows: Sequence[Sequence[Any]], columns: Optional[List[str]] = None, rowcount: int = -1):
        self._rows = [tuple(r) for r in rows]
        self._columns = columns
        self.rowcount = rowcount
        self.description = None
        self.executed: List[Any] = []
        self.closed = False

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        if self._columns is not None:
            self.description = [(name, None, None, None, None, None, None) for name in self._columns]

    def fetchall(self):
        return list(self._rows)

    def close(self):
        self.closed = True


class FakeConn:
    def __init__(self, rows=(), columns=None, rowcount: int = -1):
        self._rows = rows
        self._columns = columns
        self._rowcount = rowcount
        self.cursors: List[FakeCursor] = []
        self.closed = False
        self.commits = 0

    def cursor(self):
        cursor = FakeCursor(self._rows, self._columns, self._rowcount)
        self.cursors.append(cursor)
        return cursor

    def commit(self):
        self.commits += 1

    def close(self):
        self.closed = True


class RenderingCursor(FakeCursor):
    """Interpolates parameters the way format-style drivers do."""

    def execute(self, sql, params=None):
        super().execute(sql, params)
        self.rendered = sql % tuple(params) if params is not None else sql


class RenderingConn(FakeConn):
    def cursor(self):
        cursor = RenderingCursor(self._rows, self._columns, self._rowcount)
        self.cursors.append(cursor)
        return cursor


def _select_conn(values: Sequence[Any]) -> FakeConn:
    return FakeConn(rows=[(v,) for v in values], columns=["value"])


class QueryBuilderConstructionTests(unittest.TestCase):
    def test_missing_connection_raises(self):
        with self.assertRaises(ConnectionMissingError):
            QueryBuilder(None)

    def test_initial_state(self):
        builder = QueryBuilder(FakeConn(), debug=True)
        self.assertTrue(builder.debug)
        self.assertEqual(builder.parameter_index, 1)
        self.assertEqual(builder.row, 0)
        self.assertIsNone(builder.statement)
        self.assertFalse(builder.is_closed)

    def test_set_query_rejects_empty_sql(self):
        builder = QueryBuilder(FakeConn())
        with self.assertRaises(EmptyQueryError):
            builder.set_query("")
        with self.assertRaises(EmptyQueryError):
            builder.set_query(None)

    def test_set_query_propagates_driver_error(self):
        conn = FakeConn()
        conn.cursor = Mock(side_effect=RuntimeError("connection lost"))
        with self.assertRaises(RuntimeError):
            QueryBuilder(conn).set_query("select 1")

    def test_set_query_rejects_mixed_placeholders(self):
        with self.assertRaises(MixedPlaceholderError) as ctx:
            QueryBuilder(FakeConn()).set_query("select ?, %s")
        self.assertIsInstance(ctx.exception, QueryBuilderError)

    def test_set_query_replaces_statement_and_resets_index(self):
        conn = FakeConn()
        builder = QueryBuilder(conn).set_query("select ?, ?").set_int(1)
        first = builder.statement
        builder.set_query("select ?")
        self.assertIsNot(builder.statement, first)
        self.assertTrue(conn.cursors[0].closed)
        self.assertEqual(builder.parameter_index, 1)


class QueryBuilderBindingTests(unittest.TestCase):
    def test_implicit_binds_follow_call_order(self):
        builder = QueryBuilder(FakeConn()).set_query("insert into person (name, age) values (?, ?)")
        builder.set_string("Alice").set_int(30)
        self.assertEqual(builder.statement.binding(1), "Alice")
        self.assertEqual(builder.statement.binding(2), 30)
        self.assertEqual(builder.parameter_index, 3)

    def test_explicit_binds_do_not_move_implicit_index(self):
        builder = QueryBuilder(FakeConn()).set_query("select ? , ?, ?")
        builder.set_string("a").set_int(9, position=3).set_int(2)
        self.assertEqual(builder.statement.parameters(), ("a", 2, 9))

    def test_bind_without_statement_raises(self):
        with self.assertRaises(StatementNotPreparedError):
            QueryBuilder(FakeConn()).set_int(1)

    def test_position_out_of_range_raises(self):
        builder = QueryBuilder(FakeConn()).set_query("select ?")
        with self.assertRaises(ParameterIndexError):
            builder.set_int(1, position=2)
        with self.assertRaises(ParameterIndexError):
            builder.set_int(1, position=0)
        builder.set_int(1)
        with self.assertRaises(ParameterIndexError):
            builder.set_int(2)

    def test_long_binds_an_integer(self):
        builder = QueryBuilder(FakeConn()).set_query("select ?")
        builder.set_long(2 ** 40)
        value = builder.statement.binding(1)
        self.assertIsInstance(value, int)
        self.assertEqual(value, 2 ** 40)

    def test_int_range_and_type_checks(self):
        builder = QueryBuilder(FakeConn()).set_query("select ?")
        with self.assertRaises(ParameterValueError):
            builder.set_int(2 ** 31)
        with self.assertRaises(ParameterTypeError):
            builder.set_int("3")
        with self.assertRaises(ParameterTypeError):
            builder.set_int(True)
        with self.assertRaises(ParameterValueError):
            builder.set_long(2 ** 63)

    def test_other_setters_check_types(self):
        builder = QueryBuilder(FakeConn()).set_query("select ?, ?, ?")
        with self.assertRaises(ParameterTypeError):
            builder.set_string(5)
        with self.assertRaises(ParameterTypeError):
            builder.set_boolean(1)
        with self.assertRaises(ParameterTypeError):
            builder.set_double("1.5")
        builder.set_double(2).set_boolean(False).set_string(None)
        self.assertEqual(builder.statement.parameters(), (2.0, False, None))

    def test_set_object_dispatches_on_type(self):
        builder = QueryBuilder(FakeConn()).set_query("select ?, ?, ?, ?, ?")
        for value in (True, 7, 1.5, "x", None):
            builder.set_object(value)
        self.assertEqual(builder.statement.parameters(), (True, 7, 1.5, "x", None))


class QueryBuilderExecutionTests(unittest.TestCase):
    def test_execute_query_buffers_rows_and_closes(self):
        conn = _select_conn(["a", "b"])
        builder = QueryBuilder(conn).set_query("select value from t where id > ?").set_int(0)
        builder.execute_query()
        cursor = conn.cursors[0]
        self.assertEqual(cursor.executed, [("select value from t where id > ?", (0,))])
        self.assertTrue(conn.closed)
        self.assertTrue(cursor.closed)
        self.assertEqual(builder.fetch_all(ValueType.STRING).value, ["a", "b"])

    def test_execute_query_with_unbound_parameter_still_closes(self):
        conn = _select_conn([])
        builder = QueryBuilder(conn).set_query("select value from t where id = ?")
        with self.assertRaises(UnboundParameterError):
            builder.execute_query()
        self.assertTrue(conn.closed)

    def test_execute_without_statement_raises(self):
        conn = FakeConn()
        with self.assertRaises(StatementNotPreparedError):
            QueryBuilder(conn).execute_query()
        self.assertTrue(conn.closed)

    def test_execute_query_without_rows_description_raises(self):
        conn = FakeConn(columns=None)
        with self.assertRaises(NoResultSetError):
            QueryBuilder(conn).set_query("delete from t").execute_query()
        self.assertTrue(conn.closed)

    def test_literal_percent_survives_format_driver(self):
        conn = RenderingConn(rowcount=1)
        builder = QueryBuilder(conn, paramstyle="pyformat").set_query(
            "UPDATE t SET x = 1 WHERE name LIKE 'a%' AND id = ?"
        )
        self.assertEqual(builder.statement.sql, "UPDATE t SET x = 1 WHERE name LIKE 'a%%' AND id = %s")
        self.assertEqual(builder.set_int(7).update(), 1)
        self.assertEqual(conn.cursors[0].rendered, "UPDATE t SET x = 1 WHERE name LIKE 'a%' AND id = 7")

    def test_update_returns_rowcount_commits_and_closes(self):
        conn = FakeConn(rowcount=3)
        builder = QueryBuilder(conn).set_query("update t set a = ?").set_int(1)
        self.assertEqual(builder.update(), 3)
        self.assertEqual(conn.commits, 1)
        self.assertTrue(conn.closed)
        self.assertTrue(builder.is_closed)
        with self.assertRaises(ConnectionClosedError):
            builder.set_query("select 1")
        with self.assertRaises(ConnectionClosedError):
            builder.update()

    def test_close_connection_is_idempotent(self):
        conn = FakeConn()
        builder = QueryBuilder(conn).set_query("select 1")
        builder.close_connection()
        builder.close_connection()
        self.assertTrue(conn.closed)
        self.assertTrue(conn.cursors[0].closed)

    def test_context_manager_closes_on_error(self):
        conn = FakeConn()
        with self.assertRaises(ValueError):
            with QueryBuilder(conn) as builder:
                builder.set_query("select ?")
                raise ValueError("boom")
        self.assertTrue(conn.closed)


class QueryBuilderDebugTests(unittest.TestCase):
    def test_duration_line_uses_clock(self):
        clock = Mock(side_effect=[100.0, 102.4])
        builder = QueryBuilder(FakeConn(), debug=True, clock=clock)
        out = io.StringIO()
        with redirect_stdout(out):
            builder.close_connection()
            builder.close_connection()
        lines = out.getvalue().splitlines()
        self.assertEqual(len(lines), 1)
        self.assertIn("2.400 seconds", lines[0])
        self.assertTrue(lines[0].startswith("Query finished in "))
        self.assertEqual(lines[0].count("!"), 2)

    def test_no_duration_line_without_debug(self):
        out = io.StringIO()
        with redirect_stdout(out):
            QueryBuilder(FakeConn()).close_connection()
        self.assertEqual(out.getvalue(), "")


class QueryBuilderNavigationTests(unittest.TestCase):
    def _executed(self, values) -> QueryBuilder:
        return QueryBuilder(_select_conn(values)).set_query("select value from t").execute_query()

    def test_next_row_walks_rows(self):
        builder = self._executed([1, 2])
        self.assertTrue(builder.next_row())
        self.assertEqual(builder.row, 1)
        self.assertTrue(builder.next_row())
        self.assertFalse(builder.next_row())
        self.assertEqual(builder.row, 3)

    def test_set_row_out_of_range_leaves_pointer(self):
        builder = self._executed([1, 2, 3]).set_row(2)
        with self.assertRaises(RowOutOfRangeError):
            builder.set_row(5)
        self.assertEqual(builder.row, 2)
        self.assertEqual(builder.result.row, 2)

    def test_row_exists_keeps_pointer(self):
        builder = self._executed([1, 2, 3]).set_row(2)
        for probe in (1, 3, 4, 0, -1, 100):
            builder.row_exists(probe)
            self.assertEqual(builder.row, 2)
            self.assertEqual(builder.result.row, 2)
        self.assertTrue(builder.row_exists(3))
        self.assertFalse(builder.row_exists(4))

    def test_row_exists_without_result_is_false(self):
        builder = QueryBuilder(FakeConn())
        self.assertFalse(builder.row_exists(1))

    def test_navigation_without_result_raises(self):
        builder = QueryBuilder(FakeConn())
        with self.assertRaises(NoResultSetError):
            builder.next_row()
        with self.assertRaises(NoResultSetError):
            builder.set_row(1)


class QueryBuilderFetchTests(unittest.TestCase):
    def test_fetch_one_on_empty_result_is_not_an_error(self):
        builder = QueryBuilder(_select_conn([])).set_query("select value from t").execute_query()
        result = builder.fetch_one(ValueType.STRING)
        self.assertIsNone(result.value)
        self.assertIsNone(result.error)
        self.assertFalse(result.found)
        self.assertTrue(result.ok)

    def test_fetch_one_conversion_error_is_reported(self):
        builder = QueryBuilder(_select_conn([5])).set_query("select value from t").execute_query()
        result = builder.fetch_one(ValueType.STRING)
        self.assertIsNone(result.value)
        self.assertIsInstance(result.error, ValueConversionError)
        with self.assertRaises(ValueConversionError):
            result.unwrap()

    def test_fetch_without_result_reports_error(self):
        result = QueryBuilder(FakeConn()).fetch_one(int)
        self.assertIsInstance(result.error, NoResultSetError)

    def test_fetch_reads_column_by_index_and_label(self):
        conn = FakeConn(rows=[(1, "x"), (2, "y")], columns=["id", "name"])
        builder = QueryBuilder(conn).set_query("select id, name from t").execute_query()
        self.assertEqual(builder.fetch(2, str).value, "x")
        self.assertEqual(builder.fetch("id", ValueType.INT).value, 1)
        self.assertEqual(builder.row, 1)

    def test_fetch_one_narrows_to_int(self):
        builder = QueryBuilder(_select_conn([2 ** 40])).set_query("select value from t").execute_query()
        self.assertEqual(builder.fetch_one(ValueType.LONG).value, 2 ** 40)
        self.assertIsInstance(builder.fetch_one(ValueType.INT).error, ValueConversionError)

    def test_fetch_all_partial_on_conversion_failure(self):
        builder = QueryBuilder(_select_conn(["a", "b", 3, "d"])).set_query("select value from t").execute_query()
        result = builder.fetch_all(ValueType.STRING)
        self.assertEqual(result.value, ["a", "b"])
        self.assertIsInstance(result.error, ValueConversionError)
        self.assertTrue(result.found)

    def test_fetch_all_starts_from_current_position(self):
        builder = QueryBuilder(_select_conn([1, 2, 3])).set_query("select value from t").execute_query()
        builder.next_row()
        self.assertEqual(builder.fetch_all(int).value, [2, 3])

    def test_fetch_one_into_writes_columns(self):
        conn = FakeConn(rows=[(1, "x"), (2, "y")], columns=["id", "name"])
        builder = QueryBuilder(conn).set_query("select id, name from t").execute_query()
        ident, name = Column(ValueType.INT), Column()
        result = builder.fetch_one_into(ident, name)
        self.assertEqual((ident.value, name.value), (1, "x"))
        self.assertEqual(result.value, (1, "x"))

    def test_fetch_all_into_appends_in_row_order(self):
        conn = FakeConn(rows=[(1, "x"), (2, "y"), (3, "z")], columns=["id", "name"])
        builder = QueryBuilder(conn).set_query("select id, name from t").execute_query()
        builder.set_row(2)
        ids, names = Column(int), Column(str)
        result = builder.fetch_all_into(ids, names)
        self.assertEqual(ids.values, [1, 2, 3])
        self.assertEqual(names.values, ["x", "y", "z"])
        self.assertEqual(result.value, 3)

    def test_fetch_all_into_skips_row_that_fails_to_convert(self):
        conn = FakeConn(rows=[(1, "x"), (2, 3)], columns=["id", "name"])
        builder = QueryBuilder(conn).set_query("select id, name from t").execute_query()
        ids, names = Column(int), Column(str)
        result = builder.fetch_all_into(ids, names)
        self.assertEqual(ids.values, [1])
        self.assertEqual(names.values, ["x"])
        self.assertEqual(len(ids), len(names))
        self.assertEqual(result.value, 1)
        self.assertIsInstance(result.error, ValueConversionError)

    def test_fetch_one_into_leaves_columns_on_conversion_failure(self):
        conn = FakeConn(rows=[(1, 3)], columns=["id", "name"])
        builder = QueryBuilder(conn).set_query("select id, name from t").execute_query()
        ident, name = Column(int, value=0), Column(str, value="old")
        result = builder.fetch_one_into(ident, name)
        self.assertEqual((ident.value, name.value), (0, "old"))
        self.assertIsInstance(result.error, ValueConversionError)

    def test_fetch_all_rows_returns_dicts(self):
        conn = FakeConn(rows=[(1, "x")], columns=["id", "name"])
        builder = QueryBuilder(conn).set_query("select id, name from t").execute_query()
        self.assertEqual(builder.fetch_all_rows().value, [{"id": 1, "name": "x"}])


if __name__ == "__main__":
    unittest.main()
