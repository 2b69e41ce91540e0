"""Client-side buffered result set with scrollable cursor semantics."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union

from query_builder.database.errors import ColumnNotFoundError, InvalidCursorPositionError

ColumnRef = Union[int, str]


class ResultSet:
    """Rows of a read query, held in memory so they outlive the connection.

    The cursor position is 1-based: 0 means before the first row and
    ``len(rows) + 1`` means after the last one. Navigation mirrors the JDBC
    scrollable cursor (``next``, ``absolute``, ``first``, ``before_first``).
    """

    def __init__(self, rows: Sequence[Sequence[Any]], columns: Optional[Sequence[str]] = None) -> None:
        self._rows: List[tuple] = [tuple(r) for r in rows]
        self._columns: List[str] = list(columns or [])
        self._position = 0

    @classmethod
    def from_cursor(cls, cursor: Any) -> "ResultSet":
        """Drain a DB-API cursor into a new result set.

        :param cursor: Executed cursor exposing ``description`` and ``fetchall``.
        :returns: Result set positioned before the first row.
        """
        columns = [col[0] for col in cursor.description] if cursor.description else []
        rows = cursor.fetchall()
        # dict-style rows (RealDictCursor, sqlite3.Row) keep their column order
        normalized = [tuple(r.values()) if isinstance(r, dict) else tuple(r) for r in rows]
        return cls(normalized, columns)

    @property
    def row(self) -> int:
        return self._position

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def __len__(self) -> int:
        return len(self._rows)

    def contains(self, row: int) -> bool:
        return 1 <= row <= len(self._rows)

    def next(self) -> bool:
        if self._position <= len(self._rows):
            self._position += 1
        return self.contains(self._position)

    def absolute(self, row: int) -> bool:
        """Move to ``row`` and report whether it is a real row.

        Rows past either end park the cursor before the first or after the last
        row, as a scrollable driver cursor would.
        """
        if row <= 0:
            self._position = 0
        elif row > len(self._rows):
            self._position = len(self._rows) + 1
        else:
            self._position = row
        return self.contains(self._position)

    def first(self) -> bool:
        return self.absolute(1)

    def before_first(self) -> None:
        self._position = 0

    def column_index(self, column: ColumnRef) -> int:
        """Resolve a 1-based index or a column label to a 1-based index."""
        if isinstance(column, str):
            for idx, name in enumerate(self._columns, start=1):
                if name == column:
                    return idx
            lowered = column.lower()
            for idx, name in enumerate(self._columns, start=1):
                if name.lower() == lowered:
                    return idx
            raise ColumnNotFoundError(f"No column labelled {column!r}")
        width = len(self._columns) or (len(self._rows[0]) if self._rows else 0)
        if isinstance(column, bool) or not isinstance(column, int) or not 1 <= column <= width:
            raise ColumnNotFoundError(f"Column index {column!r} out of range (1..{width})")
        return column

    def get(self, column: ColumnRef) -> Any:
        """Return the value of ``column`` at the current row."""
        if not self.contains(self._position):
            raise InvalidCursorPositionError(f"Cursor is not on a row (position {self._position})")
        index = self.column_index(column)
        return self._rows[self._position - 1][index - 1]

    def current(self) -> tuple:
        if not self.contains(self._position):
            raise InvalidCursorPositionError(f"Cursor is not on a row (position {self._position})")
        return self._rows[self._position - 1]

    def as_dict(self) -> Dict[str, Any]:
        row = self.current()
        labels = self._columns or [str(i) for i in range(1, len(row) + 1)]
        return dict(zip(labels, row))
