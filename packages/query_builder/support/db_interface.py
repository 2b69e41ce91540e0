"""Runtime interfaces for the DB-API objects query_builder works with.

Any PEP 249 driver satisfies these structurally; nothing here imports a driver.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence


class CursorProtocol(Protocol):
    """The slice of a DB-API cursor the prepared statement relies on."""

    description: Optional[Sequence[Sequence[Any]]]
    rowcount: int

    def execute(self, operation: str, parameters: Sequence[Any] = ...) -> Any:  # pragma: no cover - interface
        ...

    def fetchall(self) -> List[Sequence[Any]]:  # pragma: no cover - interface
        ...

    def close(self) -> None:  # pragma: no cover - interface
        ...


class ConnectionProtocol(Protocol):
    """Open DB-API connection borrowed by a QueryBuilder."""

    def cursor(self) -> CursorProtocol:  # pragma: no cover - interface
        ...

    def commit(self) -> None:  # pragma: no cover - interface
        ...

    def close(self) -> None:  # pragma: no cover - interface
        ...


class DatabaseClientProtocol(Protocol):
    """Minimal database client protocol.

    Implementations provide `execute_query(sql, params, debug)` returning dict
    rows, `execute_update(sql, params, debug)` returning an affected-row count,
    and `query(sql, debug)` returning a prepared QueryBuilder. `debug=None`
    means the client's configured default.
    """

    def execute_query(
        self, sql: str, params: Optional[Sequence[Any]] = None, debug: Optional[bool] = None
    ) -> List[Dict[str, Any]]:  # pragma: no cover - interface
        ...

    def execute_update(
        self, sql: str, params: Optional[Sequence[Any]] = None, debug: Optional[bool] = None
    ) -> int:  # pragma: no cover - interface
        ...

    def query(self, raw_query: str, debug: Optional[bool] = None) -> Any:  # pragma: no cover - interface
        ...
