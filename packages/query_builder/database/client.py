import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from query_builder.config.config import DatabaseConfig, QueryBuilderConfig
from query_builder.database.builder import QueryBuilder

logger = logging.getLogger(__name__)


class DatabaseClient:
    """psycopg2-backed source of connections for QueryBuilder.

    Responsibilities:
    - Open a fresh driver connection per builder; builders close it after executing.
    - Provide `execute_query` / `execute_update` shortcuts that bind parameters
      positionally through a builder.

    Construction:
      - Pass a `connect` callable returning DB-API connections for tests or other drivers, or
      - Provide a `DatabaseConfig`, or rely on environment variables (DATABASE_URL or DB_*).
    """

    def __init__(
        self,
        config: Optional[DatabaseConfig] = None,
        connect: Optional[Callable[[], Any]] = None,
        builder_config: Optional[QueryBuilderConfig] = None,
    ) -> None:
        self._config = config
        self._connect = connect
        self._builder_config = builder_config

    @property
    def config(self) -> DatabaseConfig:
        if self._config is None:
            self._config = DatabaseConfig.from_env()
        return self._config

    @property
    def builder_config(self) -> QueryBuilderConfig:
        if self._builder_config is None:
            self._builder_config = QueryBuilderConfig.from_env()
        return self._builder_config

    def connect(self) -> Any:
        """Open and return a new connection.

        The psycopg2 import is deferred until a real connection is required so the
        module can be imported in environments where the driver is not installed.
        """
        if self._connect is not None:
            return self._connect()

        try:
            import psycopg2
        except Exception as exc:
            raise RuntimeError(
                "psycopg2 is required to use DatabaseClient. Install 'psycopg2-binary'."
            ) from exc

        config = self.config
        logger.info("connect -> %s", config.describe())
        if config.dsn:
            return psycopg2.connect(config.dsn)
        return psycopg2.connect(**config.connect_kwargs())

    def query(self, raw_query: str, debug: Optional[bool] = None) -> QueryBuilder:
        """Return a builder on a new connection with ``raw_query`` prepared."""
        settings = self.builder_config
        builder = QueryBuilder(
            self.connect(),
            debug=settings.debug if debug is None else debug,
            paramstyle=settings.paramstyle,
        )
        try:
            return builder.set_query(raw_query)
        except Exception:
            builder.close_connection()
            raise

    def _bound(self, sql: str, params: Optional[Sequence[Any]], debug: Optional[bool]) -> QueryBuilder:
        builder = self.query(sql, debug=debug)
        try:
            for value in params or []:
                builder.set_object(value)
        except Exception:
            builder.close_connection()
            raise
        return builder

    def execute_query(
        self, sql: str, params: Optional[Sequence[Any]] = None, debug: Optional[bool] = None
    ) -> List[Dict[str, Any]]:
        """Execute a read query and return rows as dictionaries.

        Args:
            sql: SQL statement with positional placeholders.
            params: Optional list/tuple of parameters, bound in order.

        Returns:
            List of rows as dicts.
        """
        builder = self._bound(sql, params, debug)
        return builder.execute_query().fetch_all_rows().unwrap() or []

    def execute_update(
        self, sql: str, params: Optional[Sequence[Any]] = None, debug: Optional[bool] = None
    ) -> int:
        """Execute an INSERT/UPDATE/DELETE and return the affected-row count."""
        return self._bound(sql, params, debug).update()
