"""Factory for obtaining a DatabaseClient implementation.

Usage:
  from query_builder.support.db_factory import get_database_client
  db = get_database_client()

Behavior:
- If env var QUERY_BUILDER_CLIENT_PATH is set (e.g. "myapp.db:SqliteClient"),
  the factory imports that symbol and instantiates it. The symbol must
  implement the DatabaseClientProtocol.
- Otherwise it returns the standard query_builder.database.client.DatabaseClient.
"""
from __future__ import annotations

import importlib
import logging
import os
from typing import Optional

from query_builder.database.client import DatabaseClient as PsycopgDatabaseClient
from query_builder.support.db_interface import DatabaseClientProtocol

logger = logging.getLogger(__name__)


def _load_external_client(path: str) -> Optional[DatabaseClientProtocol]:
    """Load an external DB client from a python path like 'pkg.module:ClassName'."""
    try:
        if ":" in path:
            module_path, symbol = path.split(":", 1)
        elif "." in path:
            module_path, symbol = path.rsplit(".", 1)
        else:
            return None
        module = importlib.import_module(module_path)
        cls = getattr(module, symbol)
        return cls()  # type: ignore
    except Exception as exc:
        logger.warning("Failed to load database client %s: %s", path, exc)
        return None


def get_database_client() -> DatabaseClientProtocol:
    """Return a database client instance.

    Prefers the client named by `QUERY_BUILDER_CLIENT_PATH`. Falls back to the
    psycopg2-based `DatabaseClient`.
    """
    path = os.getenv("QUERY_BUILDER_CLIENT_PATH")
    if path:
        client = _load_external_client(path)
        if client:
            return client
    return PsycopgDatabaseClient()
