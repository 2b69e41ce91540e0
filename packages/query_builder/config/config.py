"""Runtime configuration for query_builder.

Values are sourced from environment variables with safe defaults to support
local development against a Postgres on localhost:5432.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


@dataclass
class DatabaseConfig:
    """Connection settings for the psycopg2-backed client.

    :param dsn: Full connection string; takes precedence over the discrete fields.
    :type dsn: Optional[str]
    :param host: Database host.
    :type host: str
    :param port: Database port.
    :type port: int
    :param name: Database name.
    :type name: str
    :param user: Database user.
    :type user: str
    :param password: Database password.
    :type password: str
    :param sslmode: libpq sslmode.
    :type sslmode: str
    :param connect_timeout: Connect timeout in seconds.
    :type connect_timeout: int
    """
    dsn: Optional[str] = None
    host: str = "localhost"
    port: int = 5432
    name: str = "postgres"
    user: str = "postgres"
    password: str = ""
    sslmode: str = "prefer"
    connect_timeout: int = 10

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        return cls(
            dsn=os.getenv("DATABASE_URL") or None,
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "5432")),
            name=os.getenv("DB_NAME", "postgres"),
            user=os.getenv("DB_USER", "postgres"),
            password=os.getenv("DB_PASSWORD", ""),
            sslmode=os.getenv("DB_SSLMODE", "prefer"),
            connect_timeout=int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
        )

    def connect_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``psycopg2.connect`` when no DSN is set."""
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.name,
            "user": self.user,
            "password": self.password,
            "sslmode": self.sslmode,
            "connect_timeout": self.connect_timeout,
        }

    def describe(self) -> str:
        """Connection summary safe for logs (no password, DSN redacted)."""
        if self.dsn:
            return "using DSN connection (redacted)"
        return f"host={self.host} port={self.port} db={self.name} user={self.user}"


@dataclass
class QueryBuilderConfig:
    """Builder defaults.

    ``paramstyle`` overrides the driver's DB-API paramstyle when set.
    """
    debug: bool = False
    paramstyle: Optional[str] = None

    @classmethod
    def from_env(cls) -> "QueryBuilderConfig":
        return cls(
            debug=_env_flag("QUERY_BUILDER_DEBUG"),
            paramstyle=os.getenv("QUERY_BUILDER_PARAMSTYLE") or None,
        )
