"""SQLite adapter using stdlib sqlite3."""

from __future__ import annotations

import re
import sqlite3
from functools import lru_cache
from typing import Any

from row_gateway.core.connection import ConnectionConfig
from row_gateway.core.exceptions import PoolError


@lru_cache(maxsize=128)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def _regexp(pattern: str | None, value: Any) -> bool:
    """Backs ``value REGEXP pattern``; SQLite calls ``regexp(pattern, value)``."""
    if pattern is None or value is None:
        return False
    try:
        return _compile(pattern).search(str(value)) is not None
    except re.error:
        return False


class SqliteAdapter:
    """Synchronous SQLite adapter using stdlib sqlite3."""

    @property
    def columns_sql(self) -> str:
        return "SELECT name FROM pragma_table_info(?) ORDER BY cid"

    @property
    def primary_key_sql(self) -> str:
        return "SELECT name FROM pragma_table_info(?) WHERE pk > 0 ORDER BY pk"

    def create_pool(self, config: ConnectionConfig) -> list[sqlite3.Connection]:
        """Create a 'pool' (list of connections) for SQLite."""
        pool: list[sqlite3.Connection] = []
        for _ in range(config.pool_size):
            conn = sqlite3.connect(config.database, timeout=config.pool_timeout, **config.extra)
            conn.row_factory = sqlite3.Row
            conn.create_function("REGEXP", 2, _regexp, deterministic=True)
            conn.execute("PRAGMA journal_mode=WAL")
            pool.append(conn)
        return pool

    def acquire_connection(self, pool: list[sqlite3.Connection]) -> sqlite3.Connection:
        """Acquire a connection from the pool."""
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(
        self, connection: sqlite3.Connection, pool: list[sqlite3.Connection]
    ) -> None:
        """Release a connection back to the pool."""
        pool.append(connection)

    def close_pool(self, pool: list[sqlite3.Connection]) -> None:
        """Close all connections in the pool."""
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] | None = None,
    ) -> sqlite3.Cursor:
        """Execute SQL and return a cursor."""
        return connection.execute(sql, params if params is not None else ())
