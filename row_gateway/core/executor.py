"""Statement executor.

The Executor runs compiled SQL through the connection manager's adapter and
hands back plain dict rows. It is injected into every Mapper and PagedResult;
there is no process-wide database handle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from row_gateway.core.connection import ConnectionConfig, ConnectionManager
from row_gateway.core.exceptions import QueryExecutionError
from row_gateway.core.params import coerce_params

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteResult:
    """Outcome of an INSERT/UPDATE/DELETE."""

    rowcount: int
    lastrowid: int | None = None


def _rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor results to list of dicts.

    Handles both tuple-like rows and mapping rows (sqlite3.Row).
    """
    if cursor.description is None:
        return []
    columns = [desc[0] for desc in cursor.description]
    rows = cursor.fetchall()
    if not rows:
        return []

    if isinstance(rows[0], dict):
        return [dict(row) for row in rows]

    # sqlite3.Row and plain tuples both index positionally
    return [dict(zip(columns, tuple(row), strict=True)) for row in rows]


class Executor:
    """Synchronous statement executor."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        self._connection_manager = connection_manager

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> Executor:
        """Create an Executor from a ConnectionConfig."""
        return cls(ConnectionManager(config))

    @property
    def adapter(self) -> Any:
        return self._connection_manager.adapter

    @property
    def connection_manager(self) -> ConnectionManager:
        return self._connection_manager

    def _run(self, conn: Any, sql: str, params: Any) -> Any:
        bound = coerce_params(params)
        logger.debug("Executing %s with %d parameter(s)", sql, len(bound or ()))
        try:
            return self.adapter.execute(conn, sql, bound)
        except Exception as e:
            raise QueryExecutionError(sql, str(e)) from e

    def fetch_all(self, sql: str, params: Any = None) -> list[dict[str, Any]]:
        """Fetch all rows as dicts."""
        with self._connection_manager.get_connection() as conn:
            cursor = self._run(conn, sql, params)
            return _rows_to_dicts(cursor)

    def fetch_one(self, sql: str, params: Any = None) -> dict[str, Any] | None:
        """Fetch the first row as a dict, or None if there are no rows."""
        with self._connection_manager.get_connection() as conn:
            cursor = self._run(conn, sql, params)
            if cursor.description is None:
                return None
            columns = [desc[0] for desc in cursor.description]
            row = cursor.fetchone()
        if row is None:
            return None
        if isinstance(row, dict):
            return dict(row)
        return dict(zip(columns, tuple(row), strict=True))

    def fetch_scalar(self, sql: str, params: Any = None) -> Any:
        """Fetch a single scalar value (first column of first row)."""
        with self._connection_manager.get_connection() as conn:
            cursor = self._run(conn, sql, params)
            row = cursor.fetchone()
        if row is None:
            return None
        if isinstance(row, dict):
            return next(iter(row.values()))
        return row[0]

    def execute(self, sql: str, params: Any = None) -> WriteResult:
        """Execute a write statement and commit. Returns row count and last row id."""
        with self._connection_manager.get_connection() as conn:
            cursor = self._run(conn, sql, params)
            conn.commit()
            return WriteResult(
                rowcount=int(cursor.rowcount),
                lastrowid=getattr(cursor, "lastrowid", None),
            )

    def execute_returning(self, sql: str, params: Any = None) -> dict[str, Any] | None:
        """Execute a write with a RETURNING clause, commit, and return the first row."""
        with self._connection_manager.get_connection() as conn:
            cursor = self._run(conn, sql, params)
            rows = _rows_to_dicts(cursor)
            conn.commit()
        return rows[0] if rows else None
