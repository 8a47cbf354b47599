"""Database adapter protocol.

An adapter owns the driver specifics: pooling, execution and the catalog
queries used for column and primary-key discovery.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from row_gateway.core.connection import ConnectionConfig


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def columns_sql(self) -> str:
        """Catalog query returning one ``name`` row per column of table ``?``."""
        ...

    @property
    def primary_key_sql(self) -> str:
        """Catalog query returning the primary key ``name`` rows of table ``?``, in key order."""
        ...

    def create_pool(self, config: ConnectionConfig) -> Any:
        """Create a connection pool."""
        ...

    def acquire_connection(self, pool: Any) -> Any:
        """Acquire a connection from the pool."""
        ...

    def release_connection(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the pool."""
        ...

    def close_pool(self, pool: Any) -> None:
        """Close the pool and release all connections."""
        ...

    def execute(
        self,
        connection: Any,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] | None = None,
    ) -> Any:
        """Execute SQL and return a cursor-like object."""
        ...
