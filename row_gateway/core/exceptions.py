"""row_gateway exception hierarchy.

Configuration problems are raised immediately. Empty results are never
exceptions: they come back as None, False, 0 or an empty result. Raw driver
exceptions are never exposed to callers; they are chained under
QueryExecutionError.
"""

from __future__ import annotations


class RowGatewayError(Exception):
    """Base exception for all row_gateway errors."""


# --- Configuration ---


class ConfigurationError(RowGatewayError):
    """Base for misconfiguration and malformed input errors."""


class SchemaError(ConfigurationError):
    """Raised when schema metadata for a table cannot be discovered."""

    def __init__(self, table: str, detail: str) -> None:
        self.table = table
        super().__init__(f"Schema discovery failed for table '{table}': {detail}")


class InvalidPayloadError(ConfigurationError):
    """Raised when a write payload is neither a mapping nor an entity."""

    def __init__(self, payload_type: str) -> None:
        self.payload_type = payload_type
        super().__init__(f"Mapping or Entity expected for write payload, got {payload_type}")


class InvalidCriteriaError(ConfigurationError):
    """Raised when update/mark criteria cannot be turned into a predicate."""


class GridRequestError(ConfigurationError):
    """Raised for grid requests without a recognizable protocol marker or with bad values."""


class SQLSanitizationError(ConfigurationError):
    """Raised when a server-declared SQL fragment fails a sanitization check."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"SQL sanitization failed: {detail}")


# --- Mapping ---


class MappingError(RowGatewayError):
    """Base for entity/column mapping errors."""


class ColumnMapError(MappingError):
    """Raised when a ColumnMap entry cannot be interpreted."""

    def __init__(self, field_id: str, detail: str) -> None:
        self.field_id = field_id
        super().__init__(f"Invalid column mapping for '{field_id}': {detail}")


class UnknownFieldError(MappingError):
    """Raised when entity code reads or writes a field that is not mapped."""

    def __init__(self, entity_class: str, field_id: str) -> None:
        self.entity_class = entity_class
        self.field_id = field_id
        super().__init__(f"{entity_class} has no mapped field '{field_id}'")


# --- Execution ---


class ExecutionError(RowGatewayError):
    """Base for query execution errors."""


class QueryExecutionError(ExecutionError):
    """Raised when the driver rejects a statement."""

    def __init__(self, sql: str, detail: str) -> None:
        self.sql = sql
        super().__init__(f"Query failed: {detail} [{sql}]")


# --- Adapter ---


class AdapterError(RowGatewayError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
