"""row_gateway - table gateways, mapped entities and grid request translation."""

from __future__ import annotations

from row_gateway.core.connection import ConnectionConfig, ConnectionManager
from row_gateway.core.enums import ProtocolVersion, RowState, SortDirection
from row_gateway.core.exceptions import (
    AdapterError,
    ColumnMapError,
    ConfigurationError,
    ConnectionError,  # noqa: A004
    ExecutionError,
    GridRequestError,
    InvalidCriteriaError,
    InvalidPayloadError,
    MappingError,
    PoolError,
    QueryExecutionError,
    RowGatewayError,
    SchemaError,
    SQLSanitizationError,
    UnknownFieldError,
)
from row_gateway.core.executor import Executor, WriteResult
from row_gateway.core.paging import PagedResult
from row_gateway.core.query import Fragment, Select
from row_gateway.grid.request import GridRequest, parse_grid_request
from row_gateway.grid.translator import GridRequestTranslator, GridResponse
from row_gateway.mapping.columns import Column, ColumnMap, Expression, Literal, Negated
from row_gateway.mapping.entity import Entity, EntityField
from row_gateway.mapping.model import EntityRowMapper
from row_gateway.repository.mapper import Mapper

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    # Execution
    "Executor",
    "WriteResult",
    # Query
    "Fragment",
    "Select",
    "PagedResult",
    # Mapping
    "Column",
    "ColumnMap",
    "Expression",
    "Literal",
    "Negated",
    "Entity",
    "EntityField",
    "EntityRowMapper",
    # Repository
    "Mapper",
    # Grid
    "GridRequest",
    "GridRequestTranslator",
    "GridResponse",
    "parse_grid_request",
    # Enums
    "ProtocolVersion",
    "RowState",
    "SortDirection",
    # Exceptions
    "RowGatewayError",
    "ConfigurationError",
    "SchemaError",
    "InvalidPayloadError",
    "InvalidCriteriaError",
    "GridRequestError",
    "SQLSanitizationError",
    "MappingError",
    "ColumnMapError",
    "UnknownFieldError",
    "ExecutionError",
    "QueryExecutionError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
