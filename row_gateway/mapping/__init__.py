"""Mapping layer - field-to-column maps, entities and row mappers."""

from __future__ import annotations

from row_gateway.mapping.columns import Column, ColumnMap, Expression, Literal, Negated
from row_gateway.mapping.entity import Entity, EntityField
from row_gateway.mapping.model import EntityRowMapper

__all__ = [
    "Column",
    "ColumnMap",
    "Expression",
    "Literal",
    "Negated",
    "Entity",
    "EntityField",
    "EntityRowMapper",
]
