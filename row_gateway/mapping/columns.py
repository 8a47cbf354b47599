"""Field-to-column indirection.

A ColumnMap tells the rest of the package what an abstract field id (the
name an entity exposes, e.g. ``full_name``) stands for in the database:

    Column("last_name")                     a real column
    Expression("first_name || ' ' || last_name")   an SQL expression
    Negated("enabled")                      the negation of a stored column value
    Literal(False)                          a constant

Only Column and Expression targets are SQL; they are the only ones that
ever reach query text, and only through ``column_for``. Negated and
Literal targets exist for entity value extraction.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Union

from row_gateway.core.exceptions import ColumnMapError, SQLSanitizationError
from row_gateway.core.sanitizer import check_expression, is_identifier


@dataclass(frozen=True)
class Column:
    """A real column of the table."""

    name: str


@dataclass(frozen=True)
class Expression:
    """A server-declared SQL expression over the table's columns."""

    sql: str


@dataclass(frozen=True)
class Negated:
    """Boolean negation of a stored column value."""

    property: str


@dataclass(frozen=True)
class Literal:
    """A constant boolean."""

    value: bool


Target = Union[Column, Expression, Negated, Literal]


def to_target(field_id: str, value: Any) -> Target:
    """Interpret a ColumnMap entry.

    Shorthand values are accepted: ``bool`` -> Literal, ``"!prop"`` -> Negated,
    an identifier (optionally table-qualified) -> Column, any other string ->
    Expression.

    Raises:
        ColumnMapError: If the value cannot be interpreted or an expression
            fails sanitization.
    """
    if isinstance(value, (Column, Negated, Literal)):
        return value
    if isinstance(value, Expression):
        return Expression(_checked(field_id, value.sql))
    if isinstance(value, bool):
        return Literal(value)
    if not isinstance(value, str):
        raise ColumnMapError(field_id, f"unsupported target {value!r}")

    text = value.strip()
    if text.startswith("!"):
        prop = text[1:].strip()
        if not is_identifier(prop):
            raise ColumnMapError(field_id, f"negated target '{value}' is not a property name")
        return Negated(prop)
    if is_identifier(text):
        return Column(text)
    return Expression(_checked(field_id, text))


def _checked(field_id: str, sql: str) -> str:
    try:
        return check_expression(sql)
    except SQLSanitizationError as e:
        raise ColumnMapError(field_id, str(e)) from e


class ColumnMap(Mapping[str, Target]):
    """Ordered, immutable mapping of field id -> Target.

    Each entity type declares its own ColumnMap instance, so the lazily
    computed inverse map is cached per type.
    """

    def __init__(self, entries: Mapping[str, Any] | Iterable[tuple[str, Any]] = ()) -> None:
        items = entries.items() if isinstance(entries, Mapping) else entries
        self._targets: dict[str, Target] = {
            field_id: to_target(field_id, value) for field_id, value in items
        }

    def __getitem__(self, field_id: str) -> Target:
        return self._targets[field_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def __repr__(self) -> str:
        return f"ColumnMap({self._targets!r})"

    def resolve(self, field_id: Any) -> Target | None:
        """Return the target for *field_id*, or None if unmapped."""
        if not isinstance(field_id, str):
            return None
        return self._targets.get(field_id)

    def fields(self) -> list[str]:
        """Field ids in declaration order."""
        return list(self._targets)

    def column_for(self, field_id: Any) -> str | None:
        """Return SQL text for *field_id* if it maps to a Column or Expression.

        This is the only way a client-supplied field id may influence SQL:
        as a lookup key, yielding server-declared text.
        """
        target = self.resolve(field_id)
        if isinstance(target, Column):
            return target.name
        if isinstance(target, Expression):
            return target.sql
        return None

    def inverse(self) -> dict[str, str]:
        """Map column name -> field id for Column targets (copy of the cached map)."""
        return dict(self._inverse)

    @cached_property
    def _inverse(self) -> dict[str, str]:
        return {
            target.name: field_id
            for field_id, target in self._targets.items()
            if isinstance(target, Column)
        }

    def field_for_column(self, column: str) -> str | None:
        """Return the field id mapped to *column*, or None."""
        return self._inverse.get(column)

    def searchable(self, field_ids: Iterable[str] | None = None) -> dict[str, str]:
        """Field id -> SQL text for fields usable in search/sort.

        With a non-empty *field_ids*, the result is restricted to those ids (in
        map order); ids that are unmapped or not SQL are dropped. None or an
        empty list means every mapped field.
        """
        wanted = set(field_ids or ()) or None
        result: dict[str, str] = {}
        for field_id in self._targets:
            if wanted is not None and field_id not in wanted:
                continue
            sql = self.column_for(field_id)
            if sql is not None:
                result[field_id] = sql
        return result

    def extend(self, entries: Mapping[str, Any]) -> ColumnMap:
        """Return a new ColumnMap with *entries* added or overriding existing ones."""
        merged: dict[str, Any] = dict(self._targets)
        merged.update(entries)
        return ColumnMap(merged)
