"""Table gateway.

A Mapper mediates every read and write for one table and its Entity type.

Subclasses set ``table`` and ``entity_class``, and optionally
``primary_key`` and the soft-delete predicates::

    class PersonMapper(Mapper[Person]):
        table = "person"
        entity_class = Person
        active_row_state = {"person_isdeleted": 0}
        deleted_row_state = {"person_isdeleted": 1}

The column whitelist and primary key are read from the live schema
catalog on first use and cached on the instance. Every query starts from
``base_query()`` so row-state filtering is never bypassed. Every write
passes through ``filter_columns()``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar, Generic, TypeVar

from row_gateway.core.enums import RowState
from row_gateway.core.exceptions import (
    ConfigurationError,
    InvalidCriteriaError,
    InvalidPayloadError,
    SchemaError,
)
from row_gateway.core.executor import Executor
from row_gateway.core.paging import PagedResult
from row_gateway.core.params import placeholders
from row_gateway.core.query import (
    Fragment,
    Select,
    equals,
    in_list,
    match_all,
    position_order,
)
from row_gateway.core.sanitizer import check_expression, quote_identifier
from row_gateway.mapping.entity import Entity
from row_gateway.mapping.model import EntityRowMapper

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)

Criteria = Entity | Mapping[str, Any] | Fragment


class Mapper(Generic[E]):
    """Base class for table gateways.

    Args:
        executor: Executor bound to the database holding ``table``.
        row_state: Initial row state; defaults to active rows only.
    """

    table: ClassVar[str] = ""
    entity_class: ClassVar[type[Entity]] = Entity
    primary_key: ClassVar[str | tuple[str, ...] | None] = None
    active_row_state: ClassVar[Mapping[str, Any]] = {}
    deleted_row_state: ClassVar[Mapping[str, Any]] = {}

    def __init__(self, executor: Executor, row_state: RowState | str = RowState.ACTIVE) -> None:
        if not self.table:
            raise ConfigurationError(f"{type(self).__name__} does not declare a table")
        self.executor = executor
        self._row_state: RowState | str = RowState.ACTIVE
        self.set_row_state(row_state)
        self._columns: list[str] | None = None
        self._primary_key: str | tuple[str, ...] | None = type(self).primary_key
        self._row_mapper: EntityRowMapper[Any] = EntityRowMapper(self.entity_class)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} table={self.table!r} row_state={self._row_state!r}>"

    # --- row state ---

    @classmethod
    def row_states(cls) -> dict[str, str]:
        """Row states as value -> label pairs, e.g. for a select box."""
        return {state.value: state.value for state in RowState}

    def has_row_state(self) -> bool:
        """True when both the active and the deleted predicates are declared."""
        return bool(self.active_row_state) and bool(self.deleted_row_state)

    @property
    def row_state(self) -> RowState | str:
        return self._row_state

    def set_row_state(self, row_state: RowState | str) -> Mapper[E]:
        """Set the row state used by ``base_query``.

        Values other than active/deleted behave as "all".
        """
        try:
            self._row_state = RowState(row_state)
        except ValueError:
            self._row_state = row_state
        return self

    # --- schema discovery ---

    @property
    def columns(self) -> list[str]:
        """Column whitelist for the table, read from the schema catalog once."""
        if self._columns is None:
            rows = self.executor.fetch_all(self.executor.adapter.columns_sql, (self.table,))
            names = [row["name"] for row in rows]
            if not names:
                raise SchemaError(self.table, "no columns found")
            logger.debug("Discovered columns for %s: %s", self.table, names)
            self._columns = names
        return list(self._columns)

    def get_primary_key(self) -> str | tuple[str, ...]:
        """Primary key column, or a tuple of columns for composite keys."""
        if not self._primary_key:
            rows = self.executor.fetch_all(self.executor.adapter.primary_key_sql, (self.table,))
            keys = [row["name"] for row in rows]
            if not keys:
                raise SchemaError(self.table, "no primary key found")
            logger.debug("Discovered primary key for %s: %s", self.table, keys)
            self._primary_key = keys[0] if len(keys) == 1 else tuple(keys)
        return self._primary_key

    def _key_columns(self) -> tuple[str, ...]:
        key = self.get_primary_key()
        return (key,) if isinstance(key, str) else tuple(key)

    # --- query building ---

    def base_query(self) -> Select:
        """SELECT over the table filtered by the current row state.

        All other queries build on this.
        """
        select = Select(self.table)
        if not self.has_row_state():
            return select

        if self._row_state == RowState.ACTIVE:
            predicate = match_all(self.active_row_state)
        elif self._row_state == RowState.DELETED:
            predicate = match_all(self.deleted_row_state)
        else:
            predicate = None

        if predicate is not None:
            select.add_where(predicate)
        return select

    def result_set(
        self,
        select: Select,
        fetch_all: bool = True,
        entity_class: type[Entity] | None = None,
    ) -> Any:
        """Common return point for queries.

        Returns a PagedResult (unbounded, page 1) or, with ``fetch_all=False``,
        the first entity or None. *entity_class* maps rows to an ad hoc
        entity type instead of ``self.entity_class``.
        """
        if entity_class is None or entity_class is self.entity_class:
            row_mapper: EntityRowMapper[Any] = self._row_mapper
        else:
            row_mapper = EntityRowMapper(entity_class)

        if not fetch_all:
            first = select.clone()
            first.limit = 1
            row = self.executor.fetch_one(*first.compile())
            return None if row is None else row_mapper.map_one(row)

        return PagedResult(select, self.executor, row_mapper=row_mapper)

    def _key_predicate(self, key: Any) -> Fragment:
        columns = self._key_columns()
        if len(columns) == 1:
            return equals(columns[0], key)
        if not isinstance(key, (tuple, list)) or len(key) != len(columns):
            raise InvalidCriteriaError(
                f"Composite key {columns} of '{self.table}' needs {len(columns)} values"
            )
        predicate = match_all(dict(zip(columns, key)))
        if predicate is None:
            raise InvalidCriteriaError(f"No key columns for '{self.table}'")
        return predicate

    def _criteria(self, criteria: Criteria) -> Fragment:
        """Turn an entity, column/value mapping or Fragment into a predicate."""
        if isinstance(criteria, Fragment):
            return criteria
        if isinstance(criteria, Entity):
            values = criteria.to_dict()
            key = tuple(values.get(column) for column in self._key_columns())
            if any(value is None for value in key):
                raise InvalidCriteriaError(
                    f"{type(criteria).__name__} has no primary key value for '{self.table}'"
                )
            return self._key_predicate(key[0] if len(key) == 1 else key)
        if isinstance(criteria, Mapping):
            predicate = match_all(criteria)
            if predicate is None:
                raise InvalidCriteriaError("Empty criteria mapping")
            return predicate
        raise InvalidCriteriaError(f"Unsupported criteria type {type(criteria).__name__}")

    # --- reads ---

    def fetch(self, key: Any) -> E | None:
        """Fetch one row by primary key value (a tuple for composite keys)."""
        if key is None:
            return None
        select = self.base_query()
        select.add_where(self._key_predicate(key))
        return self.result_set(select, fetch_all=False)  # type: ignore[no-any-return]

    def fetch_all(self) -> PagedResult[E]:
        """All rows in the current row state, unbounded on page 1."""
        return self.result_set(self.base_query())  # type: ignore[no-any-return]

    def fetch_by_keys(
        self,
        values: Iterable[Any] | None,
        column: str | None = None,
    ) -> PagedResult[E] | None:
        """Rows whose *column* (primary key by default) is in *values*.

        Rows come back in the order of *values*. Returns None for no values.
        """
        if values is None or isinstance(values, (str, bytes)):
            return None
        values = list(values)
        if not values:
            return None

        if column is None:
            key_columns = self._key_columns()
            if len(key_columns) != 1:
                raise InvalidCriteriaError(
                    f"fetch_by_keys needs a column for composite key of '{self.table}'"
                )
            column = key_columns[0]

        select = self.base_query()
        select.add_where(in_list(column, values))
        select.add_order(position_order(column, values))
        return self.result_set(select)  # type: ignore[no-any-return]

    # --- writes ---

    def filter_columns(self, data: Mapping[str, Any] | Entity) -> dict[str, Any]:
        """Keep only keys naming columns of the table.

        A leading ``"{table}."`` qualifier is stripped first, so pre-qualified
        keys from self-joins still match; the output uses the bare name.

        Raises:
            InvalidPayloadError: If *data* is neither a mapping nor an Entity.
        """
        if isinstance(data, Entity):
            data = data.to_dict()
        if not isinstance(data, Mapping):
            raise InvalidPayloadError(type(data).__name__)
        if not data:
            return {}

        whitelist = set(self.columns)
        prefix = f"{self.table}."
        result: dict[str, Any] = {}
        for key, value in data.items():
            if not isinstance(key, str):
                continue
            column = key.removeprefix(prefix)
            if column in whitelist:
                result[column] = value
        return result

    def _execute_update(self, values: Mapping[str, Any], predicate: Fragment) -> int:
        assignments = ", ".join(f"{quote_identifier(column)} = ?" for column in values)
        sql = f"UPDATE {quote_identifier(self.table)} SET {assignments} WHERE {predicate.sql}"
        return self.executor.execute(sql, (*values.values(), *predicate.params)).rowcount

    def create(self, data: Mapping[str, Any] | E) -> E | None:
        """Insert a row and return the entity with its primary key set.

        Returns None if no row was inserted.
        """
        row = self.filter_columns(data)
        table = quote_identifier(self.table)
        if row:
            columns = ", ".join(quote_identifier(column) for column in row)
            sql = f"INSERT INTO {table} ({columns}) VALUES ({placeholders(len(row))})"
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES"

        result = self.executor.execute(sql, tuple(row.values()))
        if not result.rowcount:
            return None

        entity = data if isinstance(data, Entity) else self.entity_class(data)
        key_columns = self._key_columns()
        if len(key_columns) == 1 and "id" in entity.column_map:
            supplied = row.get(key_columns[0])
            entity.set("id", supplied if supplied is not None else result.lastrowid)
        return entity  # type: ignore[return-value]

    def update(self, data: Mapping[str, Any] | E, criteria: Criteria | None = None) -> int:
        """Update rows matching *criteria* and return the affected row count.

        With an entity as *data* and no criteria, that entity's row is
        updated. Keys that are not columns are dropped.
        """
        if criteria is None and isinstance(data, Entity):
            criteria = data
        if criteria is None:
            raise InvalidCriteriaError("update() needs criteria unless data is an entity")

        values = self.filter_columns(data)
        if not values:
            return 0
        return self._execute_update(values, self._criteria(criteria))

    def mark_active(self, criteria: Criteria) -> int | bool:
        """Apply the active predicate as new values. False if row state is unsupported."""
        if not self.has_row_state():
            return False
        return self._execute_update(dict(self.active_row_state), self._criteria(criteria))

    def mark_deleted(self, criteria: Criteria) -> int | bool:
        """Apply the deleted predicate as new values. False if row state is unsupported."""
        if not self.has_row_state():
            return False
        return self._execute_update(dict(self.deleted_row_state), self._criteria(criteria))

    def delete(self, criteria: Criteria) -> int | bool:
        """Soft delete; rows are never physically removed."""
        return self.mark_deleted(criteria)

    def undelete(self, criteria: Criteria) -> int | bool:
        return self.mark_active(criteria)

    def upsert(
        self,
        data: Mapping[str, Any] | E,
        override_updates: Mapping[str, str | Fragment] | None = None,
    ) -> Any:
        """Insert a row, updating the existing row on a key conflict.

        On conflict the primary key re-asserts its existing value, and every
        other column takes the inserted value unless *override_updates*
        supplies a server-side SQL expression for it. Returns the primary
        key of the inserted or updated row (a tuple for composite keys), or
        None if nothing was written.
        """
        row = self.filter_columns(data)
        if not row:
            return None
        overrides = dict(override_updates or {})
        key_columns = self._key_columns()

        assignments: list[str] = []
        update_params: list[Any] = []
        for column in row:
            quoted = quote_identifier(column)
            if column in key_columns:
                assignments.append(f"{quoted} = {quoted}")
            elif column in overrides:
                override = overrides[column]
                if isinstance(override, Fragment):
                    assignments.append(f"{quoted} = {check_expression(override.sql)}")
                    update_params.extend(override.params)
                else:
                    assignments.append(f"{quoted} = {check_expression(override)}")
            else:
                assignments.append(f"{quoted} = excluded.{quoted}")

        columns = ", ".join(quote_identifier(column) for column in row)
        returning = ", ".join(quote_identifier(column) for column in key_columns)
        sql = (
            f"INSERT INTO {quote_identifier(self.table)} ({columns}) "
            f"VALUES ({placeholders(len(row))}) "
            f"ON CONFLICT DO UPDATE SET {', '.join(assignments)} "
            f"RETURNING {returning}"
        )
        returned = self.executor.execute_returning(sql, (*row.values(), *update_params))
        if returned is None:
            return None
        key = tuple(returned[column] for column in key_columns)
        return key[0] if len(key) == 1 else key
