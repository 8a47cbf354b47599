"""Base class for entities mirroring rows of a table.

An entity never exposes column names to its callers. Each subclass declares
a ColumnMap from field ids to columns/expressions, and exposes fields either
through EntityField descriptors or through the generic ``get``/``set``
accessors, which take an explicit field id::

    class Person(Entity):
        resource_id = "app.person"
        default_singular_noun = "person"
        default_plural_noun = "people"
        column_map = ColumnMap({
            "id": "person_id",
            "name": "person_name",
            "full_name": "first_name || ' ' || last_name",
            "enabled": "enabled",
            "is_suspended": "!enabled",
            "is_deleted": "person_isdeleted",
        })

        id = EntityField(int)
        name = EntityField(str)
        is_suspended = EntityField(read_only=True)

Values are stored keyed by column name. Every write through ``set`` marks
the column as modified. ``exchange_array`` (hydration) clears the flags.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, ClassVar

from row_gateway.core.exceptions import MappingError, UnknownFieldError
from row_gateway.mapping.columns import Column, ColumnMap, Literal, Negated

_FALSE_STRINGS = frozenset({"", "0", "false", "no", "off"})


def _to_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    # Zero dates such as "0000-00-00 00:00:00" mean "no value"
    if not text or not text.lstrip("0-: .T"):
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _to_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = _to_datetime(value)
    return parsed.date() if parsed is not None else None


def coerce(value: Any, type_: Any) -> Any:
    """Cast *value* to *type_*. None values and a None type pass through."""
    if value is None or type_ is None:
        return value
    if type_ is datetime:
        return _to_datetime(value)
    if type_ is date:
        return _to_date(value)
    if type_ is bool and isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    if isinstance(type_, type) and isinstance(value, type_):
        return value
    return type_(value)


class EntityField:
    """Descriptor exposing one mapped field as an attribute.

    The field id defaults to the attribute name. ``type_`` is applied by
    ``Entity.set`` when values are written or hydrated.
    """

    def __init__(
        self,
        type_: Any = None,
        *,
        field_id: str | None = None,
        read_only: bool = False,
    ) -> None:
        self.type_ = type_
        self.field_id = field_id
        self.read_only = read_only
        self.name: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        if self.field_id is None:
            self.field_id = name

    def __get__(self, instance: Entity | None, owner: type) -> Any:
        if instance is None:
            return self
        return instance.get(self.field_id)  # type: ignore[arg-type]

    def __set__(self, instance: Entity, value: Any) -> None:
        if self.read_only:
            raise AttributeError(f"Field '{self.field_id}' is read-only")
        instance.set(self.field_id, value)  # type: ignore[arg-type]


def _collect_field_types(cls: type) -> dict[str, Any]:
    types: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        for attr in vars(klass).values():
            if isinstance(attr, EntityField) and attr.field_id is not None:
                types[attr.field_id] = attr.type_
    return types


class Entity:
    """In-memory record mirroring one database row."""

    resource_id: ClassVar[str] = "row_gateway.entity"
    default_singular_noun: ClassVar[str] = "entity"
    default_plural_noun: ClassVar[str] = "entities"
    column_map: ClassVar[ColumnMap] = ColumnMap(
        {
            "id": Column("id"),
            "name": Column("name"),
            "is_deleted": Literal(False),
        }
    )
    _field_types: ClassVar[dict[str, Any]] = {}

    id = EntityField(int)
    name = EntityField(str)
    is_deleted = EntityField(read_only=True)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._field_types = _collect_field_types(cls)
        for attr in vars(cls).values():
            if isinstance(attr, EntityField) and attr.field_id not in cls.column_map:
                raise UnknownFieldError(cls.__name__, str(attr.field_id))

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = {}
        self._modified: set[str] = set()
        self._singular_noun: str | None = None
        self._plural_noun: str | None = None
        if data:
            self.exchange_array(data)

    def __str__(self) -> str:
        if "name" not in self.column_map:
            return ""
        name = self.value_of("name")
        return "" if name is None else str(name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._values!r}>"

    # --- generic accessors ---

    def get(self, field_id: str, default: Any = None) -> Any:
        """Read a field through the column map.

        Raises:
            UnknownFieldError: If *field_id* is not mapped.
        """
        target = self.column_map.resolve(field_id)
        if target is None:
            raise UnknownFieldError(type(self).__name__, field_id)
        if isinstance(target, Column):
            return self._values.get(target.name, default)
        if isinstance(target, Negated):
            return not self._values.get(target.property)
        if isinstance(target, Literal):
            return target.value
        # Expression targets are computed in SQL; there is no stored value
        return default

    def set(self, field_id: str, value: Any, type_: Any = None) -> Entity:
        """Write a Column-mapped field, casting to its declared type, and mark it modified.

        Raises:
            UnknownFieldError: If *field_id* is not mapped.
            MappingError: If *field_id* does not map to a writable column.
        """
        target = self.column_map.resolve(field_id)
        if target is None:
            raise UnknownFieldError(type(self).__name__, field_id)
        if not isinstance(target, Column):
            raise MappingError(f"Field '{field_id}' of {type(self).__name__} is not writable")
        if type_ is None:
            type_ = self._field_types.get(field_id)
        self._values[target.name] = coerce(value, type_)
        self._modified.add(target.name)
        return self

    def value_of(self, field_id: str) -> Any:
        """Read a field the way callers see it: a class-level accessor wins over ``get``."""
        if hasattr(type(self), field_id):
            value = getattr(self, field_id)
            return value() if callable(value) else value
        return self.get(field_id)

    # --- array (de)serialization ---

    def exchange_array(self, data: Mapping[str, Any]) -> None:
        """Hydrate from a column-keyed mapping. Unmapped keys are ignored."""
        if not data:
            return
        for key, value in data.items():
            field_id = self.column_map.field_for_column(key)
            if field_id is None:
                continue
            self.set(field_id, value)
        self._modified.clear()

    def to_dict(self) -> dict[str, Any]:
        """Column-keyed copy of every Column-mapped field.

        Temporal values become ISO-8601 strings; lists and tuples become
        comma-delimited strings.
        """
        result: dict[str, Any] = {}
        for column, field_id in self.column_map.inverse().items():
            value = self.value_of(field_id)
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            elif isinstance(value, (list, tuple)):
                value = ",".join(str(v) for v in value)
            result[column] = value
        return result

    def modified_data(self, other: Mapping[str, Any] | Entity | None = None) -> dict[str, Any]:
        """Modified values, column-keyed.

        Without *other*: the columns written since hydration. With *other*
        (a mapping or entity): values in *other* that differ from this
        entity's, for columns present in both.
        """
        current = self.to_dict()
        if other is None:
            return {k: v for k, v in current.items() if k in self._modified}

        if isinstance(other, Entity):
            other = other.to_dict()
        if not isinstance(other, Mapping):
            return {}

        return {
            key: other[key]
            for key, value in current.items()
            if key in other and other[key] is not None and other[key] != value
        }

    @property
    def modified_columns(self) -> frozenset[str]:
        return frozenset(self._modified)

    # --- descriptive metadata ---

    @property
    def singular_noun(self) -> str:
        return self._singular_noun or self.default_singular_noun

    @singular_noun.setter
    def singular_noun(self, value: str) -> None:
        self._singular_noun = value.lower()

    @property
    def plural_noun(self) -> str:
        return self._plural_noun or self.default_plural_noun

    @plural_noun.setter
    def plural_noun(self, value: str) -> None:
        self._plural_noun = value.lower()

    def property_getter(self, column: str) -> str | None:
        """Field id mapped to *column*, or None."""
        return self.column_map.field_for_column(column)

    def property_resource_id(self, column: str) -> str | None:
        """``"{resource_id}.{column}"`` for a mapped column, else None."""
        if self.column_map.field_for_column(column) is None:
            return None
        return f"{self.resource_id}.{column}"


Entity._field_types = _collect_field_types(Entity)
