"""Row-to-entity mapper.

Hydrates Entity subclasses from dict rows through their ColumnMap.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from row_gateway.core.exceptions import MappingError
from row_gateway.mapping.entity import Entity

E = TypeVar("E", bound=Entity)


class EntityRowMapper(Generic[E]):
    """Map row dicts to instances of an Entity subclass.

    Row keys are column names; keys the entity does not map (joined columns,
    computed aliases) are ignored by hydration.

    Args:
        entity_class: The Entity subclass to construct.
        aliases: Optional result-column -> entity-column renames applied
            before hydration.
    """

    def __init__(
        self,
        entity_class: type[E],
        aliases: dict[str, str] | None = None,
    ) -> None:
        if not (isinstance(entity_class, type) and issubclass(entity_class, Entity)):
            raise MappingError(f"{entity_class!r} is not an Entity subclass")
        self._entity_class = entity_class
        self._aliases = aliases

    @property
    def entity_class(self) -> type[E]:
        return self._entity_class

    def _apply_aliases(self, row: dict[str, Any]) -> dict[str, Any]:
        """Apply column aliases to the row."""
        if not self._aliases:
            return row
        return {self._aliases.get(key, key): value for key, value in row.items()}

    def map_one(self, row: dict[str, Any]) -> E:
        """Map a single row to an entity instance."""
        return self._entity_class(self._apply_aliases(row))

    def map_many(self, rows: list[dict[str, Any]]) -> list[E]:
        """Map all rows via map_one."""
        return [self.map_one(row) for row in rows]
