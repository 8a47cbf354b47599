"""Row mapper protocol.

PagedResult and Mapper call map_one for single rows and map_many for pages.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar

T = TypeVar("T", covariant=True)


class RowMapper(Protocol[T]):
    """Base row mapper protocol."""

    def map_one(self, row: dict[str, Any]) -> T:
        """Map a single row dict to a target object."""
        ...

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Map multiple row dicts to a list of target objects."""
        ...
