"""Grid cell rendering."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

from row_gateway.mapping.entity import Entity

# Field ids that mark a column with no backing data (e.g. an action link)
_PLACEHOLDERS = frozenset({"", "null"})

_LINE_BREAK = re.compile(r"(\r\n|\n\r|\n|\r)")

_MISSING = object()


def nl2br(text: str) -> str:
    """Insert ``<br />`` before every line break, keeping the break itself."""
    return _LINE_BREAK.sub(r"<br />\1", text)


def _resolve(row: Any, field_id: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(field_id)
    if isinstance(row, Entity) and field_id in row.column_map:
        return row.value_of(field_id)

    value = getattr(row, field_id, _MISSING)
    if value is _MISSING:
        return None
    return value() if callable(value) else value


def render_cell(row: Any, field_id: str | None) -> Any:
    """Render the value of *field_id* on *row* for the wire.

    Placeholder ids (None, ``""``, ``"null"``) and ids that resolve to
    nothing render as None. Temporal values become ISO-8601 strings and text
    gets HTML line breaks. Other values are returned as-is.
    """
    if field_id is None or field_id in _PLACEHOLDERS:
        return None
    if field_id.startswith("_"):
        return None

    value = _resolve(row, field_id)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, str):
        return nl2br(value)
    return value


def render_row(row: Any, field_ids: list[str | None]) -> list[Any]:
    """Render one row as a list of cells, one per declared column."""
    return [render_cell(row, field_id) for field_id in field_ids]
