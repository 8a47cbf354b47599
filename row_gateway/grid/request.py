"""Grid wire request parsing.

Two incompatible request shapes are accepted and normalized into one
GridRequest:

* legacy: flat, numerically suffixed keys (``sEcho``, ``iSortCol_0``,
  ``sSearch_1`` ...);
* current: nested ``columns``/``order``/``search`` structures with a
  ``draw`` counter.

The presence of ``sEcho`` selects legacy, ``draw`` selects current. Form
encoded current requests (``columns[0][name]=...``) are unflattened first.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from row_gateway.core.enums import ProtocolVersion
from row_gateway.core.exceptions import GridRequestError

_BRACKETED_KEY = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")
_SEGMENT = re.compile(r"\[([^\[\]]*)\]")

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "", "no", "off"})


class GridColumn(BaseModel):
    """One declared grid column."""

    field: str | None = None
    search: str = ""
    regex: bool = False
    operator: str | None = None
    searchable: bool = True
    orderable: bool = True


class GridSort(BaseModel):
    """One requested sort entry: a column index and a raw direction."""

    column: int
    direction: str = "asc"


class GridRequest(BaseModel):
    """Normalized grid request."""

    version: ProtocolVersion
    token: int = 0
    columns: list[GridColumn] = Field(default_factory=list)
    sort: list[GridSort] = Field(default_factory=list)
    search: str = ""
    search_regex: bool = False
    search_operator: str | None = None
    offset: int = 0
    length: int = -1

    @property
    def page_size(self) -> int | None:
        """Rows per page, or None for all rows."""
        return self.length if self.length > 0 else None

    @property
    def page_number(self) -> int:
        """1-based page holding row *offset*; always 1 when showing all rows."""
        if self.length <= 0:
            return 1
        return max(math.ceil((self.offset + 1) / self.length), 1)

    def field_at(self, index: int) -> str | None:
        """Field id declared for column *index*, or None when out of range."""
        if 0 <= index < len(self.columns):
            return self.columns[index].field
        return None


def _flag(value: Any, default: bool) -> bool:
    """Interpret a wire boolean (``True``, ``"true"``, ``"1"``, ``1`` ...)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return default


def _int(value: Any, name: str, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise GridRequestError(f"Grid parameter '{name}' must be an integer, got {value!r}") from e


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _field(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _as_list(value: Any, name: str) -> list[Any]:
    """Accept a list or an index-keyed mapping (``{"0": ..., "1": ...}``)."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, Mapping):
        try:
            keys = sorted(value, key=int)
        except (TypeError, ValueError) as e:
            raise GridRequestError(f"Grid parameter '{name}' has non-numeric indexes") from e
        return [value[key] for key in keys]
    raise GridRequestError(f"Grid parameter '{name}' must be a list")


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def unflatten_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Nest bracketed form keys: ``columns[0][search][value]`` -> nested dicts.

    Keys without brackets are copied unchanged. An empty segment (``a[]``)
    appends at the next free index.
    """
    result: dict[str, Any] = {}
    for key, value in params.items():
        match = _BRACKETED_KEY.match(key) if isinstance(key, str) else None
        if match is None:
            result[key] = value
            continue

        path = [match.group(1), *_SEGMENT.findall(match.group(2))]
        node = result
        for i, segment in enumerate(path[:-1]):
            if segment == "":
                segment = str(len(node))
            child = node.get(segment)
            if child is None:
                child = node[segment] = {}
            elif not isinstance(child, dict):
                conflict = ".".join(path[: i + 1])
                raise GridRequestError(f"Grid parameter '{key}' conflicts with '{conflict}'")
            node = child
        last = path[-1]
        node[str(len(node)) if last == "" else last] = value
    return result


def _parse_legacy(params: Mapping[str, Any]) -> dict[str, Any]:
    declared = _text(params.get("sColumns"))
    fields = declared.split(",") if declared else []
    count = _int(params.get("iColumns"), "iColumns", default=len(fields))

    columns = [
        {
            "field": _field(fields[i]) if i < len(fields) else None,
            "search": _text(params.get(f"sSearch_{i}")),
            "regex": _flag(params.get(f"bRegex_{i}"), False),
            "searchable": _flag(params.get(f"bSearchable_{i}"), True),
            "orderable": _flag(params.get(f"bSortable_{i}"), True),
        }
        for i in range(count)
    ]
    sort = [
        {
            "column": _int(params.get(f"iSortCol_{i}"), f"iSortCol_{i}"),
            "direction": _text(params.get(f"sSortDir_{i}")) or "asc",
        }
        for i in range(_int(params.get("iSortingCols"), "iSortingCols"))
    ]
    return {
        "version": ProtocolVersion.LEGACY,
        "token": _int(params.get("sEcho"), "sEcho"),
        "columns": columns,
        "sort": sort,
        "search": _text(params.get("sSearch")),
        "search_regex": _flag(params.get("bRegex"), False),
        "offset": _int(params.get("iDisplayStart"), "iDisplayStart"),
        "length": _int(params.get("iDisplayLength"), "iDisplayLength", default=-1),
    }


def _parse_current(params: Mapping[str, Any], operator_key: str) -> dict[str, Any]:
    if any(isinstance(key, str) and "[" in key for key in params):
        params = unflatten_params(params)

    columns = []
    for raw in _as_list(params.get("columns"), "columns"):
        raw = _as_mapping(raw)
        search = _as_mapping(raw.get("search"))
        columns.append(
            {
                "field": _field(raw.get("name")),
                "search": _text(search.get("value")),
                "regex": _flag(search.get("regex"), False),
                "operator": _field(search.get(operator_key)) or None,
                "searchable": _flag(raw.get("searchable", search.get("searchable")), True),
                "orderable": _flag(raw.get("orderable"), True),
            }
        )

    sort = []
    for i, raw in enumerate(_as_list(params.get("order"), "order")):
        raw = _as_mapping(raw)
        sort.append(
            {
                "column": _int(raw.get("column"), f"order[{i}].column"),
                "direction": _text(raw.get("dir")) or "asc",
            }
        )

    search = _as_mapping(params.get("search"))
    return {
        "version": ProtocolVersion.CURRENT,
        "token": _int(params.get("draw"), "draw"),
        "columns": columns,
        "sort": sort,
        "search": _text(search.get("value")),
        "search_regex": _flag(search.get("regex"), False),
        "search_operator": _field(search.get(operator_key)) or None,
        "offset": _int(params.get("start"), "start"),
        "length": _int(params.get("length"), "length", default=-1),
    }


def parse_grid_request(params: Mapping[str, Any], operator_key: str = "operator") -> GridRequest:
    """Parse a raw grid request into a GridRequest.

    Args:
        params: Decoded request parameters (query string, form or JSON body).
        operator_key: Name of the search-operator property in the current
            variant's ``search`` objects.

    Raises:
        GridRequestError: If neither protocol marker is present or a value
            is malformed.
    """
    if not isinstance(params, Mapping):
        raise GridRequestError(f"Grid request must be a mapping, got {type(params).__name__}")

    if "sEcho" in params:
        data = _parse_legacy(params)
    elif "draw" in params:
        data = _parse_current(params, operator_key)
    else:
        raise GridRequestError("Grid request has neither 'sEcho' nor 'draw'")

    try:
        return GridRequest.model_validate(data)
    except ValidationError as e:
        raise GridRequestError(f"Invalid grid request: {e}") from e
