"""Grid request translator.

Turns a client grid request (sort/filter/page) into changes on a
PagedResult's query, runs it and renders the response rows::

    translator = GridRequestTranslator()
    response = translator(mapper.fetch_all(), Person.column_map, request.params)
    return response.to_wire()

Client input only ever selects among server-declared text: field ids are
looked up in the ColumnMap, operators and directions are picked from
allow-lists, and search text is always a bound parameter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from row_gateway.core.enums import ProtocolVersion
from row_gateway.core.paging import PagedResult
from row_gateway.core.query import Fragment, Select, any_of
from row_gateway.core.sanitizer import normalize_direction, normalize_operator, search_value
from row_gateway.grid.render import render_row
from row_gateway.grid.request import GridRequest, parse_grid_request
from row_gateway.mapping.columns import ColumnMap, Expression

logger = logging.getLogger(__name__)


def _operand(column_map: ColumnMap, field_id: str) -> str | None:
    """SQL text for *field_id*, parenthesized when it is an expression."""
    sql = column_map.column_for(field_id)
    if sql is not None and isinstance(column_map.resolve(field_id), Expression):
        return f"({sql})"
    return sql


class GridResponse(BaseModel):
    """Grid response: counts, rendered rows and the refined result."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    version: ProtocolVersion
    token: int
    total: int
    filtered: int
    rows: list[list[Any]] = Field(default_factory=list)
    result: PagedResult | None = Field(default=None, exclude=True)

    def to_wire(self) -> dict[str, Any]:
        """Render the response with the keys of the request's protocol variant."""
        if self.version is ProtocolVersion.LEGACY:
            return {
                "sEcho": self.token,
                "iTotalRecords": self.total,
                "iTotalDisplayRecords": self.filtered,
                "aaData": self.rows,
            }
        return {
            "draw": self.token,
            "recordsTotal": self.total,
            "recordsFiltered": self.filtered,
            "data": self.rows,
        }


class GridRequestTranslator:
    """Apply grid requests to PagedResults.

    Args:
        operator_key: Name of the search-operator property in current-variant
            requests.
    """

    def __init__(self, operator_key: str = "operator") -> None:
        self.operator_key = operator_key

    def __call__(
        self,
        result: PagedResult[Any],
        column_map: ColumnMap,
        params: Mapping[str, Any] | GridRequest,
        search_fields: Iterable[str] | None = None,
    ) -> GridResponse:
        return self.translate(result, column_map, params, search_fields)

    def translate(
        self,
        result: PagedResult[Any],
        column_map: ColumnMap,
        params: Mapping[str, Any] | GridRequest,
        search_fields: Iterable[str] | None = None,
    ) -> GridResponse:
        """Refine *result* with the grid request in *params*.

        Args:
            result: The result to refine. Its query is cloned, never modified.
            column_map: Field id -> column/expression map used to resolve
                every client field id.
            params: Raw request parameters, or an already parsed GridRequest.
            search_fields: Field ids eligible for the global search; all
                mapped fields when omitted or empty.

        Raises:
            GridRequestError: If *params* is not a recognizable grid request.
        """
        if isinstance(params, GridRequest):
            request = params
        else:
            request = parse_grid_request(params, self.operator_key)

        select = result.query.clone()
        self._apply_sort(select, request, column_map)
        self._apply_global_search(select, request, column_map, search_fields)
        self._apply_column_filters(select, request, column_map)

        refined = result.with_query(select)
        refined.set_page(request.page_size, request.page_number)

        field_ids = [column.field for column in request.columns]
        rows = [render_row(row, field_ids) for row in refined]

        return GridResponse(
            version=request.version,
            token=request.token,
            total=result.count(),
            filtered=refined.count(),
            rows=rows,
            result=refined,
        )

    def _apply_sort(self, select: Select, request: GridRequest, column_map: ColumnMap) -> None:
        """Client sort entries first, then the query's own ORDER BY as tiebreakers."""
        saved = select.reset_order()
        for entry in request.sort:
            if not 0 <= entry.column < len(request.columns):
                continue
            column = request.columns[entry.column]
            if not column.orderable:
                continue
            sql = _operand(column_map, column.field)
            if sql is None:
                continue
            direction = normalize_direction(entry.direction)
            if direction is None:
                logger.warning("Skipping sort on %r: unknown direction %r", column.field, entry.direction)
                continue
            select.add_order(f"{sql} {direction.value}")

        for fragment in saved:
            select.add_order(fragment)

    def _resolve_operator(self, explicit: str | None, regex: bool) -> str:
        default = "REGEXP" if regex else "LIKE"
        if explicit is None:
            return default
        operator = normalize_operator(explicit)
        if operator is None:
            logger.warning("Unknown search operator %r, using %s", explicit, default)
            return default
        return operator

    def _apply_global_search(
        self,
        select: Select,
        request: GridRequest,
        column_map: ColumnMap,
        search_fields: Iterable[str] | None,
    ) -> None:
        if not request.search:
            return
        operator = self._resolve_operator(request.search_operator, request.search_regex)
        value = search_value(operator, request.search)
        predicate = any_of(
            Fragment(f"{_operand(column_map, field_id)} {operator} ?", (value,))
            for field_id in column_map.searchable(search_fields)
        )
        if predicate is not None:
            select.add_having(predicate)

    def _apply_column_filters(
        self,
        select: Select,
        request: GridRequest,
        column_map: ColumnMap,
    ) -> None:
        for column in request.columns:
            if not column.search or not column.searchable:
                continue
            sql = _operand(column_map, column.field)
            if sql is None:
                continue
            operator = self._resolve_operator(column.operator, column.regex)
            select.add_having(f"{sql} {operator} ?", search_value(operator, column.search))
