"""Grid layer - client grid requests into query refinements."""

from __future__ import annotations

from row_gateway.grid.render import render_cell
from row_gateway.grid.request import GridColumn, GridRequest, GridSort, parse_grid_request
from row_gateway.grid.translator import GridRequestTranslator, GridResponse

__all__ = [
    "GridColumn",
    "GridRequest",
    "GridSort",
    "parse_grid_request",
    "render_cell",
    "GridRequestTranslator",
    "GridResponse",
]
