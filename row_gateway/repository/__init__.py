"""Repository layer - table gateways."""

from __future__ import annotations

from row_gateway.repository.mapper import Mapper

__all__ = [
    "Mapper",
]
