"""Enumerations shared across the package."""

from __future__ import annotations

from enum import Enum


class RowState(str, Enum):
    """Soft-delete state a mapper filters on."""

    ACTIVE = "active"
    DELETED = "deleted"
    ALL = "all"


class SortDirection(str, Enum):
    """Allowed ORDER BY directions."""

    ASC = "ASC"
    DESC = "DESC"


class ProtocolVersion(str, Enum):
    """Grid wire protocol variants."""

    LEGACY = "legacy"
    CURRENT = "current"
