"""SQL parameter helpers.

Generated statements bind values positionally with ``?`` placeholders,
which is the sqlite3 ``qmark`` style. Parameters are collected in the same
order the fragments are joined.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def coerce_params(
    params: Mapping[str, Any] | Iterable[Any] | Any | None,
) -> dict[str, Any] | tuple[Any, ...] | None:
    """Normalize *params* to a dict, tuple, or None.

    * ``None`` / ``dict`` -> returned as-is (named parameter binding).
    * ``tuple`` / ``list`` -> converted to ``tuple`` (positional binding).
    * Any other scalar -> wrapped in a single-element tuple.
    """
    if params is None or isinstance(params, dict):
        return params
    if isinstance(params, Mapping):
        return dict(params)
    if isinstance(params, (tuple, list)):
        return tuple(params)
    return (params,)


def placeholders(count: int) -> str:
    """Return ``count`` comma-separated ``?`` markers, e.g. ``?,?,?``."""
    return ",".join("?" * count)
