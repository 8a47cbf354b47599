"""Parameterized SELECT builder.

A Select is assembled from Fragments: SQL text with ``?`` placeholders plus
the values bound to them. Fragment text is always server-side (mapped
columns, whitelisted identifiers, allow-listed operators); every client
value travels in ``params``.

The builder keeps a separate secondary-filter list (``having``) next to
``where``. Grid filters go there because they may reference result-column
aliases. Without a GROUP BY the secondary filter is AND-ed into WHERE at
compile time (SQLite resolves result-column aliases in WHERE); with a
GROUP BY it is emitted as HAVING.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from row_gateway.core.params import placeholders
from row_gateway.core.sanitizer import quote_identifier


@dataclass(frozen=True)
class Fragment:
    """An SQL snippet and the values for its ``?`` placeholders."""

    sql: str
    params: tuple[Any, ...] = ()

    @classmethod
    def of(cls, sql: str | Fragment, *params: Any) -> Fragment:
        """Build a Fragment from text and params, passing Fragments through."""
        if isinstance(sql, Fragment):
            return sql
        return cls(sql, tuple(params))


def _join(fragments: Sequence[Fragment], separator: str) -> Fragment:
    sql = separator.join(f.sql for f in fragments)
    params: list[Any] = []
    for f in fragments:
        params.extend(f.params)
    return Fragment(sql, tuple(params))


def all_of(fragments: Iterable[Fragment]) -> Fragment | None:
    """AND the fragments together, parenthesizing each. None if empty."""
    items = [Fragment(f"({f.sql})", f.params) for f in fragments]
    if not items:
        return None
    return _join(items, " AND ")


def any_of(fragments: Iterable[Fragment]) -> Fragment | None:
    """OR the fragments together inside one pair of parentheses. None if empty."""
    items = [Fragment(f"({f.sql})", f.params) for f in fragments]
    if not items:
        return None
    joined = _join(items, " OR ")
    return Fragment(f"({joined.sql})", joined.params)


def equals(column: str, value: Any) -> Fragment:
    """``"column" = ?`` (or ``IS NULL`` for None) on a quoted identifier."""
    if value is None:
        return Fragment(f"{quote_identifier(column)} IS NULL")
    return Fragment(f"{quote_identifier(column)} = ?", (value,))


def match_all(pairs: Mapping[str, Any]) -> Fragment | None:
    """Equality on every column/value pair, AND-ed. None if empty."""
    terms = [equals(column, value) for column, value in pairs.items()]
    if not terms:
        return None
    return _join(terms, " AND ")


def in_list(column: str, values: Sequence[Any]) -> Fragment:
    """``"column" IN (?, ...)``."""
    return Fragment(f"{quote_identifier(column)} IN ({placeholders(len(values))})", tuple(values))


def position_order(column: str, values: Sequence[Any]) -> Fragment:
    """ORDER BY expression ranking rows by the position of *column* in *values*."""
    whens = " ".join(f"WHEN ? THEN {i}" for i in range(len(values)))
    return Fragment(
        f"CASE {quote_identifier(column)} {whens} ELSE {len(values)} END",
        tuple(values),
    )


class Select:
    """Mutable SELECT statement. Clone before modifying a shared instance."""

    def __init__(self, table: str, columns: Sequence[str] | None = None) -> None:
        self.table = table
        self.columns: list[str] = list(columns) if columns else ["*"]
        self.joins: list[Fragment] = []
        self.where: list[Fragment] = []
        self.group_by: list[str] = []
        self.having: list[Fragment] = []
        self.order: list[Fragment] = []
        self.limit: int | None = None
        self.offset: int | None = None

    def add_join(self, sql: str | Fragment, *params: Any) -> Select:
        self.joins.append(Fragment.of(sql, *params))
        return self

    def add_where(self, sql: str | Fragment, *params: Any) -> Select:
        self.where.append(Fragment.of(sql, *params))
        return self

    def add_having(self, sql: str | Fragment, *params: Any) -> Select:
        """Conjoin a predicate onto the secondary filter."""
        self.having.append(Fragment.of(sql, *params))
        return self

    def add_order(self, sql: str | Fragment, *params: Any) -> Select:
        self.order.append(Fragment.of(sql, *params))
        return self

    def add_group_by(self, *expressions: str) -> Select:
        self.group_by.extend(expressions)
        return self

    def reset_order(self) -> list[Fragment]:
        """Remove and return the current ORDER BY fragments."""
        saved = self.order
        self.order = []
        return saved

    def clone(self) -> Select:
        """Copy with independent clause lists (fragments are immutable)."""
        other = copy.copy(self)
        other.columns = list(self.columns)
        other.joins = list(self.joins)
        other.where = list(self.where)
        other.group_by = list(self.group_by)
        other.having = list(self.having)
        other.order = list(self.order)
        return other

    def _body(self) -> list[Fragment]:
        parts = [Fragment(f"SELECT {', '.join(self.columns)} FROM {quote_identifier(self.table)}")]
        parts.extend(self.joins)

        conditions = list(self.where)
        if not self.group_by:
            conditions.extend(self.having)
        where = all_of(conditions)
        if where is not None:
            parts.append(Fragment(f"WHERE {where.sql}", where.params))

        if self.group_by:
            parts.append(Fragment(f"GROUP BY {', '.join(self.group_by)}"))
            having = all_of(self.having)
            if having is not None:
                parts.append(Fragment(f"HAVING {having.sql}", having.params))
        return parts

    def compile(self) -> tuple[str, tuple[Any, ...]]:
        """Render the full statement including ORDER BY and LIMIT/OFFSET."""
        parts = self._body()
        if self.order:
            order = _join(self.order, ", ")
            parts.append(Fragment(f"ORDER BY {order.sql}", order.params))
        if self.limit is not None or self.offset:
            # SQLite needs a LIMIT before OFFSET; -1 means no limit
            limit = -1 if self.limit is None else self.limit
            parts.append(Fragment("LIMIT ? OFFSET ?", (limit, self.offset or 0)))
        statement = _join(parts, " ")
        return statement.sql, statement.params

    def compile_count(self) -> tuple[str, tuple[Any, ...]]:
        """Render ``SELECT COUNT(*)`` over this query, ignoring ORDER BY and paging."""
        body = _join(self._body(), " ")
        return f'SELECT COUNT(*) FROM ({body.sql}) AS "_counted"', body.params

    def __repr__(self) -> str:
        sql, params = self.compile()
        return f"<Select {sql!r} params={params!r}>"
