"""SQL text guards.

Client input never reaches SQL text directly. The only strings that do are
server-declared: mapped columns/expressions, whitelisted identifiers and
values picked from the fixed operator and direction allow-lists below.
The checks here catch mistakes in those server-side strings and pin client
choices to the allow-lists.
"""

from __future__ import annotations

import re
from typing import Any

from row_gateway.core.enums import SortDirection
from row_gateway.core.exceptions import SQLSanitizationError

# Bare or dotted identifier, e.g. ``name`` or ``people.name``
_IDENTIFIER = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)?$")

# Operators a grid request may ask for, keyed by their normalized spelling
_OPERATORS: frozenset[str] = frozenset(
    {"LIKE", "NOT LIKE", "REGEXP", "NOT REGEXP", "=", "!=", "<>", "<", "<=", ">", ">="}
)

# Operators whose search text is wrapped as %text%
_WILDCARD_OPERATORS: frozenset[str] = frozenset({"LIKE", "NOT LIKE"})


# ---------------------------------------------------------------------------
# Internal tokenizer
# ---------------------------------------------------------------------------


def _scan_quoted(sql: str, start: int, quote: str) -> int:
    """Return the index just past the quoted run opening at *start*.

    Doubled quote characters are escapes.

    Raises:
        SQLSanitizationError: If the run is never closed.
    """
    n = len(sql)
    j = start + 1
    while j < n:
        if sql[j] == quote:
            if j + 1 < n and sql[j + 1] == quote:
                j += 2
                continue
            return j + 1
        j += 1
    raise SQLSanitizationError(f"Unterminated {quote}-quoted run in '{sql}'")


def _tokenize(sql: str) -> list[tuple[str, str]]:
    """Split *sql* into ``('string', ...)``, ``('identifier', ...)`` and ``('code', ...)`` tokens.

    Single-quoted literals are strings; double-quoted and backtick-quoted
    runs are identifiers. Everything else is code.
    """
    tokens: list[tuple[str, str]] = []
    i = 0
    last = 0
    n = len(sql)

    while i < n:
        ch = sql[i]
        if ch in ("'", '"', "`"):
            if i > last:
                tokens.append(("code", sql[last:i]))
            end = _scan_quoted(sql, i, ch)
            tokens.append(("string" if ch == "'" else "identifier", sql[i:end]))
            last = i = end
        else:
            i += 1

    if last < n:
        tokens.append(("code", sql[last:]))

    return tokens


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def is_identifier(name: str) -> bool:
    """Return True if *name* is a bare or table-qualified identifier."""
    return bool(_IDENTIFIER.match(name))


def quote_identifier(name: str) -> str:
    """Quote *name* for SQLite, quoting each dotted part separately.

    ``people.name`` becomes ``"people"."name"``.
    """
    return ".".join('"' + part.replace('"', '""') + '"' for part in name.split("."))


def check_expression(sql: str) -> str:
    """Validate a server-declared SQL expression and return it stripped.

    Raises:
        SQLSanitizationError: If the expression is empty, contains a comment
            or a statement separator outside of quoted runs.
    """
    sql = sql.strip()
    if not sql:
        raise SQLSanitizationError("Empty SQL expression")
    for kind, content in _tokenize(sql):
        if kind != "code":
            continue
        if ";" in content:
            raise SQLSanitizationError(f"Statement separator in expression '{sql}'")
        if "--" in content or "/*" in content:
            raise SQLSanitizationError(f"Comment in expression '{sql}'")
    return sql


def normalize_operator(operator: Any) -> str | None:
    """Return the allow-listed spelling of *operator*, or None if not allowed."""
    if not isinstance(operator, str):
        return None
    normalized = " ".join(operator.upper().split())
    return normalized if normalized in _OPERATORS else None


def normalize_direction(direction: Any) -> SortDirection | None:
    """Return the SortDirection for *direction* (case-insensitive), or None."""
    if isinstance(direction, SortDirection):
        return direction
    if not isinstance(direction, str):
        return None
    try:
        return SortDirection(direction.strip().upper())
    except ValueError:
        return None


def search_value(operator: str, text: str) -> str:
    """Return the bound value for *text* under *operator* (``%text%`` for LIKE)."""
    if operator in _WILDCARD_OPERATORS:
        return f"%{text}%"
    return text
