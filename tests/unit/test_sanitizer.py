"""Unit tests for SQL text guards."""

from __future__ import annotations

import pytest

from row_gateway.core.enums import SortDirection
from row_gateway.core.exceptions import SQLSanitizationError
from row_gateway.core.sanitizer import (
    check_expression,
    is_identifier,
    normalize_direction,
    normalize_operator,
    quote_identifier,
    search_value,
)


class TestIdentifiers:
    def test_bare_identifier(self) -> None:
        assert is_identifier("last_name") is True

    def test_qualified_identifier(self) -> None:
        assert is_identifier("people.last_name") is True

    def test_expression_is_not_identifier(self) -> None:
        assert is_identifier("first_name || last_name") is False

    def test_leading_digit_is_not_identifier(self) -> None:
        assert is_identifier("1col") is False

    def test_quote_bare(self) -> None:
        assert quote_identifier("age") == '"age"'

    def test_quote_qualified(self) -> None:
        assert quote_identifier("people.age") == '"people"."age"'

    def test_quote_escapes_embedded_quote(self) -> None:
        assert quote_identifier('we"ird') == '"we""ird"'


class TestCheckExpression:
    def test_returns_stripped(self) -> None:
        assert check_expression("  first_name || ' ' || last_name ") == "first_name || ' ' || last_name"

    def test_rejects_empty(self) -> None:
        with pytest.raises(SQLSanitizationError):
            check_expression("   ")

    def test_rejects_statement_separator(self) -> None:
        with pytest.raises(SQLSanitizationError, match="separator"):
            check_expression("age; DROP TABLE people")

    def test_rejects_line_comment(self) -> None:
        with pytest.raises(SQLSanitizationError, match="Comment"):
            check_expression("age -- trailing")

    def test_rejects_block_comment(self) -> None:
        with pytest.raises(SQLSanitizationError, match="Comment"):
            check_expression("age /* x */")

    def test_semicolon_inside_string_allowed(self) -> None:
        assert check_expression("first_name || ';'") == "first_name || ';'"

    def test_dashes_inside_identifier_allowed(self) -> None:
        assert check_expression('"odd--name" + 1') == '"odd--name" + 1'

    def test_unterminated_string_rejected(self) -> None:
        with pytest.raises(SQLSanitizationError, match="Unterminated"):
            check_expression("first_name || 'oops")


class TestNormalizeOperator:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("like", "LIKE"),
            ("not   like", "NOT LIKE"),
            ("Regexp", "REGEXP"),
            (">=", ">="),
            ("<>", "<>"),
        ],
    )
    def test_allowed(self, raw: str, expected: str) -> None:
        assert normalize_operator(raw) == expected

    @pytest.mark.parametrize("raw", ["= 1 OR 1 =", "IN", "", None, 5])
    def test_rejected(self, raw: object) -> None:
        assert normalize_operator(raw) is None


class TestNormalizeDirection:
    def test_lowercase(self) -> None:
        assert normalize_direction("desc") is SortDirection.DESC

    def test_padded(self) -> None:
        assert normalize_direction(" asc ") is SortDirection.ASC

    def test_rejected(self) -> None:
        assert normalize_direction("DESC; DROP TABLE people") is None

    def test_non_string(self) -> None:
        assert normalize_direction(1) is None


class TestSearchValue:
    def test_like_wraps(self) -> None:
        assert search_value("LIKE", "smith") == "%smith%"

    def test_not_like_wraps(self) -> None:
        assert search_value("NOT LIKE", "smith") == "%smith%"

    def test_regexp_untouched(self) -> None:
        assert search_value("REGEXP", "^sm") == "^sm"

    def test_equals_untouched(self) -> None:
        assert search_value("=", "34") == "34"
