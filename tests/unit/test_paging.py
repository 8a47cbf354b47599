"""Unit tests for PagedResult."""

from __future__ import annotations

from unittest.mock import MagicMock

from row_gateway.core.paging import PagedResult
from row_gateway.core.query import Select


def _executor(rows: list[dict] | None = None, total: int = 0) -> MagicMock:
    executor = MagicMock()
    executor.fetch_all.return_value = rows or []
    executor.fetch_scalar.return_value = total
    return executor


class TestPagedResult:
    def test_nothing_runs_at_construction(self) -> None:
        executor = _executor()
        PagedResult(Select("people"), executor)
        executor.fetch_all.assert_not_called()
        executor.fetch_scalar.assert_not_called()

    def test_unbounded_by_default(self) -> None:
        result = PagedResult(Select("people"), _executor())
        assert result.page_size is None
        assert result.page_number == 1

    def test_set_page_non_positive_is_unbounded(self) -> None:
        result = PagedResult(Select("people"), _executor())
        assert result.set_page(-1, 4).page_size is None
        assert result.set_page(0).page_size is None

    def test_set_page_clamps_number(self) -> None:
        result = PagedResult(Select("people"), _executor()).set_page(10, 0)
        assert result.page_number == 1

    def test_count_is_cached(self) -> None:
        executor = _executor(total=7)
        result = PagedResult(Select("people"), executor)
        assert result.count() == 7
        assert result.count() == 7
        executor.fetch_scalar.assert_called_once()
        sql = executor.fetch_scalar.call_args.args[0]
        assert sql.startswith("SELECT COUNT(*) FROM (")

    def test_page_count(self) -> None:
        assert PagedResult(Select("t"), _executor(total=21), page_size=10).page_count() == 3
        assert PagedResult(Select("t"), _executor(total=21)).page_count() == 1
        assert PagedResult(Select("t"), _executor(total=0), page_size=10).page_count() == 0

    def test_iteration_applies_limit_offset(self) -> None:
        executor = _executor(rows=[{"id": 1}])
        result = PagedResult(Select("people"), executor, page_size=10, page_number=3)
        assert list(result) == [{"id": 1}]
        sql, params = executor.fetch_all.call_args.args
        assert sql.endswith("LIMIT ? OFFSET ?")
        assert params == (10, 20)

    def test_iteration_does_not_mutate_query(self) -> None:
        select = Select("people")
        PagedResult(select, _executor(), page_size=5, page_number=2).items()
        assert select.limit is None
        assert select.offset is None

    def test_unbounded_iteration_has_no_limit(self) -> None:
        executor = _executor(rows=[])
        PagedResult(Select("people"), executor).items()
        sql, _ = executor.fetch_all.call_args.args
        assert "LIMIT" not in sql

    def test_row_mapper_applied(self) -> None:
        row_mapper = MagicMock()
        row_mapper.map_many.return_value = ["mapped"]
        result = PagedResult(Select("people"), _executor(rows=[{"id": 1}]), row_mapper=row_mapper)
        assert result.items() == ["mapped"]
        row_mapper.map_many.assert_called_once_with([{"id": 1}])

    def test_with_query_keeps_page_settings(self) -> None:
        executor = _executor(total=3)
        row_mapper = MagicMock()
        result = PagedResult(Select("people"), executor, row_mapper, page_size=10, page_number=2)
        result.count()

        other = result.with_query(Select("other"))
        assert other.query.table == "other"
        assert other.executor is executor
        assert other.row_mapper is row_mapper
        assert other.page_size == 10
        assert other.page_number == 2

        other.count()
        assert executor.fetch_scalar.call_count == 2
