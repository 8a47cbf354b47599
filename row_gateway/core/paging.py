"""Lazy paginated result.

A PagedResult wraps a Select, the Executor that runs it and an optional row
mapper. Nothing runs at construction: ``count()`` issues a COUNT query
(cached per instance) and iteration issues the paged SELECT.

``with_query`` swaps the backing Select while keeping executor, row mapper
and page settings, so a caller (e.g. the grid translator) can refine the
query without losing pagination configured earlier.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from row_gateway.core.executor import Executor
from row_gateway.core.query import Select

if TYPE_CHECKING:
    from row_gateway.mapping.protocol import RowMapper

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PagedResult(Generic[T]):
    """Deferred, re-targetable paginated sequence over a Select.

    Args:
        query: The backing Select. It is not copied; clone before mutating
            a query that other results share.
        executor: Executor used for the count and page queries.
        row_mapper: Optional mapper applied to each row dict.
        page_size: Rows per page; None (or any non-positive value) means
            unbounded.
        page_number: 1-based current page.
    """

    def __init__(
        self,
        query: Select,
        executor: Executor,
        row_mapper: RowMapper[T] | None = None,
        page_size: int | None = None,
        page_number: int = 1,
    ) -> None:
        self._query = query
        self._executor = executor
        self._row_mapper = row_mapper
        self._page_size: int | None = None
        self._page_number = 1
        self._count: int | None = None
        self.set_page(page_size, page_number)

    @property
    def query(self) -> Select:
        return self._query

    @property
    def executor(self) -> Executor:
        return self._executor

    @property
    def row_mapper(self) -> RowMapper[T] | None:
        return self._row_mapper

    @property
    def page_size(self) -> int | None:
        """Rows per page, or None when unbounded."""
        return self._page_size

    @property
    def page_number(self) -> int:
        return self._page_number

    def set_page(self, size: int | None, number: int = 1) -> PagedResult[T]:
        """Configure pagination. Non-positive sizes (e.g. -1) mean all rows."""
        self._page_size = size if size is not None and size > 0 else None
        self._page_number = max(int(number), 1)
        logger.debug("Page set to size=%s number=%d", self._page_size, self._page_number)
        return self

    def with_query(self, query: Select) -> PagedResult[T]:
        """Return an equivalent result bound to *query*, keeping page settings."""
        return PagedResult(
            query,
            self._executor,
            row_mapper=self._row_mapper,
            page_size=self._page_size,
            page_number=self._page_number,
        )

    def count(self) -> int:
        """Total number of rows across all pages (cached)."""
        if self._count is None:
            sql, params = self._query.compile_count()
            self._count = int(self._executor.fetch_scalar(sql, params) or 0)
        return self._count

    def page_count(self) -> int:
        """Number of pages; 0 for an empty result."""
        total = self.count()
        if total == 0:
            return 0
        if self._page_size is None:
            return 1
        return math.ceil(total / self._page_size)

    def _page_query(self) -> Select:
        if self._page_size is None:
            return self._query
        paged = self._query.clone()
        paged.limit = self._page_size
        paged.offset = (self._page_number - 1) * self._page_size
        return paged

    def _fetch_page(self) -> list[Any]:
        sql, params = self._page_query().compile()
        rows = self._executor.fetch_all(sql, params)
        if self._row_mapper is not None:
            return self._row_mapper.map_many(rows)
        return rows

    def items(self) -> list[T]:
        """Rows of the current page."""
        return self._fetch_page()

    def __iter__(self) -> Iterator[T]:
        return iter(self._fetch_page())

    def __repr__(self) -> str:
        return (
            f"<PagedResult page={self._page_number} size={self._page_size} "
            f"query={self._query!r}>"
        )
