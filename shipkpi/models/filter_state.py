from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any

"""View-level filter state and result window.

FilterState is immutable: every transition returns a new state. Any change
to a filter, the sort or the page size sends the view back to page 1; only
with_page() keeps the rest of the state untouched.
"""

__all__ = [
    "ALL",
    "PAGE_SIZE_OPTIONS",
    "SortDirection",
    "FilterState",
    "ViewPage",
    "InvalidFilterError",
]

ALL = "ALL"
PAGE_SIZE_OPTIONS = (10, 20, 25, 30, 50, 100, 200, 500)
DEFAULT_PAGE_SIZE = 30


class InvalidFilterError(ValueError):
    """Raised for an impossible filter transition (bad page, page size or sort field)."""


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class FilterState:
    """Current selection of one table or view.

    Attributes:
        dimension: location code or ALL
        category: category code or ALL
        date_from / date_to: inclusive calendar-day bounds (None = open)
        searches: (field name, case-insensitive substring) pairs, sorted by field
        sort_field / sort_direction: single active sort column (None = insertion order)
        page: 1-based page number
        page_size: one of PAGE_SIZE_OPTIONS
    """
    dimension: str = ALL
    category: str = ALL
    date_from: date | None = None
    date_to: date | None = None
    searches: tuple[tuple[str, str], ...] = ()
    sort_field: str | None = None
    sort_direction: SortDirection | None = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page_size not in PAGE_SIZE_OPTIONS:
            raise InvalidFilterError(f"unsupported page size: {self.page_size}")
        if self.page < 1:
            raise InvalidFilterError(f"page must be >= 1: {self.page}")
        if (self.sort_field is None) != (self.sort_direction is None):
            raise InvalidFilterError("sort_field and sort_direction must be set together")

    def _changed(self, **changes: Any) -> FilterState:
        return replace(self, page=1, **changes)

    def with_dimension(self, dimension: str) -> FilterState:
        return self._changed(dimension=dimension.strip().upper() or ALL)

    def with_category(self, category: str) -> FilterState:
        return self._changed(category=category.strip().upper() or ALL)

    def with_date_range(self, date_from: date | None, date_to: date | None) -> FilterState:
        return self._changed(date_from=date_from, date_to=date_to)

    def with_search(self, field_name: str, text: str) -> FilterState:
        searches = dict(self.searches)
        if text:
            searches[field_name] = text
        else:
            searches.pop(field_name, None)
        return self._changed(searches=tuple(sorted(searches.items())))

    def toggle_sort(self, field_name: str) -> FilterState:
        """Cycle unsorted -> ascending -> descending -> unsorted on one column.

        Selecting a different column starts again at ascending on that column.
        """
        if self.sort_field != field_name:
            return self._changed(sort_field=field_name, sort_direction=SortDirection.ASC)
        if self.sort_direction is SortDirection.ASC:
            return self._changed(sort_direction=SortDirection.DESC)
        return self._changed(sort_field=None, sort_direction=None)

    def with_page(self, page: int) -> FilterState:
        return replace(self, page=page)

    def with_page_size(self, page_size: int) -> FilterState:
        return self._changed(page_size=page_size)

    def reset(self) -> FilterState:
        """Defaults, keeping only the page size."""
        return FilterState(page_size=self.page_size)


@dataclass(frozen=True)
class ViewPage:
    """One pagination window over a filtered, sorted row collection."""
    rows: tuple[Any, ...]
    page: int
    total_pages: int
    total_count: int

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0
