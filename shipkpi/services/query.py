from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import fields, is_dataclass
from typing import Any

from ..models.filter_state import ALL, FilterState, InvalidFilterError, SortDirection, ViewPage
from .metrics import in_date_range

"""View query layer: filter -> sort -> paginate.

Works on any dataclass row exposing `location` (and optionally `category`).
Filtering is conjunctive. The input collection is never mutated.
"""

__all__ = [
    "apply_filters",
    "sort_rows",
    "paginate",
    "query",
]


def _matches(row: Any, state: FilterState, date_field: str | None) -> bool:
    if state.dimension != ALL and row.location != state.dimension:
        return False
    if state.category != ALL and getattr(row, "category", None) != state.category:
        return False
    if date_field is not None and (state.date_from is not None or state.date_to is not None):
        value = getattr(row, date_field)
        if value is None or not in_date_range(value, state.date_from, state.date_to):
            return False
    for field_name, text in state.searches:
        if text.lower() not in str(getattr(row, field_name, "")).lower():
            return False
    return True


def apply_filters(rows: Sequence[Any], state: FilterState, *, date_field: str | None = None) -> list[Any]:
    """Rows passing dimension, category, date range and every text search."""
    return [row for row in rows if _matches(row, state, date_field)]


def _check_sort_field(rows: Sequence[Any], field_name: str) -> None:
    if not rows:
        return
    sample = rows[0]
    known = {f.name for f in fields(sample)} if is_dataclass(sample) else set()
    if field_name not in known and not hasattr(sample, field_name):
        raise InvalidFilterError(f"unknown sort field: {field_name}")


def sort_rows(rows: Sequence[Any], field_name: str | None, direction: SortDirection | None) -> list[Any]:
    """Stable single-column sort; None direction keeps insertion order.

    Missing values (None) come first when ascending, last when descending.
    """
    if field_name is None or direction is None:
        return list(rows)
    _check_sort_field(rows, field_name)

    def key(row: Any) -> tuple[int, Any]:
        value = getattr(row, field_name)
        return (0, 0) if value is None else (1, value)

    return sorted(rows, key=key, reverse=direction is SortDirection.DESC)


def paginate(rows: Sequence[Any], page: int, page_size: int) -> ViewPage:
    total = len(rows)
    total_pages = math.ceil(total / page_size) if total else 0
    start = (page - 1) * page_size
    return ViewPage(
        rows=tuple(rows[start:start + page_size]),
        page=page,
        total_pages=total_pages,
        total_count=total,
    )


def query(rows: Sequence[Any], state: FilterState, *, date_field: str | None = None) -> ViewPage:
    """Apply a FilterState to a row collection and return the requested window.

    Args:
        rows: MetricRow / StatusFlagEntry / MissingMilestoneEntry collection
        state: current filter, sort and pagination selection
        date_field: timestamp attribute the date range applies to (None = ignore range)
    """
    filtered = apply_filters(rows, state, date_field=date_field)
    ordered = sort_rows(filtered, state.sort_field, state.sort_direction)
    return paginate(ordered, state.page, state.page_size)
