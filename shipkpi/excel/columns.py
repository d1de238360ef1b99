from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, fields, replace
from typing import Any

from ..models.source_variant import SourceVariant

"""Positional column layout of the shipment export.

Semantic fields are addressed by fixed 0-based column indices. The two
source variants differ by one column at the pivot position (index 6, column G):

- PRIMARY_COLUMNS is the reference table.
- SECONDARY_COLUMNS is the same table shifted right by one at and beyond the
  pivot, i.e. the positions when the secondary grid carries the extra column.
- align_row() inserts one empty placeholder at the pivot of a raw secondary
  row, after which PRIMARY_COLUMNS addresses it uniformly. The extractor uses
  this path; rows are copied, never mutated.
"""

__all__ = [
    "PIVOT_COLUMN",
    "STATUS_COLUMN_CHOICES",
    "ColumnMap",
    "PRIMARY_COLUMNS",
    "SECONDARY_COLUMNS",
    "resolve_columns",
    "align_row",
    "align_grid",
    "cell_at",
    "is_row",
]

PIVOT_COLUMN = 6
PLACEHOLDER = ""
# Status flag column observed at G (6) or H (7) depending on the view
STATUS_COLUMN_CHOICES = (6, 7)


@dataclass(frozen=True)
class ColumnMap:
    """Semantic field -> 0-based column index."""
    category: int = 0  # A
    location: int = 1  # B
    identifier: int = 2  # C
    created_at: int = 3  # D (filter / creation date)
    arrival: int = 5  # F (milestone A)
    status: int = 6  # G (status flag, 6 or 7)
    warehouse_arrival: int = 8  # I (milestone B)
    release: int = 10  # K (milestone C)
    milestone_l: int = 11  # L
    milestone_m: int = 12  # M
    final_release: int = 13  # N
    consigned: int = 14  # O (milestone E)
    handover: int = 15  # P (milestone F)

    def index_of(self, field_name: str) -> int:
        try:
            return getattr(self, field_name)
        except AttributeError as e:
            raise KeyError(f"unknown column field: {field_name}") from e

    def shifted(self, pivot: int = PIVOT_COLUMN, by: int = 1) -> ColumnMap:
        """Copy with every index >= pivot moved by `by` positions."""
        changes = {
            f.name: getattr(self, f.name) + by
            for f in fields(self)
            if getattr(self, f.name) >= pivot
        }
        return replace(self, **changes)

    def with_status(self, status_column: int) -> ColumnMap:
        if status_column not in STATUS_COLUMN_CHOICES:
            raise ValueError(
                f"status column must be one of {STATUS_COLUMN_CHOICES}, got {status_column}"
            )
        return replace(self, status=status_column)


PRIMARY_COLUMNS = ColumnMap()
SECONDARY_COLUMNS = PRIMARY_COLUMNS.shifted()


def resolve_columns(variant: SourceVariant, status_column: int = 6) -> ColumnMap:
    """Index table for a variant.

    Args:
        variant: source layout
        status_column: Primary index of the status flag (6 or 7)

    Returns:
        ColumnMap with the variant's positions
    """
    base = PRIMARY_COLUMNS.with_status(status_column)
    if variant is SourceVariant.SECONDARY:
        return base.shifted()
    return base


def is_row(row: Any) -> bool:
    """Only list/tuple rows are processed; anything else counts as malformed."""
    return isinstance(row, (list, tuple))


def align_row(row: Any, variant: SourceVariant) -> Any:
    """Return a Primary-addressable copy of a raw row.

    Secondary rows get one placeholder inserted at the pivot:
    [A,B,C,D,E,F,G,H] -> [A,B,C,D,E,F,'',G,H]. Non-row values pass through.
    """
    if variant is not SourceVariant.SECONDARY or not is_row(row):
        return row
    aligned = list(row)
    aligned.insert(PIVOT_COLUMN, PLACEHOLDER)
    return aligned


def align_grid(grid: Sequence[Any], variant: SourceVariant) -> list[Any]:
    return [align_row(row, variant) for row in grid]


def cell_at(row: Sequence[Any], index: int) -> Any:
    """Positional lookup that yields None beyond the end of a short row."""
    if 0 <= index < len(row):
        return row[index]
    return None
