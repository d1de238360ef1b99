from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from ..excel.cells import as_datetime, is_empty, normalize_date, normalize_text
from ..excel.columns import PIVOT_COLUMN, ColumnMap, align_row, cell_at, is_row, resolve_columns
from ..models.record import MILESTONE_LABELS, MissingMilestoneEntry, StatusFlagEntry
from ..models.source_variant import SourceVariant
from .extractor import DEFAULT_FLOOR_DATE, is_before_floor, iter_data_rows

"""Data-quality checks for the missing-data view.

Both checks run over the rows that survive the floor-date pre-filter:

- status check: status flag column equals "N" (any category, any location)
- missing-milestone check: category T01 rows with a location code where at
  least one of the checked milestone columns is empty. Emptiness here is
  is_empty(): a numeric 0 counts as a value, unlike in date parsing.
"""

__all__ = [
    "STATUS_FLAG",
    "MISSING_CHECK_CATEGORY",
    "CHECKED_MILESTONES",
    "DataQualityReport",
    "find_status_flags",
    "find_missing_milestones",
    "check_data_quality",
]

logger = logging.getLogger(__name__)

STATUS_FLAG = "N"
MISSING_CHECK_CATEGORY = "T01"
# P, N, M, L, K
CHECKED_MILESTONES = ("handover", "final_release", "milestone_m", "milestone_l", "release")
_FLAG_VALUES = {"Y", "N"}


@dataclass(frozen=True)
class DataQualityReport:
    status_flags: tuple[StatusFlagEntry, ...]
    missing_milestones: tuple[MissingMilestoneEntry, ...]

    @property
    def total_issues(self) -> int:
        return len(self.status_flags) + len(self.missing_milestones)


def _qualifying_rows(
    grid: Sequence[Any], variant: SourceVariant, floor_date: date | datetime, cols: ColumnMap
):
    floor = as_datetime(floor_date)
    for row_number, raw in iter_data_rows(grid):
        if not is_row(raw):
            continue
        row = align_row(raw, variant)
        if is_before_floor(normalize_date(cell_at(row, cols.created_at)), floor):
            continue
        yield row_number, row


def _flag_status_schema(values: list[str], column: int, variant: SourceVariant) -> None:
    """Warn when the status column does not look like a Y/N flag column."""
    if variant is SourceVariant.SECONDARY and column == PIVOT_COLUMN:
        logger.warning(
            "status column %d is the secondary placeholder column; secondary sources carry no status flag",
            column,
        )
        return
    present = [v for v in values if v]
    if not present:
        return
    non_flag = sum(1 for v in present if v not in _FLAG_VALUES)
    if non_flag * 2 > len(present):
        logger.warning(
            "status column %d holds %d/%d non-flag values; check the column layout (expected 6 or 7)",
            column,
            non_flag,
            len(present),
        )


def find_status_flags(
    grid: Sequence[Any],
    variant: SourceVariant = SourceVariant.PRIMARY,
    floor_date: date | datetime = DEFAULT_FLOOR_DATE,
    *,
    status_column: int = 6,
) -> list[StatusFlagEntry]:
    """Rows whose status flag (upper-cased, trimmed) equals 'N'.

    A location code is not required for this check.
    """
    cols = resolve_columns(SourceVariant.PRIMARY, status_column)
    entries: list[StatusFlagEntry] = []
    seen: list[str] = []
    for row_number, row in _qualifying_rows(grid, variant, floor_date, cols):
        status = normalize_text(cell_at(row, cols.status))
        seen.append(status)
        if status != STATUS_FLAG:
            continue
        entries.append(
            StatusFlagEntry(
                location=normalize_text(cell_at(row, cols.location)),
                identifier=normalize_text(cell_at(row, cols.identifier), upper=False),
                category=normalize_text(cell_at(row, cols.category)),
                row_number=row_number,
            )
        )
    _flag_status_schema(seen, cols.status, variant)
    return entries


def find_missing_milestones(
    grid: Sequence[Any],
    variant: SourceVariant = SourceVariant.PRIMARY,
    floor_date: date | datetime = DEFAULT_FLOOR_DATE,
    *,
    require_consigned: bool = False,
    locations: Collection[str] | None = None,
) -> list[MissingMilestoneEntry]:
    """T01 rows with at least one empty checked milestone column.

    Args:
        require_consigned: only check rows whose consigned date (O) parses
        locations: optional allow-list of location codes (None/empty = all)
    """
    cols = resolve_columns(SourceVariant.PRIMARY)
    allowed = {loc.upper() for loc in locations} if locations else None
    entries: list[MissingMilestoneEntry] = []
    for row_number, row in _qualifying_rows(grid, variant, floor_date, cols):
        if normalize_text(cell_at(row, cols.category)) != MISSING_CHECK_CATEGORY:
            continue
        location = normalize_text(cell_at(row, cols.location))
        if not location or (allowed is not None and location not in allowed):
            continue
        if require_consigned and normalize_date(cell_at(row, cols.consigned)) is None:
            continue
        missing = tuple(
            MILESTONE_LABELS[name]
            for name in CHECKED_MILESTONES
            if is_empty(cell_at(row, cols.index_of(name)))
        )
        if not missing:
            continue
        entries.append(
            MissingMilestoneEntry(
                location=location,
                identifier=normalize_text(cell_at(row, cols.identifier), upper=False),
                category=MISSING_CHECK_CATEGORY,
                created_at=normalize_date(cell_at(row, cols.created_at)),
                missing=missing,
                row_number=row_number,
            )
        )
    return entries


def check_data_quality(
    grid: Sequence[Any],
    variant: SourceVariant = SourceVariant.PRIMARY,
    floor_date: date | datetime = DEFAULT_FLOOR_DATE,
    *,
    status_column: int = 6,
    require_consigned: bool = False,
    locations: Collection[str] | None = None,
) -> DataQualityReport:
    report = DataQualityReport(
        status_flags=tuple(find_status_flags(grid, variant, floor_date, status_column=status_column)),
        missing_milestones=tuple(
            find_missing_milestones(
                grid,
                variant,
                floor_date,
                require_consigned=require_consigned,
                locations=locations,
            )
        ),
    )
    logger.debug(
        "data quality status_flags=%d missing_milestones=%d",
        len(report.status_flags),
        len(report.missing_milestones),
    )
    return report
