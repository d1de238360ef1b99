from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from datetime import date, datetime
from typing import Any

from ..excel.cells import as_datetime, is_blank_date, normalize_date, normalize_text
from ..excel.columns import ColumnMap, align_row, cell_at, is_row, resolve_columns
from ..models.extraction_result import ExtractionResult, StatsAccumulator
from ..models.record import MILESTONE_FIELDS, RECOGNIZED_CATEGORIES, ShipmentRecord
from ..models.source_variant import SourceVariant

"""Record extraction: RawGrid -> ShipmentRecord sequence.

Processing per data row (header prefix of two rows skipped):
1. non-row values are counted as malformed and skipped
2. secondary rows are aligned (placeholder at the pivot)
3. rows whose creation date (D) is earlier than the floor date are dropped
4. rows with an empty location code are dropped
5. category / location upper-cased, milestones normalized

The pass never raises on cell content; counters end up in ExtractionStats.
"""

__all__ = [
    "HEADER_ROWS",
    "DEFAULT_FLOOR_DATE",
    "iter_data_rows",
    "is_before_floor",
    "extract_records",
    "available_locations",
    "available_categories",
    "default_date_range",
]

logger = logging.getLogger(__name__)

HEADER_ROWS = 2
DEFAULT_FLOOR_DATE = date(2025, 7, 1)
DEFAULT_PREFERRED_LOCATIONS = ("ORD", "LAX", "JFK", "DFW", "MIA", "SFO")


def iter_data_rows(grid: Sequence[Any]) -> Iterator[tuple[int, Any]]:
    """Yield (1-based worksheet row number, raw row) after the header prefix."""
    for index in range(HEADER_ROWS, len(grid)):
        yield index + 1, grid[index]


def is_before_floor(created_at: datetime | None, floor: datetime) -> bool:
    """Hard pre-filter: only a present creation date earlier than floor drops the row."""
    return created_at is not None and created_at < floor


def extract_records(
    grid: Sequence[Any],
    variant: SourceVariant = SourceVariant.PRIMARY,
    floor_date: date | datetime = DEFAULT_FLOOR_DATE,
    *,
    columns: ColumnMap | None = None,
) -> ExtractionResult:
    """Extract typed records from a raw grid.

    Args:
        grid: RawGrid as read from the workbook (not yet aligned)
        variant: source layout of the grid
        floor_date: earliest accepted creation date
        columns: Primary-addressed column table (defaults to PRIMARY_COLUMNS)

    Returns:
        ExtractionResult with records in worksheet order and pass counters
    """
    cols = columns or resolve_columns(SourceVariant.PRIMARY)
    floor = as_datetime(floor_date)
    acc = StatsAccumulator()

    for row_number, raw in iter_data_rows(grid):
        acc.total_rows += 1
        if not is_row(raw):
            acc.malformed_rows += 1
            continue
        row = align_row(raw, variant)

        created_at = _parse(row, cols.created_at, acc)
        if is_before_floor(created_at, floor):
            acc.filtered_by_date += 1
            continue

        location = normalize_text(cell_at(row, cols.location))
        if not location:
            acc.missing_location += 1
            continue

        milestones = {name: _parse(row, cols.index_of(name), acc) for name in MILESTONE_FIELDS}
        acc.records.append(
            ShipmentRecord(
                row_number=row_number,
                category=normalize_text(cell_at(row, cols.category)),
                location=location,
                identifier=normalize_text(cell_at(row, cols.identifier), upper=False),
                created_at=created_at,
                **milestones,
            )
        )

    result = acc.freeze()
    logger.debug(
        "extract variant=%s rows=%d records=%d malformed=%d filtered_by_date=%d "
        "missing_location=%d unparseable_cells=%d",
        variant.value,
        result.stats.total_rows,
        result.stats.records,
        result.stats.malformed_rows,
        result.stats.filtered_by_date,
        result.stats.missing_location,
        result.stats.unparseable_cells,
    )
    return result


def _parse(row: Sequence[Any], index: int, acc: StatsAccumulator) -> datetime | None:
    value = cell_at(row, index)
    parsed = normalize_date(value)
    if parsed is None and not is_blank_date(value):
        acc.unparseable_cells += 1
    return parsed


def available_locations(
    records: Sequence[ShipmentRecord],
    preferred: Sequence[str] = DEFAULT_PREFERRED_LOCATIONS,
) -> list[str]:
    """Dimension options: ALL, preferred codes present (in given order), then the rest sorted."""
    present = {r.location for r in records if r.location}
    ordered = ["ALL"] + [code for code in preferred if code in present]
    ordered.extend(sorted(present - set(ordered)))
    return ordered


def available_categories(records: Sequence[ShipmentRecord]) -> list[str]:
    present = {r.category for r in records if r.category in RECOGNIZED_CATEGORIES}
    return ["ALL"] + sorted(present)


def default_date_range(
    records: Sequence[ShipmentRecord],
    floor_date: date = DEFAULT_FLOOR_DATE,
    today: date | None = None,
) -> tuple[date, date]:
    """(floor, latest arrival day at or after floor), or (floor, today) without arrivals."""
    floor = as_datetime(floor_date)
    arrivals = [r.arrival for r in records if r.arrival is not None and r.arrival >= floor]
    if arrivals:
        return floor_date, max(arrivals).date()
    return floor_date, today or date.today()
