from __future__ import annotations

from dataclasses import dataclass, field

from .record import ShipmentRecord

"""Extraction result models.

ExtractionStats carries the per-file counters of the extraction pass; nothing
in it is surfaced per cell. StatsAccumulator collects them while iterating.
"""

__all__ = [
    "ExtractionStats",
    "ExtractionResult",
    "StatsAccumulator",
]


@dataclass(frozen=True)
class ExtractionStats:
    """Counters for one extraction pass over a RawGrid."""
    total_rows: int = 0  # data rows seen (header prefix excluded)
    malformed_rows: int = 0  # not a row sequence
    filtered_by_date: int = 0  # creation date earlier than floor
    missing_location: int = 0  # empty location code
    unparseable_cells: int = 0  # non-empty date cell that did not parse
    records: int = 0  # ShipmentRecord produced


@dataclass(frozen=True)
class ExtractionResult:
    records: tuple[ShipmentRecord, ...]
    stats: ExtractionStats

    @property
    def is_empty(self) -> bool:
        return not self.records


@dataclass
class StatsAccumulator:
    """Mutable counterpart of ExtractionStats used during iteration."""
    total_rows: int = 0
    malformed_rows: int = 0
    filtered_by_date: int = 0
    missing_location: int = 0
    unparseable_cells: int = 0
    records: list[ShipmentRecord] = field(default_factory=list)

    def freeze(self) -> ExtractionResult:
        stats = ExtractionStats(
            total_rows=self.total_rows,
            malformed_rows=self.malformed_rows,
            filtered_by_date=self.filtered_by_date,
            missing_location=self.missing_location,
            unparseable_cells=self.unparseable_cells,
            records=len(self.records),
        )
        return ExtractionResult(records=tuple(self.records), stats=stats)
