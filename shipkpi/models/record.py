from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Record models for the shipment KPI pipeline.

ShipmentRecord is the fixed-schema result of extracting one spreadsheet row.
MetricRow is one computed duration between two of its milestones. The
data-quality entries are produced by the missing-data checks.
"""

__all__ = [
    "MILESTONE_FIELDS",
    "MILESTONE_LABELS",
    "RECOGNIZED_CATEGORIES",
    "ShipmentRecord",
    "Metric",
    "METRICS",
    "MetricRow",
    "StatusFlagEntry",
    "MissingMilestoneEntry",
    "format_hours",
]

RECOGNIZED_CATEGORIES = ("T01", "T86")

# Milestone timestamp fields, in spreadsheet column order (F, I, K..P)
MILESTONE_FIELDS = (
    "arrival",
    "warehouse_arrival",
    "release",
    "milestone_l",
    "milestone_m",
    "final_release",
    "consigned",
    "handover",
)

MILESTONE_LABELS: dict[str, str] = {
    "arrival": "ATA Date (F)",
    "warehouse_arrival": "Arrived at Warehouse (I)",
    "release": "Release Date (K)",
    "milestone_l": "Milestone (L)",
    "milestone_m": "Milestone (M)",
    "final_release": "Custom Final Release Date (N)",
    "consigned": "Consigned to Final Mile Carrier (O)",
    "handover": "Handover Time (P)",
}


def format_hours(hours: float) -> str:
    """Display form of a delta: two decimals and an 'h' suffix."""
    return f"{hours:.2f}h"


@dataclass(frozen=True)
class ShipmentRecord:
    """One qualifying data row after normalization.

    row_number is the 1-based worksheet row (3 = first data row).
    category / location are trimmed and upper-cased, identifier only trimmed.
    Every milestone is optional; absence means the cell was empty or unparseable.
    """
    row_number: int
    category: str
    location: str
    identifier: str
    created_at: datetime | None = None  # filter / creation date (D)
    arrival: datetime | None = None  # F
    warehouse_arrival: datetime | None = None  # I
    release: datetime | None = None  # K
    milestone_l: datetime | None = None  # L
    milestone_m: datetime | None = None  # M
    final_release: datetime | None = None  # N
    consigned: datetime | None = None  # O
    handover: datetime | None = None  # P

    def milestone(self, name: str) -> datetime | None:
        if name not in MILESTONE_FIELDS:
            raise KeyError(f"unknown milestone: {name}")
        return getattr(self, name)


@dataclass(frozen=True)
class Metric:
    """A named duration between two milestone fields (end - start)."""
    key: str
    label: str
    start_field: str
    end_field: str


METRICS: dict[str, Metric] = {
    m.key: m
    for m in (
        Metric("ata_to_warehouse", "ATA to Warehouse", "arrival", "warehouse_arrival"),
        Metric("release_to_consigned", "Release to Consigned", "final_release", "consigned"),
        Metric("ata_to_released", "ATA to Released", "arrival", "release"),
        Metric("ata_to_consigned", "ATA to ConsigntoFM", "arrival", "consigned"),
        Metric("ata_to_handover", "ATA to Handover", "arrival", "handover"),
    )
}


@dataclass(frozen=True)
class MetricRow:
    """One record's value for one metric. hours is signed (negative kept)."""
    location: str
    identifier: str
    category: str
    start: datetime
    end: datetime
    hours: float
    row_number: int = 0

    @property
    def formatted(self) -> str:
        return format_hours(self.hours)


@dataclass(frozen=True)
class StatusFlagEntry:
    location: str
    identifier: str
    category: str
    row_number: int = 0


@dataclass(frozen=True)
class MissingMilestoneEntry:
    """T01 row with at least one empty checked milestone column.

    created_at is informational only and never used for filtering.
    """
    location: str
    identifier: str
    category: str
    created_at: datetime | None
    missing: tuple[str, ...]
    row_number: int = 0

    @property
    def missing_label(self) -> str:
        return ", ".join(self.missing)
