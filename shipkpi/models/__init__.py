"""Domain models for the shipment KPI dashboard.

This package contains the value types passed between pipeline stages:
source variant, extracted records, metric rows, buckets and view state.
"""

from .bucket import Bucket
from .extraction_result import ExtractionResult, ExtractionStats
from .filter_state import ALL, FilterState, InvalidFilterError, SortDirection, ViewPage
from .record import (
    METRICS,
    Metric,
    MetricRow,
    MissingMilestoneEntry,
    ShipmentRecord,
    StatusFlagEntry,
)
from .source_variant import SourceVariant

__all__ = [
    # Layout
    "SourceVariant",
    # Records
    "ShipmentRecord",
    "Metric",
    "METRICS",
    "MetricRow",
    "StatusFlagEntry",
    "MissingMilestoneEntry",
    "Bucket",
    # Extraction
    "ExtractionResult",
    "ExtractionStats",
    # View state
    "ALL",
    "FilterState",
    "SortDirection",
    "ViewPage",
    "InvalidFilterError",
]
