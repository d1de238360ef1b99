from __future__ import annotations

import statistics
from collections.abc import Sequence
from dataclasses import dataclass

from ..models.record import MetricRow

"""Per-dimension aggregation of metric rows.

Two user-selectable modes:
- mean: count and arithmetic mean per location, sorted by mean (high to low)
- threshold: count and share of rows strictly below a threshold per location
"""

__all__ = [
    "DimensionMean",
    "DimensionShare",
    "aggregate_by_dimension",
    "overall_mean",
    "chart_series",
    "aggregate_within_threshold",
]


@dataclass(frozen=True)
class DimensionMean:
    dimension: str
    mean: float
    count: int


@dataclass(frozen=True)
class DimensionShare:
    dimension: str
    count: int  # rows in group
    within: int  # rows with hours < threshold
    percentage: float  # within / count * 100, two decimals


def _group(rows: Sequence[MetricRow]) -> dict[str, list[float]]:
    groups: dict[str, list[float]] = {}
    for row in rows:
        groups.setdefault(row.location, []).append(row.hours)
    return groups


def aggregate_by_dimension(rows: Sequence[MetricRow]) -> list[DimensionMean]:
    """Mean hours per location, highest mean first (ties keep first-seen order)."""
    result = [
        DimensionMean(dimension=loc, mean=statistics.fmean(values), count=len(values))
        for loc, values in _group(rows).items()
    ]
    return sorted(result, key=lambda g: g.mean, reverse=True)


def overall_mean(rows: Sequence[MetricRow]) -> float:
    """Mean over all rows; 0.0 for an empty set."""
    if not rows:
        return 0.0
    return statistics.fmean(r.hours for r in rows)


def chart_series(rows: Sequence[MetricRow]) -> list[tuple[str, float, int]]:
    """(location, mean rounded to 2 decimals, count) for the KPI chart."""
    return [(g.dimension, round(g.mean, 2), g.count) for g in aggregate_by_dimension(rows)]


def aggregate_within_threshold(rows: Sequence[MetricRow], threshold: float) -> list[DimensionShare]:
    """Per location, how many rows finished strictly below `threshold` hours.

    Sorted by percentage, highest first.
    """
    result = []
    for loc, values in _group(rows).items():
        within = sum(1 for v in values if v < threshold)
        result.append(
            DimensionShare(
                dimension=loc,
                count=len(values),
                within=within,
                percentage=round(within / len(values) * 100, 2),
            )
        )
    return sorted(result, key=lambda s: s.percentage, reverse=True)
