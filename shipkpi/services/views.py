from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace

from ..models.bucket import Bucket
from ..models.filter_state import ALL, FilterState, ViewPage
from ..models.record import (
    Metric,
    MetricRow,
    MissingMilestoneEntry,
    ShipmentRecord,
    StatusFlagEntry,
)
from .aggregator import (
    DimensionMean,
    DimensionShare,
    aggregate_by_dimension,
    aggregate_within_threshold,
    chart_series,
    overall_mean,
)
from .metrics import bucketize, build_metric_rows, get_metric
from .quality import DataQualityReport
from .query import apply_filters, query

"""View builders for the dashboard.

- bucket views: driver (ATA to Warehouse) and warehouse (Release to Consigned)
- average view: three arrival-based metrics over an inclusive date range
- missing-data view: status-flag and missing-milestone tables with totals

Each view has a view-level FilterState (location / category / date range) and
one FilterState per table (search, sort, page). Builders are pure functions of
their inputs.
"""

__all__ = [
    "BUCKET_VIEWS",
    "AVERAGE_METRICS",
    "BucketView",
    "AverageMetricView",
    "AverageView",
    "MissingDataView",
    "build_bucket_view",
    "build_average_view",
    "build_missing_view",
]

logger = logging.getLogger(__name__)

BUCKET_VIEWS: dict[str, str] = {
    "driver": "ata_to_warehouse",
    "warehouse": "release_to_consigned",
}
AVERAGE_METRICS = ("ata_to_released", "ata_to_consigned", "ata_to_handover")


@dataclass(frozen=True)
class BucketView:
    metric: Metric
    counts: dict[Bucket, int]
    rows: dict[Bucket, list[MetricRow]]  # filtered by the view state, unpaged
    tables: dict[Bucket, ViewPage]

    @property
    def total(self) -> int:
        return sum(self.counts.values())


@dataclass(frozen=True)
class AverageMetricView:
    metric: Metric
    rows: list[MetricRow]  # filtered by the view state, unpaged
    overall_mean: float
    by_location: list[DimensionMean]
    chart: list[tuple[str, float, int]]
    table: ViewPage
    shares: list[DimensionShare] | None = None  # threshold mode only

    @property
    def count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class AverageView:
    metrics: dict[str, AverageMetricView]
    threshold: float | None = None


@dataclass(frozen=True)
class MissingDataView:
    status_rows: list[StatusFlagEntry]  # filtered, unpaged
    missing_rows: list[MissingMilestoneEntry]
    status_table: ViewPage
    missing_table: ViewPage

    @property
    def status_count(self) -> int:
        return self.status_table.total_count

    @property
    def missing_count(self) -> int:
        return self.missing_table.total_count

    @property
    def total_issues(self) -> int:
        return self.status_count + self.missing_count


def _view_filter(state: FilterState) -> FilterState:
    """View-level part only: dimension, category and date range."""
    return FilterState(
        dimension=state.dimension,
        category=state.category,
        date_from=state.date_from,
        date_to=state.date_to,
        page_size=state.page_size,
    )


def _table_state(tables: Mapping[object, FilterState] | None, key: object, page_size: int) -> FilterState:
    if tables and key in tables:
        return tables[key]
    return FilterState(page_size=page_size)


def build_bucket_view(
    records: Sequence[ShipmentRecord],
    metric: Metric | str,
    view_state: FilterState | None = None,
    table_states: Mapping[Bucket, FilterState] | None = None,
) -> BucketView:
    """Classify one metric into the six buckets after the view filters.

    Bucket counts reflect the location / category selection, table states only
    narrow the table windows.
    """
    m = get_metric(metric) if isinstance(metric, str) else metric
    state = view_state or FilterState()
    rows = apply_filters(build_metric_rows(records, m), _view_filter(state))
    grouped = bucketize(rows)
    tables = {
        bucket: query(bucket_rows, _table_state(table_states, bucket, state.page_size))
        for bucket, bucket_rows in grouped.items()
    }
    counts = {bucket: len(bucket_rows) for bucket, bucket_rows in grouped.items()}
    logger.debug(
        "bucket view metric=%s %s",
        m.key,
        " ".join(f"{b.label}={n}" for b, n in counts.items()),
    )
    return BucketView(metric=m, counts=counts, rows=grouped, tables=tables)


def build_average_view(
    records: Sequence[ShipmentRecord],
    view_state: FilterState | None = None,
    table_states: Mapping[str, FilterState] | None = None,
    *,
    threshold: float | None = None,
) -> AverageView:
    """Average KPIs with the date range applied to the arrival (start) day.

    Args:
        records: extracted records of the active source
        view_state: location / category / inclusive date range
        table_states: metric key -> table FilterState
        threshold: when set, per-location share of rows strictly below it
    """
    state = view_state or FilterState()
    views: dict[str, AverageMetricView] = {}
    for key in AVERAGE_METRICS:
        m = get_metric(key)
        rows = apply_filters(build_metric_rows(records, m), _view_filter(state), date_field="start")
        views[key] = AverageMetricView(
            metric=m,
            rows=rows,
            overall_mean=overall_mean(rows),
            by_location=aggregate_by_dimension(rows),
            chart=chart_series(rows),
            table=query(rows, _table_state(table_states, key, state.page_size)),
            shares=aggregate_within_threshold(rows, threshold) if threshold is not None else None,
        )
    return AverageView(metrics=views, threshold=threshold)


def build_missing_view(
    report: DataQualityReport,
    status_state: FilterState | None = None,
    missing_state: FilterState | None = None,
) -> MissingDataView:
    """Both data-quality tables; the milestone table ignores the category filter."""
    status = status_state or FilterState()
    missing = missing_state or FilterState()
    if missing.category != ALL:
        missing = replace(missing, category=ALL)
    return MissingDataView(
        status_rows=apply_filters(report.status_flags, status),
        missing_rows=apply_filters(report.missing_milestones, missing),
        status_table=query(report.status_flags, status),
        missing_table=query(report.missing_milestones, missing),
    )
