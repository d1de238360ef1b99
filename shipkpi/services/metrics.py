from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime

from ..models.bucket import Bucket
from ..models.record import METRICS, Metric, MetricRow, ShipmentRecord

"""Metric calculation and bucket classification.

hours = (end - start) / 3,600,000 ms, signed. Negative deltas are data-quality
signals and are kept. A record contributes to a metric only when both of the
metric's endpoints are present.

Date-range inclusion compares calendar days only, while the delta keeps full
time-of-day precision.
"""

__all__ = [
    "get_metric",
    "compute_delta",
    "classify",
    "build_metric_rows",
    "bucketize",
    "in_date_range",
    "filter_by_date_range",
]

_MS_PER_HOUR = 1000 * 60 * 60


def get_metric(key: str) -> Metric:
    try:
        return METRICS[key]
    except KeyError as e:
        raise KeyError(f"unknown metric '{key}' (known: {', '.join(METRICS)})") from e


def compute_delta(record: ShipmentRecord, metric: Metric) -> float | None:
    """Signed hours between the metric's endpoints, or None if one is absent."""
    start = record.milestone(metric.start_field)
    end = record.milestone(metric.end_field)
    if start is None or end is None:
        return None
    return (end - start).total_seconds() * 1000 / _MS_PER_HOUR


def classify(hours: float) -> Bucket:
    return Bucket.for_hours(hours)


def build_metric_rows(records: Iterable[ShipmentRecord], metric: Metric) -> list[MetricRow]:
    rows: list[MetricRow] = []
    for record in records:
        hours = compute_delta(record, metric)
        if hours is None:
            continue
        rows.append(
            MetricRow(
                location=record.location,
                identifier=record.identifier,
                category=record.category,
                start=record.milestone(metric.start_field),  # type: ignore[arg-type]
                end=record.milestone(metric.end_field),  # type: ignore[arg-type]
                hours=hours,
                row_number=record.row_number,
            )
        )
    return rows


def bucketize(rows: Iterable[MetricRow]) -> dict[Bucket, list[MetricRow]]:
    """Group rows per bucket; every bucket key is present, in bucket order."""
    grouped: dict[Bucket, list[MetricRow]] = {bucket: [] for bucket in Bucket}
    for row in rows:
        grouped[classify(row.hours)].append(row)
    return grouped


def in_date_range(value: datetime, date_from: date | None, date_to: date | None) -> bool:
    """Inclusive calendar-day comparison; time of day is ignored."""
    day = value.date()
    if date_from is not None and day < _day(date_from):
        return False
    if date_to is not None and day > _day(date_to):
        return False
    return True


def _day(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def filter_by_date_range(
    rows: Sequence[MetricRow], date_from: date | None, date_to: date | None
) -> list[MetricRow]:
    """Keep rows whose start timestamp falls inside the inclusive day range."""
    return [r for r in rows if in_date_range(r.start, date_from, date_to)]
