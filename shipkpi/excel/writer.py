from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.bucket import Bucket
from ..models.record import MetricRow, MissingMilestoneEntry, StatusFlagEntry
from ..services.aggregator import aggregate_by_dimension, overall_mean

"""Export of view row sets to .xlsx (one sheet per export action).

File names follow "<Label_with_underscores>_<YYYY-MM-DD>.xlsx". Hours are
written at full precision next to a formatted column, so re-reading an export
with read_export() yields the exact location / identifier / hours triples.
"""

__all__ = [
    "export_filename",
    "sheet_title",
    "metric_export_frame",
    "export_metric_rows",
    "bucket_export_name",
    "export_bucket_rows",
    "export_summary",
    "export_status_flags",
    "export_missing_milestones",
    "read_export",
]

_MAX_SHEET_TITLE = 31
_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")

_BUCKET_EXPORT_NAMES: dict[Bucket, str] = {
    Bucket.LESS_THAN_ZERO: "Negative_Hours",
    Bucket.ZERO_TO_12: "Zero_To_12_Hours",
    Bucket.BETWEEN_12_AND_24: "12_To_24_Hours",
    Bucket.BETWEEN_24_AND_48: "24_To_48_Hours",
    Bucket.BETWEEN_48_AND_72: "48_To_72_Hours",
    Bucket.MORE_THAN_72: "More_Than_72_Hours",
}


def export_filename(label: str, day: date | None = None, *, suffix: str = "") -> str:
    """'ATA to Released' -> 'ATA_to_Released_2025-07-31.xlsx'."""
    stem = re.sub(r"\s+", "_", label.strip())
    if suffix:
        stem = f"{stem}_{suffix}"
    return f"{stem}_{(day or date.today()).isoformat()}.xlsx"


def sheet_title(name: str) -> str:
    """Excel-safe sheet title (forbidden characters removed, 31 chars max)."""
    cleaned = _INVALID_SHEET_CHARS.sub("", name).strip() or "Sheet1"
    return cleaned[:_MAX_SHEET_TITLE]


def _write(records: Sequence[dict[str, Any]], columns: Sequence[str], sheet: str, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = pd.DataFrame(list(records), columns=list(columns))
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_title(sheet), index=False)
    return path


def metric_export_frame(rows: Iterable[MetricRow], label: str) -> tuple[list[dict[str, Any]], list[str]]:
    columns = ["Location", "Identifier", f"{label} (hours)", f"{label} (formatted)"]
    records = [
        {
            columns[0]: r.location,
            columns[1]: r.identifier,
            columns[2]: r.hours,
            columns[3]: r.formatted,
        }
        for r in rows
    ]
    return records, columns


def export_metric_rows(
    rows: Iterable[MetricRow], label: str, directory: Path, day: date | None = None
) -> Path:
    records, columns = metric_export_frame(rows, label)
    return _write(records, columns, label, directory / export_filename(label, day))


def bucket_export_name(bucket: Bucket) -> str:
    return _BUCKET_EXPORT_NAMES[bucket]


def export_bucket_rows(
    rows: Iterable[MetricRow],
    name: str,
    directory: Path,
    *,
    start_label: str = "Start",
    end_label: str = "End",
    day: date | None = None,
) -> Path:
    """Bucket table export (e.g. 'Negative_Hours', 'More_Than_72_Hours')."""
    columns = ["Location", "Identifier", start_label, end_label, "Time Diff (hours)", "Category"]
    records = [
        {
            "Location": r.location,
            "Identifier": r.identifier,
            start_label: r.start,
            end_label: r.end,
            "Time Diff (hours)": r.hours,
            "Category": r.category,
        }
        for r in rows
    ]
    return _write(records, columns, "Sheet1", directory / export_filename(name, day))


def export_summary(
    rows: Sequence[MetricRow], label: str, directory: Path, day: date | None = None
) -> Path:
    """Per-location mean summary; first line is the overall mean ('ALL')."""
    columns = ["KPI Type", "Location", "Average Hours", "Record Count"]
    records: list[dict[str, Any]] = [
        {
            "KPI Type": "Average KPI (All)",
            "Location": "ALL",
            "Average Hours": round(overall_mean(rows), 2),
            "Record Count": len(rows),
        }
    ]
    for group in aggregate_by_dimension(rows):
        records.append(
            {
                "KPI Type": f"Average KPI ({group.dimension})",
                "Location": group.dimension,
                "Average Hours": round(group.mean, 2),
                "Record Count": group.count,
            }
        )
    return _write(
        records,
        columns,
        f"{label}_Summary",
        directory / export_filename(label, day, suffix="Summary"),
    )


def export_status_flags(
    entries: Iterable[StatusFlagEntry], directory: Path, day: date | None = None
) -> Path:
    columns = ["Location", "Identifier", "Category"]
    records = [
        {"Location": e.location, "Identifier": e.identifier, "Category": e.category}
        for e in entries
    ]
    return _write(records, columns, "Status Flags", directory / export_filename("Status Flag N", day))


def export_missing_milestones(
    entries: Iterable[MissingMilestoneEntry], directory: Path, day: date | None = None
) -> Path:
    columns = ["Location", "Identifier", "Category", "Created", "Missing Milestones"]
    records = [
        {
            "Location": e.location,
            "Identifier": e.identifier,
            "Category": e.category,
            "Created": e.created_at,
            "Missing Milestones": e.missing_label,
        }
        for e in entries
    ]
    return _write(
        records, columns, "Missing Milestones", directory / export_filename("T01 Missing Milestones", day)
    )


def read_export(path: Path) -> list[tuple[str, str, float]]:
    """Read a metric export back as (location, identifier, hours) triples."""
    df = pd.read_excel(
        path,
        engine="openpyxl",
        dtype={"Location": str, "Identifier": str},
        keep_default_na=False,
    )
    hours_col = next(c for c in df.columns if str(c).endswith("(hours)"))
    return [
        (str(loc), str(ident), float(hours))
        for loc, ident, hours in zip(df["Location"], df["Identifier"], df[hours_col], strict=True)
    ]
