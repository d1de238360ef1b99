from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

import pandas as pd

from shipkpi.models.bucket import Bucket
from shipkpi.models.filter_state import FilterState
from shipkpi.models.record import MetricRow, MissingMilestoneEntry, StatusFlagEntry
from shipkpi.services.query import query
from shipkpi.excel.writer import (
    bucket_export_name,
    export_bucket_rows,
    export_filename,
    export_metric_rows,
    export_missing_milestones,
    export_status_flags,
    export_summary,
    read_export,
    sheet_title,
)

DAY = date(2025, 7, 31)


def _rows() -> list[MetricRow]:
    start = datetime(2025, 7, 2, 10, 0)
    return [
        MetricRow("ORD", "SHP0001", "T01", start, start, -6.0),
        MetricRow("LAX", "00123", "T86", start, start, 1 / 3),
        MetricRow("NA", "SHP0003", "T01", start, start, 80.25),
        MetricRow("ORD", "SHP0004", "T01", start, start, 12.0),
    ]


def test_export_filename():
    assert export_filename("ATA to Released", DAY) == "ATA_to_Released_2025-07-31.xlsx"
    assert export_filename("ATA to Released", DAY, suffix="Summary") == "ATA_to_Released_Summary_2025-07-31.xlsx"


def test_sheet_title_is_excel_safe():
    assert sheet_title("a/b:c") == "abc"
    assert len(sheet_title("x" * 40)) == 31


def test_round_trip_of_a_filtered_page(tmp_path: Path):
    page = query(_rows(), FilterState(page_size=10).toggle_sort("hours"))
    path = export_metric_rows(page.rows, "ATA to Released", tmp_path, DAY)
    assert path.name == "ATA_to_Released_2025-07-31.xlsx"
    assert read_export(path) == [(r.location, r.identifier, r.hours) for r in page.rows]


def test_metric_export_columns(tmp_path: Path):
    path = export_metric_rows(_rows()[:1], "ATA to Handover", tmp_path, DAY)
    df = pd.read_excel(path, engine="openpyxl")
    assert list(df.columns) == [
        "Location", "Identifier", "ATA to Handover (hours)", "ATA to Handover (formatted)",
    ]
    assert df.iloc[0]["ATA to Handover (formatted)"] == "-6.00h"


def test_bucket_export(tmp_path: Path):
    path = export_bucket_rows(
        _rows()[:1],
        bucket_export_name(Bucket.LESS_THAN_ZERO),
        tmp_path,
        start_label="ATA Date (F)",
        end_label="Arrived at Warehouse (I)",
        day=DAY,
    )
    assert path.name == "Negative_Hours_2025-07-31.xlsx"
    df = pd.read_excel(path, engine="openpyxl")
    assert list(df.columns) == [
        "Location", "Identifier", "ATA Date (F)", "Arrived at Warehouse (I)", "Time Diff (hours)", "Category",
    ]
    assert bucket_export_name(Bucket.MORE_THAN_72) == "More_Than_72_Hours"


def test_summary_export_starts_with_all(tmp_path: Path):
    path = export_summary(_rows(), "ATA to Released", tmp_path, DAY)
    df = pd.read_excel(path, engine="openpyxl", keep_default_na=False)
    assert list(df.columns) == ["KPI Type", "Location", "Average Hours", "Record Count"]
    assert df.iloc[0]["Location"] == "ALL"
    assert df.iloc[0]["Record Count"] == 4
    # highest mean first after ALL
    assert list(df["Location"])[1:] == ["NA", "ORD", "LAX"]
    assert df.iloc[2]["Average Hours"] == 3.0


def test_data_quality_exports(tmp_path: Path):
    status = export_status_flags([StatusFlagEntry("ORD", "SHP1", "T01")], tmp_path, DAY)
    missing = export_missing_milestones(
        [MissingMilestoneEntry("ORD", "SHP2", "T01", datetime(2025, 7, 2), ("Handover Time (P)", "Milestone (L)"))],
        tmp_path,
        DAY,
    )
    assert status.name == "Status_Flag_N_2025-07-31.xlsx"
    df = pd.read_excel(missing, engine="openpyxl")
    assert df.iloc[0]["Missing Milestones"] == "Handover Time (P), Milestone (L)"
