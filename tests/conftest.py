# Shared pytest fixtures
from __future__ import annotations

import logging
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from shipkpi.logging.init import reset_logging

TITLE_ROW = ["Shipment Milestone Report"]
HEADER_ROW = [
    "Category", "POE", "Identifier", "Created", "Carrier", "ATA Date", "Status", "Remarks",
    "Arrived at Warehouse", "Pieces", "Release Date", "Milestone L", "Milestone M",
    "Custom Final Release Date", "Consigned to Final Mile Carrier", "Handover Time",
]


def make_row(
    *,
    category: Any = "T01",
    location: Any = "ORD",
    identifier: Any = "SHP0000001",
    created: Any = datetime(2025, 7, 2, 8, 0),
    arrival: Any = None,
    status: Any = "Y",
    warehouse_arrival: Any = None,
    release: Any = None,
    milestone_l: Any = None,
    milestone_m: Any = None,
    final_release: Any = None,
    consigned: Any = None,
    handover: Any = None,
) -> list[Any]:
    """One data row in the primary layout (16 columns, A..P)."""
    return [
        category, location, identifier, created, "CARRIER", arrival, status, None,
        warehouse_arrival, 1, release, milestone_l, milestone_m, final_release, consigned, handover,
    ]


def to_secondary(row: list[Any]) -> list[Any]:
    """Drop the status column G, as the secondary source ships it."""
    return row[:6] + row[7:]


def make_grid(*rows: list[Any]) -> list[list[Any]]:
    return [list(TITLE_ROW), list(HEADER_ROW), *[list(r) for r in rows]]


def write_workbook(path: Path, grid: list[list[Any]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(grid).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return path


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "exports").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def propagate_logs(monkeypatch):
    # setup_logging() で propagate=False になるので caplog 用に戻す
    monkeypatch.setattr(logging.getLogger("shipkpi"), "propagate", True)


@pytest.fixture()
def sample_rows() -> list[list[Any]]:
    """Mixed primary rows covering buckets, averages and data-quality issues."""
    return [
        # ATA->Warehouse -6h (negative bucket), full milestones
        make_row(
            location="ORD", identifier="SHP0000001",
            arrival=datetime(2025, 7, 2, 10, 0), warehouse_arrival=datetime(2025, 7, 2, 4, 0),
            release=datetime(2025, 7, 3, 10, 0), milestone_l=datetime(2025, 7, 3, 11, 0),
            milestone_m=datetime(2025, 7, 3, 12, 0), final_release=datetime(2025, 7, 3, 14, 0),
            consigned=datetime(2025, 7, 4, 14, 0), handover=datetime(2025, 7, 4, 20, 0),
        ),
        # ATA->Warehouse 80h (>72h), release 12h after arrival
        make_row(
            location="LAX", identifier="SHP0000002", category="T86",
            arrival=datetime(2025, 7, 5, 0, 0), warehouse_arrival=datetime(2025, 7, 8, 8, 0),
            release=datetime(2025, 7, 5, 12, 0), milestone_l=datetime(2025, 7, 5, 13, 0),
            milestone_m=datetime(2025, 7, 5, 14, 0), final_release=datetime(2025, 7, 5, 18, 0),
            consigned=datetime(2025, 7, 6, 0, 0), handover=datetime(2025, 7, 6, 6, 0),
        ),
        # T01 with every checked milestone empty, status N
        make_row(
            location="ORD", identifier="SHP0000003", status="N",
            arrival=datetime(2025, 7, 6, 0, 0), warehouse_arrival=datetime(2025, 7, 6, 6, 0),
        ),
        # before the floor date -> dropped everywhere
        make_row(
            location="JFK", identifier="SHP0000004", created=datetime(2025, 6, 30, 23, 0),
            arrival=datetime(2025, 6, 30, 23, 0), warehouse_arrival=datetime(2025, 7, 1, 1, 0),
        ),
        # no location -> no record, still visible to the status check
        make_row(location=None, identifier="SHP0000005", status="N"),
    ]


@pytest.fixture()
def sample_grid(sample_rows) -> list[list[Any]]:
    return make_grid(*sample_rows)


@pytest.fixture()
def sample_workbook(temp_workdir: Path, sample_grid) -> Path:
    return write_workbook(temp_workdir / "data" / "shipments.xlsx", sample_grid)
