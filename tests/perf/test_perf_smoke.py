from __future__ import annotations

import time
from datetime import datetime, timedelta

from conftest import make_grid, make_row
from shipkpi.models.filter_state import FilterState
from shipkpi.services.extractor import extract_records
from shipkpi.services.quality import check_data_quality
from shipkpi.services.views import build_average_view, build_bucket_view

"""Performance smoke test: in-memory pipeline over a synthetic grid.

Lenient wall-clock bound; fails on accidental quadratic work.
"""

ROWS = 20_000


def _grid():
    base = datetime(2025, 7, 2)
    rows = []
    for i in range(ROWS):
        arrival = base + timedelta(hours=i % 500)
        rows.append(
            make_row(
                location=("ORD", "LAX", "JFK", "DFW")[i % 4],
                identifier=f"SHP{i:07d}",
                category=("T01", "T86")[i % 2],
                arrival=arrival,
                warehouse_arrival=arrival + timedelta(hours=(i % 100) - 10),
                release=arrival + timedelta(hours=i % 90),
                consigned=arrival + timedelta(hours=i % 120),
                handover=arrival + timedelta(hours=i % 150),
            )
        )
    return make_grid(*rows)


def test_pipeline_smoke():
    grid = _grid()
    start = time.perf_counter()
    records = extract_records(grid).records
    check_data_quality(grid)
    state = FilterState(page_size=100).with_dimension("ORD").toggle_sort("hours")
    driver = build_bucket_view(records, "ata_to_warehouse", state)
    average = build_average_view(records, threshold=48)
    elapsed = time.perf_counter() - start

    assert len(records) == ROWS
    assert driver.total == ROWS // 4
    assert average.metrics["ata_to_released"].count == ROWS
    assert elapsed < 30, f"pipeline too slow: {elapsed:.3f}s"
    throughput = ROWS / elapsed
    assert throughput > 500
