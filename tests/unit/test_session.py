from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

import pytest

from conftest import make_grid, make_row, to_secondary, write_workbook
from shipkpi.config.loader import DashboardConfig, PageSizes
from shipkpi.excel.reader import WorkbookFormatError
from shipkpi.models.bucket import Bucket
from shipkpi.models.filter_state import InvalidFilterError
from shipkpi.models.source_variant import SourceVariant
from shipkpi.services import views as views_mod
from shipkpi.services.session import DashboardSession


def test_empty_session_renders_no_data():
    session = DashboardSession()
    assert session.active is None
    assert not session.has_data
    assert session.driver_view().total == 0
    assert session.missing_view().total_issues == 0
    assert session.locations() == ["ALL"]


def test_load_primary(sample_workbook: Path):
    session = DashboardSession()
    source = session.load(sample_workbook)
    assert source.slot == "primary"
    assert source.variant is SourceVariant.PRIMARY
    assert session.slots == ["primary"]
    assert source.extraction.stats.records == 3
    assert session.driver_view().total == 3
    assert session.warehouse_view().total == 2
    assert session.locations() == ["ALL", "ORD", "LAX"]
    assert session.categories() == ["ALL", "T01", "T86"]


def test_average_view_starts_with_default_date_range(sample_workbook: Path):
    session = DashboardSession()
    session.load(sample_workbook)
    state = session.view_state("average")
    assert (state.date_from, state.date_to) == (date(2025, 7, 1), date(2025, 7, 6))
    assert session.average_view().metrics["ata_to_released"].count == 2


def test_rejected_workbook_leaves_state_untouched(sample_workbook: Path, temp_workdir: Path):
    session = DashboardSession()
    session.load(sample_workbook)
    session.set_view_state("driver", session.view_state("driver").with_dimension("ORD"))
    broken = temp_workdir / "data" / "broken.xlsx"
    broken.write_bytes(b"garbage")
    with pytest.raises(WorkbookFormatError):
        session.load(broken)
    assert session.active.path == sample_workbook
    assert session.view_state("driver").dimension == "ORD"


def test_slots_and_switch_reset_state(sample_workbook: Path, temp_workdir: Path):
    secondary = write_workbook(
        temp_workdir / "data" / "temu_shipments.xlsx",
        make_grid(
            to_secondary(
                make_row(
                    location="MIA",
                    arrival=datetime(2025, 7, 3, 0, 0),
                    warehouse_arrival=datetime(2025, 7, 3, 18, 0),
                )
            )
        ),
    )
    session = DashboardSession()
    session.load(sample_workbook)
    session.load(secondary)
    assert session.slots == ["primary", "secondary"]
    assert session.active.variant is SourceVariant.SECONDARY
    view = session.driver_view()
    assert view.counts[Bucket.BETWEEN_12_AND_24] == 1

    session.set_view_state("driver", session.view_state("driver").with_dimension("MIA"))
    session.switch("primary")
    assert session.view_state("driver").dimension == "ALL"
    assert session.driver_view().total == 3

    with pytest.raises(KeyError):
        session.switch("nope")


def test_load_many_keeps_last_active(sample_workbook: Path, temp_workdir: Path):
    other = write_workbook(temp_workdir / "data" / "temu.xlsx", make_grid(to_secondary(make_row())))
    session = DashboardSession()
    loaded = session.load_many([sample_workbook, other])
    assert [s.slot for s in loaded] == ["primary", "secondary"]
    assert session.active.slot == "secondary"


def test_page_sizes_from_config(sample_workbook: Path):
    session = DashboardSession(DashboardConfig(page_sizes=PageSizes(driver=50)))
    session.load(sample_workbook)
    assert session.view_state("driver").page_size == 50
    assert session.table_state("driver", Bucket.ZERO_TO_12).page_size == 50
    assert session.view_state("missing").page_size == 30


def test_view_state_change_resets_table_pages(sample_workbook: Path):
    session = DashboardSession()
    session.load(sample_workbook)
    session.set_table_state("driver", Bucket.ZERO_TO_12, session.table_state("driver", Bucket.ZERO_TO_12).with_page(2))
    session.set_view_state("driver", session.view_state("driver").with_category("T01"))
    assert session.table_state("driver", Bucket.ZERO_TO_12).page == 1


def test_missing_view_uses_view_filters(sample_workbook: Path):
    session = DashboardSession()
    session.load(sample_workbook)
    assert session.missing_view().total_issues == 3
    session.set_view_state("missing", session.view_state("missing").with_dimension("ORD"))
    view = session.missing_view()
    assert (view.status_count, view.missing_count) == (1, 1)


def test_same_variant_replaces_slot_with_warning(sample_workbook: Path, temp_workdir: Path, caplog, propagate_logs):
    other = write_workbook(temp_workdir / "data" / "second.xlsx", make_grid(make_row()))
    session = DashboardSession()
    with caplog.at_level(logging.WARNING, logger="shipkpi"):
        loaded = session.load_many([sample_workbook, other])
    assert [s.slot for s in loaded] == ["primary", "primary"]
    assert session.slots == ["primary"]
    assert session.active.path == other
    assert any(
        "slot primary replaced" in r.getMessage() and "second.xlsx" in r.getMessage() for r in caplog.records
    )


def test_reloading_same_file_does_not_warn(sample_workbook: Path, caplog, propagate_logs):
    session = DashboardSession()
    with caplog.at_level(logging.WARNING, logger="shipkpi"):
        session.load(sample_workbook)
        session.load(sample_workbook)
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


def test_threshold_choices_come_from_config(sample_workbook: Path, monkeypatch):
    seen = []
    original = views_mod.aggregate_within_threshold

    def recording(rows, threshold):
        seen.append(threshold)
        return original(rows, threshold)

    monkeypatch.setattr(views_mod, "aggregate_within_threshold", recording)
    session = DashboardSession(DashboardConfig(thresholds=(24, 96)))
    session.load(sample_workbook)
    assert session.threshold_options == (24, 96)

    view = session.average_view(threshold=24)
    assert set(seen) == {24}
    assert view.threshold == 24
    with pytest.raises(InvalidFilterError, match="choices: 24, 96"):
        session.average_view(threshold=48)
