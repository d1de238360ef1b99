from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from shipkpi.config.loader import ConfigError, default_config, load_config

FULL_CONFIG = """floor_date: "2025-08-01"
secondary_marker: TEMU
status_column: 7
preferred_locations: [lax, ord]
page_sizes:
  driver: 25
  missing: 50
missing_milestones:
  require_consigned: true
  locations: [ord, jfk]
thresholds: [24, 48]
"""


@pytest.fixture()
def write_config(temp_workdir: Path):
    def _write(text: str) -> Path:
        cfg = temp_workdir / "config" / "dashboard.yml"
        cfg.write_text(text, encoding="utf-8")
        return cfg
    return _write


def test_defaults():
    cfg = default_config()
    assert cfg.floor_date == date(2025, 7, 1)
    assert cfg.secondary_marker == "temu"
    assert cfg.status_column == 6
    assert cfg.preferred_locations == ("ORD", "LAX", "JFK", "DFW", "MIA", "SFO")
    assert (cfg.page_sizes.driver, cfg.page_sizes.warehouse, cfg.page_sizes.missing) == (10, 30, 30)
    assert cfg.missing_milestones.require_consigned is False
    assert cfg.missing_milestones.locations == ()
    assert cfg.thresholds == (48, 72)


def test_load_full_config(write_config):
    cfg = load_config(write_config(FULL_CONFIG))
    assert cfg.floor_date == date(2025, 8, 1)
    assert cfg.secondary_marker == "temu"
    assert cfg.status_column == 7
    assert cfg.preferred_locations == ("LAX", "ORD")
    assert cfg.page_sizes.driver == 25
    assert cfg.page_sizes.warehouse == 30
    assert cfg.page_sizes.for_view("missing") == 50
    assert cfg.missing_milestones.require_consigned is True
    assert cfg.missing_milestones.locations == ("ORD", "JFK")
    assert cfg.thresholds == (24, 48)


def test_empty_file_gives_defaults(write_config):
    assert load_config(write_config("")) == default_config()


def test_unquoted_yaml_date_is_accepted(write_config):
    cfg = load_config(write_config("floor_date: 2025-09-01\n"))
    assert cfg.floor_date == date(2025, 9, 1)


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "nope.yml")


def test_invalid_yaml(write_config):
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(write_config("page_sizes: [unclosed\n"))


@pytest.mark.parametrize(
    "text",
    [
        "status_column: 8\n",
        "page_sizes:\n  driver: 15\n",
        "extra_field: 1\n",
        "floor_date: \"07/01/2025\"\n",
        "missing_milestones:\n  require_consigned: maybe\n",
        "- just\n- a list\n",
    ],
)
def test_schema_violations(write_config, text):
    with pytest.raises(ConfigError) as e:
        load_config(write_config(text))
    assert "config validation failed" in str(e.value)


def test_impossible_calendar_date(write_config):
    with pytest.raises(ConfigError, match="floor_date"):
        load_config(write_config('floor_date: "2025-02-30"\n'))
