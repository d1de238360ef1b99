from __future__ import annotations

from pathlib import Path

from conftest import make_grid, write_workbook
from shipkpi.cli.__main__ import EXIT_FATAL, EXIT_SUCCESS, main as cli_main

"""Exit code contract.

0: success (including a workbook without qualifying rows)
1: fatal (config error, rejected workbook, unknown slot)
"""


def test_exit_code_values():
    assert EXIT_SUCCESS == 0
    assert EXIT_FATAL == 1


def test_success(sample_workbook: Path, clean_logging):
    assert cli_main([str(sample_workbook)]) == 0


def test_no_data_is_success(temp_workdir: Path, clean_logging, capsys):
    empty = write_workbook(temp_workdir / "data" / "empty.xlsx", make_grid())
    assert cli_main([str(empty)]) == 0
    assert "no data" in capsys.readouterr().out


def test_rejected_workbook_is_fatal(temp_workdir: Path, clean_logging, capsys):
    bad = temp_workdir / "data" / "bad.xlsx"
    bad.write_bytes(b"not a workbook")
    assert cli_main([str(bad)]) == 1
    assert "ERROR workbook:" in capsys.readouterr().out


def test_config_error_is_fatal(sample_workbook: Path, temp_workdir: Path, clean_logging, capsys):
    cfg = temp_workdir / "config" / "dashboard.yml"
    cfg.write_text("status_column: 9\n", encoding="utf-8")
    assert cli_main([str(sample_workbook)]) == 1
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_unknown_slot_is_fatal(sample_workbook: Path, clean_logging):
    assert cli_main([str(sample_workbook), "--slot", "secondary"]) == 1


def test_unconfigured_threshold_is_fatal(sample_workbook: Path, clean_logging, capsys):
    assert cli_main([str(sample_workbook), "--view", "average", "--threshold", "36"]) == 1
    assert "ERROR threshold: unsupported threshold: 36 (choices: 48, 72)" in capsys.readouterr().out
