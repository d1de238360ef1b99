from __future__ import annotations

import io
from collections.abc import Iterable
from pathlib import Path
from typing import Any, BinaryIO

import pandas as pd
import pandas._libs.parsers as parsers

from ..models.source_variant import SourceVariant

"""Workbook ingestion: first worksheet -> RawGrid.

RawGrid is a list of rows, each a list of raw cell values (float / int / str /
Timestamp / None) addressed positionally. Row 1 is a title row and row 2 the
header row; the extractor skips both.

Only .xlsx containers are accepted. Any failure to open or parse the container
raises WorkbookFormatError and nothing else is touched (no partial state).
"""

__all__ = [
    "IngestError",
    "WorkbookFormatError",
    "SUPPORTED_SUFFIX",
    "RawGrid",
    "read_workbook",
    "read_source",
    "grid_from_frame",
]

SUPPORTED_SUFFIX = ".xlsx"
# Every pandas NA string except "" stays text ("NA", "N/A", "null", ...)
DEFAULT_KEEP_NA_STRINGS = frozenset(parsers.STR_NA_VALUES) - {""}

RawGrid = list[list[Any]]


class IngestError(Exception):
    """Base class for ingestion failures."""


class WorkbookFormatError(IngestError):
    """Raised when the uploaded file is not a readable .xlsx workbook."""


def _na_options(keep_na_strings: Iterable[str] | None) -> tuple[list[str] | None, bool]:
    # pandas 既定の NA 文字列集合から keep_na_strings を除外
    if keep_na_strings is None:
        return None, True
    custom_na = set(parsers.STR_NA_VALUES) - set(keep_na_strings)
    return sorted(custom_na), False


def _check_name(name: str) -> None:
    if Path(name).suffix.lower() != SUPPORTED_SUFFIX:
        raise WorkbookFormatError(f"unsupported file type (expected {SUPPORTED_SUFFIX}): {name}")


def grid_from_frame(df: pd.DataFrame) -> RawGrid:
    """Convert a header-less DataFrame into a RawGrid (NaN/NaT -> None)."""
    frame = df.astype(object).where(df.notna(), None)
    return [list(row) for row in frame.itertuples(index=False, name=None)]


def read_workbook(
    source: Path | str | bytes | BinaryIO,
    *,
    file_name: str | None = None,
    keep_na_strings: Iterable[str] | None = DEFAULT_KEEP_NA_STRINGS,
) -> RawGrid:
    """Read the first worksheet of an .xlsx workbook as a RawGrid.

    Parameters
    ----------
    source: workbook path, raw bytes, or binary file object
    file_name: name used for the .xlsx check when source is not a path
    keep_na_strings: strings that must NOT become NaN. The default keeps
        every pandas NA string except the empty one, so codes such as
        "NA" or "N/A" stay text. None restores pandas' default behaviour.

    Raises
    ------
    WorkbookFormatError: wrong suffix, missing file, or unreadable container
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        _check_name(file_name or path.name)
        if not path.is_file():
            raise WorkbookFormatError(f"file not found: {path}")
        handle: Any = path
    else:
        if file_name is not None:
            _check_name(file_name)
        handle = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source

    na_values, keep_default_na = _na_options(keep_na_strings)
    try:
        xls = pd.ExcelFile(handle, engine="openpyxl")
        if not xls.sheet_names:
            raise WorkbookFormatError(f"workbook has no worksheets: {file_name or source}")
        # ヘッダなしで生読み (1行目タイトル, 2行目ヘッダは抽出側でスキップ)
        df = xls.parse(
            xls.sheet_names[0],
            header=None,
            keep_default_na=keep_default_na,
            na_values=na_values,
        )
    except WorkbookFormatError:
        raise
    except Exception as e:
        raise WorkbookFormatError(f"cannot parse workbook {file_name or source}: {e}") from e
    return grid_from_frame(df)


def read_source(
    path: Path, variant: SourceVariant | None = None, *, marker: str = "temu"
) -> tuple[RawGrid, SourceVariant]:
    """Read a workbook and resolve its source variant.

    When variant is None it is derived from the file name marker. The grid is
    returned raw; alignment happens once, inside extraction.
    """
    resolved = variant or SourceVariant.from_file_name(path.name, marker)
    return read_workbook(path), resolved
