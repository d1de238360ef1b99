from __future__ import annotations

import math
import numbers
import warnings
from datetime import date, datetime, time, timedelta
from typing import Any

import numpy as np
import pandas as pd

"""Cell normalization for raw worksheet values.

Raw cells arrive as numbers (Excel date serials), native dates, strings or
empty markers (None / NaN / NaT). Every function here is total: an unusable
cell becomes None, never an exception, so one bad cell cannot abort a file.

Two emptiness notions coexist on purpose:
- date parsing treats zero-like input (0, "", None, NaN) as absent
- is_empty() treats only None / NaN / blank strings as empty; 0 is a value
"""

__all__ = [
    "EXCEL_EPOCH_OFFSET_DAYS",
    "normalize_date",
    "normalize_text",
    "is_empty",
    "is_blank_date",
    "calendar_day",
    "as_datetime",
]

# Excel serial day 25569 == 1970-01-01
EXCEL_EPOCH_OFFSET_DAYS = 25569
_MS_PER_DAY = 86400 * 1000
_UNIX_EPOCH = datetime(1970, 1, 1)
# pandas resolves these against the current clock
_RELATIVE_KEYWORDS = frozenset({"now", "today"})


def _is_missing_scalar(value: Any) -> bool:
    return value is None or (pd.api.types.is_scalar(value) and bool(pd.isna(value)))


def is_blank_date(value: Any) -> bool:
    """Zero-like input that date parsing treats as absent (not counted as a parse failure)."""
    if _is_missing_scalar(value):
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, numbers.Number):
        return value == 0
    if isinstance(value, str):
        return value == ""
    return False


def _from_native(value: datetime | date | np.datetime64) -> datetime | None:
    if isinstance(value, np.datetime64):
        value = pd.Timestamp(value)
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        # wall clock kept as-is, no timezone conversion
        return value.replace(tzinfo=None) if value.tzinfo is not None else value
    return datetime.combine(value, time())


def _from_serial(value: float) -> datetime | None:
    if not math.isfinite(value):
        return None
    millis = (value - EXCEL_EPOCH_OFFSET_DAYS) * _MS_PER_DAY
    try:
        # ミリ秒未満は切り捨て
        return _UNIX_EPOCH + timedelta(milliseconds=int(millis))
    except OverflowError:
        return None


def _from_string(value: str) -> datetime | None:
    text = value.strip()
    if not text or text.lower() in _RELATIVE_KEYWORDS:
        return None
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is pd.NaT or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_localize(None)
    return parsed.to_pydatetime()


def normalize_date(value: Any) -> datetime | None:
    """Convert a raw cell to a naive datetime, or None when absent/unparseable.

    - zero-like (None, NaN, NaT, 0, "") -> None
    - native date/datetime/Timestamp -> same wall-clock datetime
    - number -> Excel serial: (value - 25569) * 86400 * 1000 ms since 1970-01-01
    - string -> general date-string parsing (pandas)
    - anything else -> None
    """
    if is_blank_date(value) or isinstance(value, bool):
        return None
    if isinstance(value, (datetime, date, np.datetime64)):
        return _from_native(value)
    if isinstance(value, numbers.Real):
        return _from_serial(float(value))
    if isinstance(value, str):
        return _from_string(value)
    return None


def normalize_text(value: Any, *, upper: bool = True) -> str:
    """Trimmed text form of a cell ('' for zero-like input).

    Integral floats (pandas turns integer columns with gaps into float) are
    rendered without the trailing '.0'.
    """
    if is_blank_date(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        text = str(int(value))
    else:
        text = str(value).strip()
    return text.upper() if upper else text


def is_empty(value: Any) -> bool:
    """Emptiness for the missing-milestone check: None, NaN or blank string.

    A numeric zero is NOT empty here.
    """
    if _is_missing_scalar(value):
        return True
    return str(value).strip() == ""


def calendar_day(value: datetime) -> date:
    return value.date()


def as_datetime(value: date | datetime) -> datetime:
    """Promote a date to midnight of that day; datetimes pass through."""
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())
