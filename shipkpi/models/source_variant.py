from __future__ import annotations

from enum import Enum

"""SourceVariant enum for the two spreadsheet layouts the dashboard accepts.

The secondary source ships one column less than the primary one (the status
flag column G). Rows from it are aligned by inserting a placeholder cell at the
pivot position before any positional lookup.
"""

__all__ = [
    "SourceVariant",
    "DEFAULT_SECONDARY_MARKER",
]

DEFAULT_SECONDARY_MARKER = "temu"


class SourceVariant(Enum):
    """Column layout convention of an uploaded workbook.

    - PRIMARY: reference layout, all positional indices apply as-is
    - SECONDARY: layout lacking the status column; aligned at ingestion
    """
    PRIMARY = "primary"
    SECONDARY = "secondary"

    @classmethod
    def parse(cls, text: str) -> SourceVariant:
        """Parse a user supplied variant name (case-insensitive)."""
        try:
            return cls(text.strip().lower())
        except ValueError as e:
            choices = ", ".join(v.value for v in cls)
            raise ValueError(f"unknown source variant '{text}' (expected one of: {choices})") from e

    @classmethod
    def from_file_name(cls, file_name: str, marker: str = DEFAULT_SECONDARY_MARKER) -> SourceVariant:
        """Guess the variant from the uploaded file name.

        ファイル名にマーカー文字列 (既定: temu) を含む場合は SECONDARY。
        """
        if marker and marker.lower() in file_name.lower():
            return cls.SECONDARY
        return cls.PRIMARY
