from __future__ import annotations

import math
from enum import Enum

"""Duration buckets for delta-hours classification.

The six buckets partition the real line without gaps or overlaps:
(-inf, 0), [0, 12), [12, 24), [24, 48), [48, 72), [72, +inf).
"""

__all__ = [
    "Bucket",
]


class Bucket(Enum):
    """Ordered duration bucket. Iteration order is ascending by lower bound."""
    LESS_THAN_ZERO = "less_than_zero"
    ZERO_TO_12 = "zero_to_12"
    BETWEEN_12_AND_24 = "between_12_and_24"
    BETWEEN_24_AND_48 = "between_24_and_48"
    BETWEEN_48_AND_72 = "between_48_and_72"
    MORE_THAN_72 = "more_than_72"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def lower(self) -> float:
        return _BOUNDS[self][0]

    @property
    def upper(self) -> float:
        return _BOUNDS[self][1]

    def contains(self, hours: float) -> bool:
        """Half-open membership test: lower <= hours < upper."""
        return self.lower <= hours < self.upper

    @classmethod
    def for_hours(cls, hours: float) -> Bucket:
        """Classify a delta in hours into exactly one bucket.

        Raises:
            ValueError: if hours is NaN (no bucket can hold it)
        """
        if math.isnan(hours):
            raise ValueError("cannot classify NaN hours")
        if hours < 0:
            return cls.LESS_THAN_ZERO
        if hours < 12:
            return cls.ZERO_TO_12
        if hours < 24:
            return cls.BETWEEN_12_AND_24
        if hours < 48:
            return cls.BETWEEN_24_AND_48
        if hours < 72:
            return cls.BETWEEN_48_AND_72
        return cls.MORE_THAN_72


_BOUNDS: dict[Bucket, tuple[float, float]] = {
    Bucket.LESS_THAN_ZERO: (-math.inf, 0.0),
    Bucket.ZERO_TO_12: (0.0, 12.0),
    Bucket.BETWEEN_12_AND_24: (12.0, 24.0),
    Bucket.BETWEEN_24_AND_48: (24.0, 48.0),
    Bucket.BETWEEN_48_AND_72: (48.0, 72.0),
    Bucket.MORE_THAN_72: (72.0, math.inf),
}

_LABELS: dict[Bucket, str] = {
    Bucket.LESS_THAN_ZERO: "<0h",
    Bucket.ZERO_TO_12: "0-12h",
    Bucket.BETWEEN_12_AND_24: "12-24h",
    Bucket.BETWEEN_24_AND_48: "24-48h",
    Bucket.BETWEEN_48_AND_72: "48-72h",
    Bucket.MORE_THAN_72: ">72h",
}
