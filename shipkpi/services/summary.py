from __future__ import annotations

from ..models.extraction_result import ExtractionStats

"""Summary line rendering.

Format:
SUMMARY rows={total} records={n} malformed={m} filtered_by_date={d}
missing_location={l} unparseable_cells={u} elapsed_sec={e}
"""

__all__ = ["format_elapsed", "render_summary_line"]


def format_elapsed(seconds: float) -> str:
    """Integral values without decimals, tiny values without scientific notation."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return str(seconds)


def render_summary_line(stats: ExtractionStats, elapsed_seconds: float) -> str:
    """Render the SUMMARY line for one extraction pass.

    Examples:
        >>> render_summary_line(ExtractionStats(total_rows=3, records=2, missing_location=1), 2.0)
        'SUMMARY rows=3 records=2 malformed=0 filtered_by_date=0 missing_location=1 unparseable_cells=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={stats.total_rows} "
        f"records={stats.records} "
        f"malformed={stats.malformed_rows} "
        f"filtered_by_date={stats.filtered_by_date} "
        f"missing_location={stats.missing_location} "
        f"unparseable_cells={stats.unparseable_cells} "
        f"elapsed_sec={format_elapsed(elapsed_seconds)}"
    )
