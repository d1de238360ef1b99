from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path

from ..config.loader import DashboardConfig, default_config
from ..excel.reader import RawGrid, read_source
from ..models.bucket import Bucket
from ..models.extraction_result import ExtractionResult
from ..models.filter_state import FilterState, InvalidFilterError
from ..models.record import ShipmentRecord
from ..models.source_variant import SourceVariant
from .extractor import (
    available_categories,
    available_locations,
    default_date_range,
    extract_records,
)
from .progress import ProgressTracker
from .quality import DataQualityReport, check_data_quality
from .views import (
    AVERAGE_METRICS,
    BUCKET_VIEWS,
    AverageView,
    BucketView,
    MissingDataView,
    build_average_view,
    build_bucket_view,
    build_missing_view,
)

"""Dashboard session: loaded data-source slots plus per-view filter state.

A session holds zero or more loaded sources keyed by slot name (by default the
variant name, so one primary and one secondary source can coexist) and one
active slot. Loading or switching resets every view and table FilterState.
A rejected workbook leaves the session exactly as it was.
"""

__all__ = [
    "VIEWS",
    "MISSING_TABLES",
    "LoadedSource",
    "DashboardSession",
]

logger = logging.getLogger(__name__)

VIEWS = ("driver", "warehouse", "average", "missing")
MISSING_TABLES = ("status", "milestones")


@dataclass(frozen=True)
class LoadedSource:
    """One ingested workbook with its derived record set."""
    slot: str
    path: Path
    variant: SourceVariant
    grid: RawGrid
    extraction: ExtractionResult
    quality: DataQualityReport
    elapsed_seconds: float

    @property
    def records(self) -> tuple[ShipmentRecord, ...]:
        return self.extraction.records


class DashboardSession:
    """In-memory host for the four dashboard views."""

    def __init__(self, config: DashboardConfig | None = None) -> None:
        self.config = config or default_config()
        self._sources: dict[str, LoadedSource] = {}
        self._active: str | None = None
        self._view_states: dict[str, FilterState] = {}
        self._table_states: dict[tuple[str, object], FilterState] = {}
        self._reset_states()

    # ------------------------------------------------------------------
    # sources
    # ------------------------------------------------------------------
    @property
    def slots(self) -> list[str]:
        return list(self._sources)

    @property
    def active(self) -> LoadedSource | None:
        return self._sources.get(self._active) if self._active else None

    @property
    def records(self) -> tuple[ShipmentRecord, ...]:
        source = self.active
        return source.records if source else ()

    @property
    def has_data(self) -> bool:
        return bool(self.records)

    def load(
        self,
        path: Path,
        slot: str | None = None,
        variant: SourceVariant | None = None,
    ) -> LoadedSource:
        """Ingest a workbook into a slot and make it active.

        Raises:
            WorkbookFormatError: file rejected; session state is unchanged
        """
        started = time.perf_counter()
        grid, resolved = read_source(path, variant, marker=self.config.secondary_marker)
        extraction = extract_records(grid, resolved, self.config.floor_date)
        quality = check_data_quality(
            grid,
            resolved,
            self.config.floor_date,
            status_column=self.config.status_column,
            require_consigned=self.config.missing_milestones.require_consigned,
            locations=self.config.missing_milestones.locations or None,
        )
        source = LoadedSource(
            slot=slot or resolved.value,
            path=path,
            variant=resolved,
            grid=grid,
            extraction=extraction,
            quality=quality,
            elapsed_seconds=time.perf_counter() - started,
        )
        replaced = self._sources.get(source.slot)
        if replaced is not None and replaced.path != path:
            logger.warning("slot %s replaced: %s -> %s", source.slot, replaced.path.name, path.name)
        self._sources[source.slot] = source
        self._active = source.slot
        self._reset_states()
        logger.info(
            "loaded %s slot=%s variant=%s records=%d",
            path.name,
            source.slot,
            resolved.value,
            extraction.stats.records,
        )
        if extraction.is_empty:
            logger.info("no qualifying rows in %s", path.name)
        return source

    def load_many(
        self, paths: Sequence[Path], variant: SourceVariant | None = None
    ) -> list[LoadedSource]:
        """Load several sources (slot per variant); the last one stays active.

        Two sources of the same variant share a slot: the later one replaces
        the earlier (logged as a warning).
        """
        loaded: list[LoadedSource] = []
        with ProgressTracker(len(paths)) as progress:
            for path in paths:
                progress.start_file(path)
                source = self.load(path, variant=variant)
                progress.finish_file(records=source.extraction.stats.records)
                loaded.append(source)
        return loaded

    def switch(self, slot: str) -> LoadedSource:
        if slot not in self._sources:
            raise KeyError(f"no source loaded in slot '{slot}' (loaded: {', '.join(self._sources) or '-'})")
        self._active = slot
        self._reset_states()
        return self._sources[slot]

    # ------------------------------------------------------------------
    # filter state
    # ------------------------------------------------------------------
    def _reset_states(self) -> None:
        sizes = self.config.page_sizes
        self._view_states = {view: FilterState(page_size=sizes.for_view(view)) for view in VIEWS}
        self._table_states = {}
        date_from, date_to = default_date_range(self.records, self.config.floor_date)
        self._view_states["average"] = self._view_states["average"].with_date_range(date_from, date_to)

    def view_state(self, view: str) -> FilterState:
        return self._view_states[view]

    def set_view_state(self, view: str, state: FilterState) -> None:
        """Replace a view-level state; its tables go back to page 1."""
        if view not in self._view_states:
            raise KeyError(f"unknown view: {view}")
        self._view_states[view] = state
        for key, table in list(self._table_states.items()):
            if key[0] == view and table.page != 1:
                self._table_states[key] = table.with_page(1)

    def table_state(self, view: str, table: object) -> FilterState:
        return self._table_states.get(
            (view, table), FilterState(page_size=self._view_states[view].page_size)
        )

    def set_table_state(self, view: str, table: object, state: FilterState) -> None:
        if view not in self._view_states:
            raise KeyError(f"unknown view: {view}")
        self._table_states[(view, table)] = state

    def locations(self) -> list[str]:
        return available_locations(self.records, self.config.preferred_locations)

    def categories(self) -> list[str]:
        return available_categories(self.records)

    def default_date_range(self, today: date | None = None) -> tuple[date, date]:
        return default_date_range(self.records, self.config.floor_date, today)

    # ------------------------------------------------------------------
    # views
    # ------------------------------------------------------------------
    def bucket_view(self, view: str) -> BucketView:
        if view not in BUCKET_VIEWS:
            raise KeyError(f"not a bucket view: {view}")
        tables = {bucket: self.table_state(view, bucket) for bucket in Bucket}
        return build_bucket_view(self.records, BUCKET_VIEWS[view], self._view_states[view], tables)

    def driver_view(self) -> BucketView:
        return self.bucket_view("driver")

    def warehouse_view(self) -> BucketView:
        return self.bucket_view("warehouse")

    @property
    def threshold_options(self) -> tuple[float, ...]:
        return self.config.thresholds

    def average_view(self, threshold: float | None = None) -> AverageView:
        """Average view; with a threshold (one of config.thresholds) the per-location shares are filled in.

        Raises:
            InvalidFilterError: threshold is not a configured choice
        """
        if threshold is not None and threshold not in self.config.thresholds:
            choices = ", ".join(f"{t:g}" for t in self.config.thresholds)
            raise InvalidFilterError(f"unsupported threshold: {threshold:g} (choices: {choices})")
        tables = {key: self.table_state("average", key) for key in AVERAGE_METRICS}
        return build_average_view(
            self.records, self._view_states["average"], tables, threshold=threshold
        )

    def missing_view(self) -> MissingDataView:
        view = self._view_states["missing"]
        source = self.active
        report = source.quality if source else DataQualityReport((), ())
        status_state = replace(
            self.table_state("missing", "status"), dimension=view.dimension, category=view.category
        )
        milestone_state = replace(self.table_state("missing", "milestones"), dimension=view.dimension)
        return build_missing_view(report, status_state, milestone_state)
