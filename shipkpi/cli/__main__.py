from __future__ import annotations

import argparse
import sys
import time
from datetime import date
from pathlib import Path

from shipkpi.config.loader import DEFAULT_CONFIG_PATH, ConfigError, DashboardConfig, default_config, load_config
from shipkpi.excel.reader import WorkbookFormatError
from shipkpi.excel.writer import (
    bucket_export_name,
    export_bucket_rows,
    export_metric_rows,
    export_missing_milestones,
    export_status_flags,
    export_summary,
)
from shipkpi.logging.init import log_summary, set_debug, setup_logging
from shipkpi.models.record import MILESTONE_LABELS
from shipkpi.models.source_variant import SourceVariant
from shipkpi.services.session import VIEWS, DashboardSession
from shipkpi.services.summary import render_summary_line
from shipkpi.services.views import AVERAGE_METRICS, BucketView

"""CLI entrypoint.

Loads one or more shipment workbooks, prints the key figures of one
dashboard view through the labeled logger, optionally exports the view to
.xlsx and ends with the SUMMARY line. Nothing is kept between runs.

Exit codes:
- 0: success (also when the workbook holds no qualifying rows)
- 1: fatal (configuration error, unsupported threshold, rejected workbook, unknown slot)
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
FIRST_THRESHOLD = "first"


def _iso_date(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{text}'") from e


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="shipkpi", description="Shipment milestone KPI dashboard (headless)")
    p.add_argument("files", nargs="+", type=Path, help=".xlsx workbook(s) to load")
    p.add_argument("--variant", choices=[v.value for v in SourceVariant], help="Source layout (default: from file name)")
    p.add_argument("--slot", help="Slot to show when several sources are loaded")
    p.add_argument("--view", choices=VIEWS, default="driver", help="Dashboard view")
    p.add_argument("--metric", choices=AVERAGE_METRICS, help="Limit the average view to one metric")
    p.add_argument("--location", default="", help="Location code filter (default: ALL)")
    p.add_argument("--category", default="", help="Category filter, e.g. T01 (default: ALL)")
    p.add_argument("--from", dest="date_from", type=_iso_date, help="Average view: first arrival day")
    p.add_argument("--to", dest="date_to", type=_iso_date, help="Average view: last arrival day")
    p.add_argument(
        "--threshold",
        nargs="?",
        type=float,
        const=FIRST_THRESHOLD,
        help="Average view: share of rows below N hours; N must be one of the configured thresholds (bare flag: the first)",
    )
    p.add_argument("--export", type=Path, help="Write the view to .xlsx files in this directory")
    p.add_argument("--config", type=Path, help=f"YAML config (default: {DEFAULT_CONFIG_PATH} if present)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _load_cli_config(path: Path | None) -> DashboardConfig:
    # 明示指定なしで既定ファイルも無ければ既定値で動かす
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return default_config()
        path = DEFAULT_CONFIG_PATH
    return load_config(path)


def _resolve_threshold(value: float | str | None, cfg: DashboardConfig) -> float | None:
    if value == FIRST_THRESHOLD:
        return cfg.thresholds[0]
    if value is not None and value not in cfg.thresholds:
        choices = ", ".join(f"{t:g}" for t in cfg.thresholds)
        raise ValueError(f"unsupported threshold: {value:g} (choices: {choices})")
    return value


def _apply_filters(session: DashboardSession, args: argparse.Namespace) -> None:
    state = session.view_state(args.view)
    if args.location:
        state = state.with_dimension(args.location)
    if args.category:
        state = state.with_category(args.category)
    if args.view == "average" and (args.date_from or args.date_to):
        state = state.with_date_range(args.date_from or state.date_from, args.date_to or state.date_to)
    session.set_view_state(args.view, state)


def _report_bucket_view(logger, view_name: str, view: BucketView, export_dir: Path | None) -> None:
    logger.info(f"view={view_name} metric={view.metric.label} total={view.total}")
    for bucket, count in view.counts.items():
        logger.info(f"  {bucket.label}: {count}")
    if export_dir is None:
        return
    start_label = MILESTONE_LABELS[view.metric.start_field]
    end_label = MILESTONE_LABELS[view.metric.end_field]
    for bucket, rows in view.rows.items():
        if not rows:
            continue
        path = export_bucket_rows(
            rows, bucket_export_name(bucket), export_dir, start_label=start_label, end_label=end_label
        )
        logger.info(f"exported {path}")


def _report_average_view(logger, session: DashboardSession, args: argparse.Namespace) -> None:
    state = session.view_state("average")
    average = session.average_view(threshold=args.threshold)
    logger.info(f"view=average from={state.date_from} to={state.date_to}")
    keys = [args.metric] if args.metric else list(AVERAGE_METRICS)
    for key in keys:
        mv = average.metrics[key]
        logger.info(f"{mv.metric.label}: mean={mv.overall_mean:.2f}h count={mv.count}")
        for location, mean, count in mv.chart:
            logger.info(f"  {location}: mean={mean:.2f}h count={count}")
        if mv.shares is not None:
            for share in mv.shares:
                logger.info(
                    f"  {share.dimension} <{args.threshold:g}h: {share.within}/{share.count} ({share.percentage:.2f}%)"
                )
        if args.export is not None and mv.rows:
            logger.info(f"exported {export_metric_rows(mv.rows, mv.metric.label, args.export)}")
            logger.info(f"exported {export_summary(mv.rows, mv.metric.label, args.export)}")


def _report_missing_view(logger, session: DashboardSession, export_dir: Path | None) -> None:
    view = session.missing_view()
    logger.info(
        f"view=missing status_flag_n={view.status_count} "
        f"missing_milestones={view.missing_count} total_issues={view.total_issues}"
    )
    if export_dir is None:
        return
    # ページングなしの全件を書き出す
    if view.status_rows:
        logger.info(f"exported {export_status_flags(view.status_rows, export_dir)}")
    if view.missing_rows:
        logger.info(f"exported {export_missing_milestones(view.missing_rows, export_dir)}")


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # 空リスト [] の場合に sys.argv[1:] が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug()
        logger.debug("debug mode enabled")

    try:
        cfg = _load_cli_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        args.threshold = _resolve_threshold(args.threshold, cfg)
    except ValueError as e:
        logger.error(f"threshold: {e}")
        return EXIT_FATAL

    session = DashboardSession(cfg)
    variant = SourceVariant.parse(args.variant) if args.variant else None
    started = time.perf_counter()
    try:
        if len(args.files) > 1:
            session.load_many(args.files, variant=variant)
        else:
            session.load(args.files[0], variant=variant)
    except WorkbookFormatError as e:
        logger.error(f"workbook: {e}")
        return EXIT_FATAL

    if args.slot:
        try:
            session.switch(args.slot)
        except KeyError as e:
            logger.error(f"slot: {e.args[0]}")
            return EXIT_FATAL

    source = session.active
    assert source is not None
    _apply_filters(session, args)

    if args.view == "missing":
        _report_missing_view(logger, session, args.export)
    elif not session.has_data:
        logger.info("no data: no qualifying rows in the loaded workbook")
    elif args.view == "average":
        _report_average_view(logger, session, args)
    else:
        _report_bucket_view(logger, args.view, session.bucket_view(args.view), args.export)

    summary_line = render_summary_line(source.extraction.stats, round(time.perf_counter() - started, 3))
    # log_summary が "SUMMARY " を付与するので除去して渡す
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
