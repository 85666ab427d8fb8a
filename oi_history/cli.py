"""
Command line interface: ``oi-history show`` / ``oi-history export``.

Reads a symbol's stored history through :class:`JsonFileSnapshotSource`,
runs the pipeline and either prints the view or writes the CSV export.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo

from rich.console import Console

from . import config
from .config import ColumnVisibility, HistoryViewConfig, TimeFilter
from .errors import InvalidParameter, OIHistoryError
from .filters import available_dates
from .pipeline import OIHistoryPipeline
from .render import render_history
from .sources import JsonFileSnapshotSource
from .summary import summarize_chain

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.FILE_LOG_LEVEL.upper(), logging.INFO),
        format=config.LOG_FORMAT,
        filename=config.LOG_FILE_NAME,
        filemode='a'
    )


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD") from None


def _parse_now(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid timestamp {value!r}, expected ISO-8601") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oi-history",
        description="Filtered, deduplicated OI snapshot history for an index option chain.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("source_dir", type=Path, help="Directory holding <SYMBOL>.json history files")
    common.add_argument("--symbol", default=config.DEFAULT_SYMBOL, type=str.upper,
                        choices=sorted(config.SYMBOL_CONFIGS), help="Index symbol")
    common.add_argument("--date", dest="selected_date", type=_parse_date, default=None,
                        help=f"Restrict to one of the last {config.AVAILABLE_DATE_DAYS} days (YYYY-MM-DD); omit for all time")
    common.add_argument("--time", dest="time_filter", default=TimeFilter.ALL.value,
                        choices=[f.value for f in TimeFilter], help="Recency window")
    common.add_argument("--strikes", dest="strike_breadth", type=int,
                        default=config.DEFAULT_STRIKE_BREADTH,
                        choices=config.STRIKE_BREADTH_CHOICES, help="Strikes around ATM")
    common.add_argument("--lot-size", type=int, default=config.LOT_SIZE, help="Contract lot size")
    common.add_argument("--now", type=_parse_now, default=None,
                        help="Reference time for the recency window (default: current time)")

    show = sub.add_parser("show", parents=[common], help="Print the deduplicated history")
    show.add_argument("--columns", default="oi,volume,iv,ltp",
                      help="Comma separated column groups: oi,oiValue,volume,iv,ltp")

    export = sub.add_parser("export", parents=[common], help="Write the CSV export")
    export.add_argument("--out", type=Path, default=Path("."), help="Output directory")
    return parser


def _view_config(args: argparse.Namespace) -> HistoryViewConfig:
    return HistoryViewConfig.for_symbol(
        args.symbol,
        selected_date=args.selected_date,
        time_filter=args.time_filter,
        strike_breadth=args.strike_breadth,
        lot_size=args.lot_size,
        timezone=config.DISPLAY_TIMEZONE,
    )


def run(args: argparse.Namespace, console: Optional[Console] = None) -> int:
    view = _view_config(args)
    now = args.now or datetime.now(ZoneInfo(view.timezone))
    pipeline = OIHistoryPipeline(view)
    if view.selected_date is not None:
        choices = available_dates(pipeline.local_today(now))
        if view.selected_date not in choices:
            raise InvalidParameter(
                f"date {view.selected_date} is outside the last {len(choices)} days "
                f"({choices[-1]} to {choices[0]})"
            )
    source = JsonFileSnapshotSource(args.source_dir)
    history = source.history(args.symbol)

    if args.command == "export":
        args.out.mkdir(parents=True, exist_ok=True)
        path = args.out / pipeline.export_filename(now)
        path.write_text(pipeline.export_csv(history, now), encoding="utf-8")
        logger.info(f"Exported OI history for {args.symbol} to {path}")
        (console or Console()).print(f"Wrote {path}")
        return 0

    columns = ColumnVisibility.from_names(tuple(c for c in args.columns.split(",") if c.strip()))
    rows = pipeline.build_display_rows(history, now)
    summary = summarize_chain(history[-1] if history else None)
    (console or Console()).print(render_history(args.symbol, summary, rows, columns))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return run(args)
    except OIHistoryError as e:
        logger.error(f"oi-history {args.command} failed: {e}")
        parser.exit(2, f"error: {e}\n")


if __name__ == "__main__":
    sys.exit(main())
