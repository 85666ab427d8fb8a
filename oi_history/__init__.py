"""
Analytics over stored option-chain snapshot histories.

The package filters a history by date and recency, keeps only snapshots where
open interest moved inside the ATM strike window, and annotates every strike
with OI/volume deltas for display or CSV export.
"""

from .config import ColumnVisibility, HistoryViewConfig, TimeFilter
from .dedup import dedupe
from .deltas import SideDelta, StrikeDelta, compute_delta, compute_strike_deltas
from .errors import InvalidParameter, InvalidSnapshot, OIHistoryError
from .filters import available_dates, filter_by_window
from .models import OptionSide, Snapshot, StrikeRecord, chronological, parse_history
from .pipeline import OIHistoryPipeline
from .sources import JsonFileSnapshotSource, SnapshotSource
from .strikes import atm_strike, select_window
from .summary import ChainSummary, summarize_chain
from .table import (
    EXPORT_COLUMNS,
    DisplayRow,
    StrikeRow,
    build_display_rows,
    build_export_frame,
    build_export_rows,
    export_filename,
)

__all__ = [
    "ChainSummary",
    "ColumnVisibility",
    "DisplayRow",
    "EXPORT_COLUMNS",
    "HistoryViewConfig",
    "InvalidParameter",
    "InvalidSnapshot",
    "JsonFileSnapshotSource",
    "OIHistoryError",
    "OIHistoryPipeline",
    "OptionSide",
    "SideDelta",
    "Snapshot",
    "SnapshotSource",
    "StrikeDelta",
    "StrikeRecord",
    "StrikeRow",
    "TimeFilter",
    "atm_strike",
    "available_dates",
    "build_display_rows",
    "build_export_frame",
    "build_export_rows",
    "chronological",
    "compute_delta",
    "compute_strike_deltas",
    "dedupe",
    "export_filename",
    "filter_by_window",
    "parse_history",
    "select_window",
    "summarize_chain",
]
