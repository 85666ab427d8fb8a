"""
High-level entry point for snapshot history views.

The pipeline is a pure function of (history, view config, now): it never
reads the clock or touches the network, so repeated calls with identical
inputs give identical output.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence

import pandas as pd

from .config import HistoryViewConfig
from .filters import filter_by_window
from .models import Snapshot, to_local
from .table import (
    DisplayRow,
    build_display_rows,
    build_export_frame,
    export_filename,
    frame_to_csv,
)

logger = logging.getLogger(__name__)


class OIHistoryPipeline:
    """
    Filter, deduplicate and tabulate a snapshot history.

    Example
    -------
    >>> config = HistoryViewConfig(selected_date=date(2026, 10, 19),
    ...                            time_filter="1h", strike_breadth=5)
    >>> pipeline = OIHistoryPipeline(config)
    >>> rows = pipeline.build_display_rows(history, now=now)
    >>> csv_text = pipeline.export_csv(history, now=now)
    """

    def __init__(self, config: Optional[HistoryViewConfig] = None) -> None:
        self.config = config or HistoryViewConfig()

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------
    def filter_history(self, history: Sequence[Snapshot], now: datetime) -> List[Snapshot]:
        cfg = self.config
        return filter_by_window(history, cfg.selected_date, cfg.time_filter, now, cfg.tzinfo)

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------
    def build_display_rows(self, history: Sequence[Snapshot], now: datetime) -> List[DisplayRow]:
        """Deduplicated rows, newest first."""
        cfg = self.config
        filtered = self.filter_history(history, now)
        rows = build_display_rows(
            filtered, cfg.strike_breadth, cfg.strike_step, cfg.lot_size, cfg.tzinfo
        )
        logger.debug(f"Display view: {len(rows)} rows from {len(filtered)} filtered snapshots")
        return rows

    def build_export_frame(self, history: Sequence[Snapshot], now: datetime) -> pd.DataFrame:
        """Every filtered snapshot x window strike, newest first."""
        cfg = self.config
        filtered = self.filter_history(history, now)
        return build_export_frame(
            filtered, cfg.strike_breadth, cfg.strike_step, cfg.lot_size, cfg.tzinfo
        )

    def export_csv(self, history: Sequence[Snapshot], now: datetime) -> str:
        return frame_to_csv(self.build_export_frame(history, now))

    def export_filename(self, now: datetime) -> str:
        return export_filename(self.config.selected_date, self.local_today(now))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def local_today(self, now: datetime) -> date:
        return to_local(now, self.config.tzinfo).date()
