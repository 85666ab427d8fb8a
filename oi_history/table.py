"""
Materialise display and export tables from a filtered history.

Display rows come from the deduplicated sequence and take their deltas from
the previous *retained* snapshot. Export rows come from every filtered
snapshot and take their deltas from the raw predecessor, so an export shows
every tick while the display shows only moments where OI actually moved.
Both are emitted newest first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from .config import LOT_SIZE, OI_SCALE_HEADROOM, OI_VALUE_DIVISOR, STRIKE_STEP
from .dedup import dedupe
from .deltas import SideDelta, compute_strike_deltas
from .models import EMPTY_SIDE, OptionSide, Snapshot, Strike, chronological, to_local
from .strikes import atm_strike, select_window

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    'Timestamp',
    'NSE Time',
    'Spot Price',
    'Strike Price',
    'CE OI',
    'CE OI Change',
    'CE OI Value',
    'CE Volume',
    'CE Vol Change',
    'CE IV',
    'CE LTP',
    'PE LTP',
    'PE IV',
    'PE Volume',
    'PE Vol Change',
    'PE OI Value',
    'PE OI',
    'PE OI Change',
]

EXPORT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def oi_value(open_interest: int, lot_size: int = LOT_SIZE) -> float:
    """Notional OI value in lakhs."""
    return open_interest * lot_size / OI_VALUE_DIVISOR


def format_oi_value(open_interest: int, lot_size: int = LOT_SIZE) -> str:
    return f"{oi_value(open_interest, lot_size):.2f}"


@dataclass(frozen=True)
class StrikeRow:
    strike: Strike
    is_atm: bool
    call: OptionSide
    put: OptionSide
    call_delta: SideDelta
    put_delta: SideDelta
    call_oi_value: float
    put_oi_value: float

    def bar_widths(self, scale: float) -> Tuple[float, float]:
        """Call/put OI as a percentage of ``scale`` (0 when the scale is 0)."""
        if scale <= 0:
            return 0.0, 0.0
        return (self.call.open_interest / scale * 100.0,
                self.put.open_interest / scale * 100.0)


@dataclass(frozen=True)
class DisplayRow:
    timestamp: datetime
    exchange_timestamp: Optional[str]
    spot_price: float
    atm_strike: Strike
    strikes: Tuple[StrikeRow, ...]

    @property
    def oi_scale(self) -> float:
        peak = max(
            (max(row.call.open_interest, row.put.open_interest) for row in self.strikes),
            default=0,
        )
        return max(peak, 0) * OI_SCALE_HEADROOM


def _display_row(snapshot: Snapshot, previous: Optional[Snapshot], strike_breadth: int,
                 strike_step: Strike, lot_size: int) -> DisplayRow:
    atm = atm_strike(snapshot.spot_price, strike_step)
    rows = []
    for strike in select_window(snapshot.spot_price, strike_breadth, strike_step):
        record = snapshot.record_for(strike)
        prev_record = previous.record_for(strike) if previous is not None else None
        deltas = compute_strike_deltas(record, prev_record, previous is not None)
        call = record.call if record else EMPTY_SIDE
        put = record.put if record else EMPTY_SIDE
        rows.append(StrikeRow(
            strike=strike,
            is_atm=strike == atm,
            call=call,
            put=put,
            call_delta=deltas.call,
            put_delta=deltas.put,
            call_oi_value=round(oi_value(call.open_interest, lot_size), 2),
            put_oi_value=round(oi_value(put.open_interest, lot_size), 2),
        ))
    return DisplayRow(
        timestamp=snapshot.timestamp,
        exchange_timestamp=snapshot.exchange_timestamp,
        spot_price=snapshot.spot_price,
        atm_strike=atm,
        strikes=tuple(rows),
    )


def build_display_rows(
    filtered: Sequence[Snapshot],
    strike_breadth: int,
    strike_step: Strike = STRIKE_STEP,
    lot_size: int = LOT_SIZE,
    tz: Optional[tzinfo] = None,
) -> List[DisplayRow]:
    """
    Deduplicated, newest-first display rows.

    Each row's window tracks its own spot price; a strike without a record is
    shown as zeros rather than skipped.
    """
    retained = dedupe(chronological(filtered, tz), strike_breadth, strike_step)
    newest_first = retained[::-1]
    rows = []
    for i, snapshot in enumerate(newest_first):
        previous = newest_first[i + 1] if i + 1 < len(newest_first) else None
        rows.append(_display_row(snapshot, previous, strike_breadth, strike_step, lot_size))
    return rows


def build_export_rows(
    filtered: Sequence[Snapshot],
    strike_breadth: int,
    strike_step: Strike = STRIKE_STEP,
    lot_size: int = LOT_SIZE,
    tz: Optional[tzinfo] = None,
) -> List[list]:
    """
    One row per (snapshot, strike in window) with a record, newest first.

    No deduplication: the delta reference is the raw predecessor. Strikes
    without a record in a snapshot are skipped.
    """
    newest_first = chronological(filtered, tz)[::-1]
    rows = []
    for i, snapshot in enumerate(newest_first):
        previous = newest_first[i + 1] if i + 1 < len(newest_first) else None
        timestamp = to_local(snapshot.timestamp, tz).strftime(EXPORT_TIMESTAMP_FORMAT)
        for strike in select_window(snapshot.spot_price, strike_breadth, strike_step):
            record = snapshot.record_for(strike)
            if record is None:
                continue
            prev_record = previous.record_for(strike) if previous is not None else None
            deltas = compute_strike_deltas(record, prev_record, previous is not None)
            call, put = record.call, record.put
            rows.append([
                timestamp,
                snapshot.exchange_timestamp or '',
                snapshot.spot_price,
                strike,
                call.open_interest,
                deltas.call.oi_delta,
                format_oi_value(call.open_interest, lot_size),
                call.total_traded_volume,
                deltas.call.volume_delta,
                call.implied_volatility,
                call.last_price,
                put.last_price,
                put.implied_volatility,
                put.total_traded_volume,
                deltas.put.volume_delta,
                format_oi_value(put.open_interest, lot_size),
                put.open_interest,
                deltas.put.oi_delta,
            ])

    logger.debug(f"Export built {len(rows)} rows from {len(newest_first)} snapshots")
    return rows


def build_export_frame(
    filtered: Sequence[Snapshot],
    strike_breadth: int,
    strike_step: Strike = STRIKE_STEP,
    lot_size: int = LOT_SIZE,
    tz: Optional[tzinfo] = None,
) -> pd.DataFrame:
    rows = build_export_rows(filtered, strike_breadth, strike_step, lot_size, tz)
    # object dtype keeps each cell's own repr in the CSV (no int -> float upcasts)
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS, dtype=object)


def frame_to_csv(frame: pd.DataFrame) -> str:
    """Header plus one comma-joined line per row, unquoted."""
    lines = [",".join(frame.columns)]
    if not frame.empty:
        lines.extend(frame.astype(str).agg(",".join, axis=1))
    return "\n".join(lines) + "\n"


def export_filename(selected_date, today) -> str:
    day = selected_date or today
    return f"oi_history_{day.isoformat()}.csv"
