"""
Per-strike OI and volume deltas.

With a previous snapshot in context the delta is always recomputed locally as
``current - previous``. Without one (the oldest row of a window) the delta
falls back to the value supplied upstream, which carries the day-open change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import EMPTY_SIDE, OptionSide, StrikeRecord


@dataclass(frozen=True)
class SideDelta:
    oi_delta: int = 0
    volume_delta: int = 0
    has_baseline: bool = False  # whether a delta badge is shown at all


@dataclass(frozen=True)
class StrikeDelta:
    call: SideDelta
    put: SideDelta


def compute_delta(
    current: Optional[OptionSide],
    previous: Optional[OptionSide],
    has_prev_snapshot: bool,
) -> SideDelta:
    current = current or EMPTY_SIDE
    previous = previous or EMPTY_SIDE

    if has_prev_snapshot:
        return SideDelta(
            oi_delta=current.open_interest - previous.open_interest,
            volume_delta=current.total_traded_volume - previous.total_traded_volume,
            has_baseline=True,
        )

    return SideDelta(
        oi_delta=current.oi_delta if current.oi_delta is not None else 0,
        volume_delta=current.volume_delta if current.volume_delta is not None else 0,
        has_baseline=current.oi_delta is not None,
    )


def compute_strike_deltas(
    current: Optional[StrikeRecord],
    previous: Optional[StrikeRecord],
    has_prev_snapshot: bool,
) -> StrikeDelta:
    """Apply :func:`compute_delta` to the call and put sides independently."""
    return StrikeDelta(
        call=compute_delta(
            current.call if current else None,
            previous.call if previous else None,
            has_prev_snapshot,
        ),
        put=compute_delta(
            current.put if current else None,
            previous.put if previous else None,
            has_prev_snapshot,
        ),
    )
