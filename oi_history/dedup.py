"""Collapse runs of snapshots with no OI movement inside the strike window."""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from .config import STRIKE_STEP, validate_strike_breadth
from .models import Snapshot, Strike
from .strikes import select_window

logger = logging.getLogger(__name__)


def window_oi(snapshot: Snapshot, strikes: Sequence[Strike]) -> np.ndarray:
    """``(len(strikes), 2)`` array of call/put OI; missing strikes read as 0."""
    values = np.zeros((len(strikes), 2), dtype=np.int64)
    for i, strike in enumerate(strikes):
        record = snapshot.record_for(strike)
        if record is not None:
            values[i, 0] = record.call.open_interest
            values[i, 1] = record.put.open_interest
    return values


def has_oi_change(current: Snapshot, reference: Snapshot, strike_breadth: int,
                  strike_step: Strike = STRIKE_STEP) -> bool:
    """True if any strike in ``current``'s own window moved call or put OI."""
    strikes = select_window(current.spot_price, strike_breadth, strike_step)
    return not np.array_equal(window_oi(current, strikes), window_oi(reference, strikes))


def dedupe(chronological: Sequence[Snapshot], strike_breadth: int,
           strike_step: Strike = STRIKE_STEP) -> List[Snapshot]:
    """
    Keep the first snapshot and every later one whose OI differs from the
    last retained snapshot (not the raw predecessor).

    Input and output are oldest first.
    """
    validate_strike_breadth(strike_breadth)
    retained: List[Snapshot] = []
    for snapshot in chronological:
        if not retained or has_oi_change(snapshot, retained[-1], strike_breadth, strike_step):
            retained.append(snapshot)

    logger.debug(f"Deduplication retained {len(retained)} of {len(chronological)} snapshots")
    return retained
