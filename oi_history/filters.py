"""
Date and recency windowing over a snapshot history.

Comparisons are made in local wall-clock time: timezone-aware timestamps are
converted into the requested zone and made naive, naive timestamps are taken
as already local.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import List, Optional, Sequence, Union

from .config import AVAILABLE_DATE_DAYS, TimeFilter
from .models import Snapshot, to_local

logger = logging.getLogger(__name__)


def day_bounds(selected_date: date):
    """Half-open ``[start, end)`` bounds of a calendar day."""
    start = datetime.combine(selected_date, datetime.min.time())
    return start, start + timedelta(days=1)


def filter_by_window(
    history: Sequence[Snapshot],
    selected_date: Optional[date],
    time_filter: Union[TimeFilter, str, None],
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> List[Snapshot]:
    """
    Narrow ``history`` to the selected day and recency window.

    Input order is preserved. When a date other than today's (local date of
    ``now``) is selected the recency window is ignored, since a past day
    cannot fall within the last few hours.
    """
    time_filter = TimeFilter.parse(time_filter)
    local_now = to_local(now, tz)
    result = list(history)

    if selected_date is not None:
        start, end = day_bounds(selected_date)
        result = [s for s in result if start <= to_local(s.timestamp, tz) < end]

    hours = time_filter.hours
    if hours is not None:
        is_other_day = selected_date is not None and selected_date != local_now.date()
        if is_other_day:
            logger.debug(f"Recency filter {time_filter.value} suppressed for {selected_date}")
        else:
            cutoff = local_now - timedelta(hours=hours)
            result = [s for s in result if to_local(s.timestamp, tz) >= cutoff]

    logger.debug(f"Time window kept {len(result)} of {len(history)} snapshots")
    return result


def available_dates(today: date, days: int = AVAILABLE_DATE_DAYS) -> List[date]:
    """The last ``days`` calendar dates, newest first."""
    return [today - timedelta(days=offset) for offset in range(days)]
