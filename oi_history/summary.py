"""Headline figures for the latest snapshot (spot, total OI, PCR)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import Snapshot


@dataclass(frozen=True)
class ChainSummary:
    spot_price: float
    total_call_oi: int
    total_put_oi: int
    pcr: float


def summarize_chain(snapshot: Optional[Snapshot]) -> Optional[ChainSummary]:
    """
    Totals come from the upstream filtered block when present, otherwise they
    are summed over every record in the snapshot. PCR divides by 1 when there
    is no call OI.
    """
    if snapshot is None:
        return None

    total_call = snapshot.total_call_oi
    if total_call is None:
        total_call = sum(r.call.open_interest for r in snapshot.records)
    total_put = snapshot.total_put_oi
    if total_put is None:
        total_put = sum(r.put.open_interest for r in snapshot.records)

    return ChainSummary(
        spot_price=snapshot.spot_price,
        total_call_oi=total_call,
        total_put_oi=total_put,
        pcr=round(total_put / (total_call or 1), 2),
    )
