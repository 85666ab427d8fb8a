"""
Immutable records for option-chain snapshots.

A :class:`Snapshot` is one capture of the chain at an instant; its
:class:`StrikeRecord` entries hold the call (CE) and put (PE) sides for one
strike. Upstream documents are parsed with :meth:`Snapshot.from_payload`,
which defaults any missing nested field instead of failing.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .errors import InvalidSnapshot

logger = logging.getLogger(__name__)

Strike = Union[int, float]


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def _to_optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return _to_int(value)


def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) or math.isinf(number) else number


def _to_strike(value: Any) -> Optional[Strike]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number) if number.is_integer() else number


def parse_timestamp(value: Any) -> datetime:
    """Parse an upstream timestamp (datetime or ISO-8601 string)."""
    if isinstance(value, datetime):
        return value
    if value is None or value == "":
        raise InvalidSnapshot("snapshot timestamp is missing")
    try:
        parsed = pd.Timestamp(value)
    except (TypeError, ValueError) as exc:
        raise InvalidSnapshot(f"unparseable snapshot timestamp {value!r}") from exc
    if pd.isna(parsed):
        raise InvalidSnapshot(f"unparseable snapshot timestamp {value!r}")
    return parsed.to_pydatetime()


@dataclass(frozen=True)
class OptionSide:
    """One option type (CE or PE) at a strike."""

    open_interest: int = 0
    total_traded_volume: int = 0
    implied_volatility: float = 0.0
    last_price: float = 0.0
    oi_delta: Optional[int] = None
    volume_delta: Optional[int] = None

    @classmethod
    def from_payload(cls, doc: Optional[Mapping[str, Any]]) -> "OptionSide":
        if not isinstance(doc, Mapping):
            return EMPTY_SIDE
        return cls(
            open_interest=_to_int(doc.get("openInterest")),
            total_traded_volume=_to_int(doc.get("totalTradedVolume")),
            implied_volatility=_to_float(doc.get("impliedVolatility")),
            last_price=_to_float(doc.get("lastPrice")),
            oi_delta=_to_optional_int(doc.get("diffOpenInterest")),
            volume_delta=_to_optional_int(doc.get("diffTotalTradedVolume")),
        )


EMPTY_SIDE = OptionSide()


@dataclass(frozen=True)
class StrikeRecord:
    strike_price: Strike
    call: OptionSide = EMPTY_SIDE
    put: OptionSide = EMPTY_SIDE

    @classmethod
    def from_payload(cls, doc: Mapping[str, Any]) -> Optional["StrikeRecord"]:
        strike = _to_strike(doc.get("strikePrice")) if isinstance(doc, Mapping) else None
        if strike is None:
            return None
        return cls(
            strike_price=strike,
            call=OptionSide.from_payload(doc.get("CE")),
            put=OptionSide.from_payload(doc.get("PE")),
        )


@dataclass(frozen=True)
class Snapshot:
    """
    A full option-chain capture at one instant.

    ``records`` is unordered; at most one record exists per strike. Lookups go
    through :meth:`record_for`, backed by a strike-keyed mapping built once.
    """

    timestamp: datetime
    spot_price: float = 0.0
    records: Tuple[StrikeRecord, ...] = ()
    exchange_timestamp: Optional[str] = None
    total_call_oi: Optional[int] = None
    total_put_oi: Optional[int] = None
    _by_strike: Mapping[Strike, StrikeRecord] = field(
        init=False, repr=False, compare=False, default=None
    )

    def __post_init__(self) -> None:
        records = tuple(self.records)
        by_strike = {}
        for record in records:
            if record.strike_price in by_strike:
                logger.debug(
                    f"Duplicate strike {record.strike_price} in snapshot {self.timestamp}; keeping the last record"
                )
            by_strike[record.strike_price] = record
        if len(by_strike) != len(records):
            records = tuple(by_strike.values())
        object.__setattr__(self, "records", records)
        object.__setattr__(self, "spot_price", _to_float(self.spot_price))
        object.__setattr__(self, "_by_strike", MappingProxyType(by_strike))

    def record_for(self, strike: Strike) -> Optional[StrikeRecord]:
        return self._by_strike.get(strike)

    @property
    def strikes(self) -> List[Strike]:
        return sorted(self._by_strike)

    @classmethod
    def from_payload(cls, doc: Mapping[str, Any]) -> "Snapshot":
        """Build a snapshot from an upstream history/latest document."""
        if not isinstance(doc, Mapping):
            raise InvalidSnapshot(f"snapshot document must be a mapping, got {type(doc).__name__}")

        timestamp = parse_timestamp(doc.get("timestamp"))
        data = doc.get("data") or {}
        chain = data.get("records") or {}
        filtered = data.get("filtered") or {}

        records = []
        for item in chain.get("data") or []:
            record = StrikeRecord.from_payload(item)
            if record is None:
                logger.debug(f"Dropping strike entry without strikePrice at {timestamp}")
                continue
            records.append(record)

        def _total(side: str) -> Optional[int]:
            block = filtered.get(side)
            if not isinstance(block, Mapping) or block.get("totOI") is None:
                return None
            return _to_int(block.get("totOI"))

        return cls(
            timestamp=timestamp,
            spot_price=_to_float(chain.get("underlyingValue")),
            records=tuple(records),
            exchange_timestamp=data.get("nseTimestamp") or None,
            total_call_oi=_total("CE"),
            total_put_oi=_total("PE"),
        )


def parse_history(docs: Iterable[Mapping[str, Any]]) -> List[Snapshot]:
    """Parse a sequence of upstream documents, preserving their order."""
    return [Snapshot.from_payload(doc) for doc in docs]


def to_local(moment: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Naive local datetime for ``moment``."""
    if moment.tzinfo is None:
        return moment
    if tz is not None:
        moment = moment.astimezone(tz)
    return moment.replace(tzinfo=None)


def chronological(history: Sequence[Snapshot], tz: Optional[tzinfo] = None) -> List[Snapshot]:
    """
    Return ``history`` sorted oldest first (stable for equal timestamps).

    Ordering uses local wall-clock time so histories mixing aware and naive
    timestamps still sort.
    """
    return sorted(history, key=lambda snapshot: to_local(snapshot.timestamp, tz))
