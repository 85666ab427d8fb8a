"""Shared fixtures for the OI history tests."""

from datetime import datetime

import pytest

from oi_history.models import OptionSide, Snapshot, StrikeRecord


def _build_snapshot(ts, spot, chain, exchange_ts=None, volumes=None, upstream=None):
    """
    ``chain`` maps strike -> (call OI, put OI); ``volumes`` optionally maps
    strike -> (call volume, put volume); ``upstream`` strike -> (call delta,
    put delta) as supplied by the source.
    """
    volumes = volumes or {}
    upstream = upstream or {}
    records = []
    for strike, (ce_oi, pe_oi) in chain.items():
        ce_vol, pe_vol = volumes.get(strike, (0, 0))
        ce_up, pe_up = upstream.get(strike, (None, None))
        records.append(StrikeRecord(
            strike_price=strike,
            call=OptionSide(open_interest=ce_oi, total_traded_volume=ce_vol,
                            implied_volatility=12.5, last_price=101.0, oi_delta=ce_up),
            put=OptionSide(open_interest=pe_oi, total_traded_volume=pe_vol,
                           implied_volatility=13.5, last_price=99.0, oi_delta=pe_up),
        ))
    if isinstance(ts, str):
        ts = datetime.fromisoformat(ts)
    return Snapshot(timestamp=ts, spot_price=spot, records=tuple(records),
                    exchange_timestamp=exchange_ts)


@pytest.fixture
def make_snapshot():
    return _build_snapshot


@pytest.fixture
def full_chain():
    """Call/put OI for every strike from 24800 to 25200."""
    def _chain(base=1000, **overrides):
        chain = {strike: (base + i, base * 2 + i) for i, strike in enumerate(range(24800, 25250, 50))}
        for key, value in overrides.items():
            chain[int(key.lstrip("s"))] = value
        return chain
    return _chain


@pytest.fixture
def sample_payload():
    return {
        "timestamp": "2026-10-19T09:20:00",
        "data": {
            "nseTimestamp": "19-Oct-2026 09:19:58",
            "records": {
                "underlyingValue": 24980.35,
                "data": [
                    {
                        "strikePrice": 24950,
                        "CE": {"openInterest": 1200, "totalTradedVolume": 5000,
                               "impliedVolatility": 11.2, "lastPrice": 120.5,
                               "diffOpenInterest": 150, "diffTotalTradedVolume": 800},
                        "PE": {"openInterest": 900, "totalTradedVolume": 4000,
                               "impliedVolatility": 12.1, "lastPrice": 88.0},
                    },
                    {
                        "strikePrice": 25000,
                        "CE": {"openInterest": 3000},
                    },
                    {"CE": {"openInterest": 5}},
                ],
            },
            "filtered": {"CE": {"totOI": 50000}, "PE": {"totOI": 65000}},
        },
    }
