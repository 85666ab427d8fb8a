import copy
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from oi_history.config import HistoryViewConfig, TimeFilter
from oi_history.errors import InvalidParameter
from oi_history.models import parse_history, to_local
from oi_history.pipeline import OIHistoryPipeline
from oi_history.strikes import select_window


@pytest.fixture
def session_history(make_snapshot, full_chain):
    """A trading session with a repeated tick every other minute and a prior day."""
    snaps = [make_snapshot("2026-10-16T15:25:00", 25100, full_chain(base=900))]
    for i in range(20):
        minute = 12 * 60 + i * 9  # 12:00 .. 14:51
        ts = datetime(2026, 10, 19, minute // 60, minute % 60)
        snaps.append(make_snapshot(ts, 24980 + (i % 4) * 15, full_chain(base=1000 + (i // 2) * 7)))
    return snaps


NOW = datetime(2026, 10, 19, 15, 0)


def test_display_never_exceeds_filtered(session_history):
    pipeline = OIHistoryPipeline(HistoryViewConfig(strike_breadth=5))

    filtered = pipeline.filter_history(session_history, NOW)
    rows = pipeline.build_display_rows(session_history, NOW)

    assert len(filtered) == len(session_history)
    assert 0 < len(rows) <= len(filtered)
    # the oldest filtered snapshot is always the last display row
    assert rows[-1].timestamp == min(s.timestamp for s in filtered)


def test_export_row_count_bounded_by_window(session_history):
    pipeline = OIHistoryPipeline(HistoryViewConfig(selected_date=date(2026, 10, 19), strike_breadth=7))

    frame = pipeline.build_export_frame(session_history, NOW)
    filtered = pipeline.filter_history(session_history, NOW)

    assert len(filtered) == 20
    # every window strike has a record in this history
    assert len(frame) == len(filtered) * 7


def test_past_date_ignores_recency_window(session_history):
    past = OIHistoryPipeline(HistoryViewConfig(selected_date=date(2026, 10, 16), time_filter="1h"))
    assert len(past.filter_history(session_history, NOW)) == 1

    today = OIHistoryPipeline(HistoryViewConfig(selected_date=date(2026, 10, 19), time_filter="1h"))
    kept = today.filter_history(session_history, NOW)
    assert kept and all(s.timestamp >= datetime(2026, 10, 19, 14, 0) for s in kept)


def test_identical_inputs_give_identical_output(session_history):
    config = HistoryViewConfig(selected_date=date(2026, 10, 19), time_filter="6h", strike_breadth=5)

    first = OIHistoryPipeline(config).export_csv(session_history, NOW)
    second = OIHistoryPipeline(config).export_csv(list(session_history), NOW)

    assert first.encode() == second.encode()
    assert OIHistoryPipeline(config).build_display_rows(session_history, NOW) == \
        OIHistoryPipeline(config).build_display_rows(session_history, NOW)


def test_unordered_history_is_reordered(session_history):
    pipeline = OIHistoryPipeline(HistoryViewConfig(strike_breadth=5))
    shuffled = session_history[1::2] + session_history[::2]

    assert pipeline.export_csv(shuffled, NOW) == pipeline.export_csv(session_history, NOW)
    assert pipeline.build_display_rows(shuffled, NOW) == pipeline.build_display_rows(session_history, NOW)


def test_display_rows_differ_from_their_predecessor(session_history):
    rows = OIHistoryPipeline(HistoryViewConfig(strike_breadth=5)).build_display_rows(session_history, NOW)
    for later, earlier in zip(rows, rows[1:]):
        assert [s.strike for s in later.strikes] == select_window(later.spot_price, 5)
        assert any(s.call_delta.oi_delta or s.put_delta.oi_delta for s in later.strikes)


def test_mixed_aware_and_naive_timestamps_order_by_local_time(sample_payload):
    utc_doc = copy.deepcopy(sample_payload)
    utc_doc["timestamp"] = "2026-10-19T03:45:00Z"  # 09:15 IST
    local_doc = copy.deepcopy(sample_payload)
    local_doc["timestamp"] = "2026-10-19T15:00:00"
    local_doc["data"]["records"]["data"][0]["CE"]["openInterest"] = 1500
    history = parse_history([local_doc, utc_doc])
    pipeline = OIHistoryPipeline(HistoryViewConfig(timezone="Asia/Kolkata"))

    rows = pipeline.build_display_rows(history, NOW)
    ist = ZoneInfo("Asia/Kolkata")
    assert [to_local(r.timestamp, ist) for r in rows] == [
        datetime(2026, 10, 19, 15, 0),
        datetime(2026, 10, 19, 9, 15),
    ]

    frame = pipeline.build_export_frame(history, NOW)
    assert list(frame["Timestamp"].unique()) == ["2026-10-19 15:00:00", "2026-10-19 09:15:00"]


def test_export_filename_uses_local_today():
    pipeline = OIHistoryPipeline(HistoryViewConfig(timezone="Asia/Kolkata"))
    # 20:00 UTC on the 19th is already the 20th in IST
    now = datetime(2026, 10, 19, 20, 0, tzinfo=ZoneInfo("UTC"))
    assert pipeline.export_filename(now) == "oi_history_2026-10-20.csv"

    dated = OIHistoryPipeline(HistoryViewConfig(selected_date=date(2026, 10, 16)))
    assert dated.export_filename(now) == "oi_history_2026-10-16.csv"


def test_config_for_symbol_uses_symbol_step():
    assert HistoryViewConfig.for_symbol("banknifty").strike_step == 100
    assert HistoryViewConfig.for_symbol("NIFTY", strike_breadth=9).strike_breadth == 9
    assert HistoryViewConfig(time_filter="3h").time_filter is TimeFilter.LAST_3H


@pytest.mark.parametrize("overrides", [
    {"strike_breadth": 4},
    {"strike_breadth": 0},
    {"strike_step": 0},
    {"lot_size": 0},
    {"time_filter": "2d"},
    {"timezone": "Mars/Olympus"},
])
def test_config_rejects_invalid_parameters(overrides):
    with pytest.raises(InvalidParameter):
        HistoryViewConfig(**overrides)


def test_unknown_symbol_rejected():
    with pytest.raises(InvalidParameter):
        HistoryViewConfig.for_symbol("SENSEX")
