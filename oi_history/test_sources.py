import json

import pytest

from oi_history.models import Snapshot
from oi_history.sources import JsonFileSnapshotSource
from oi_history.summary import summarize_chain


@pytest.fixture
def source_dir(tmp_path, sample_payload):
    later = json.loads(json.dumps(sample_payload))
    later["timestamp"] = "2026-10-19T09:25:00"
    later["data"]["records"]["underlyingValue"] = 25010.0
    # stored newest first on purpose
    (tmp_path / "NIFTY.json").write_text(json.dumps([later, sample_payload]))
    return tmp_path


def test_history_is_returned_oldest_first(source_dir):
    history = JsonFileSnapshotSource(source_dir).history("nifty")
    assert [s.timestamp.minute for s in history] == [20, 25]


def test_latest_is_newest_snapshot(source_dir):
    latest = JsonFileSnapshotSource(source_dir).latest("NIFTY")
    assert latest.spot_price == 25010.0


def test_missing_file_is_absent_not_error(tmp_path):
    source = JsonFileSnapshotSource(tmp_path)
    assert source.history("BANKNIFTY") == []
    assert source.latest("BANKNIFTY") is None


@pytest.mark.parametrize("content", ["{not json", json.dumps({"a": 1}), json.dumps([{"data": {}}])])
def test_corrupt_file_is_absent_not_partial(tmp_path, content):
    (tmp_path / "NIFTY.json").write_text(content)
    assert JsonFileSnapshotSource(tmp_path).history("NIFTY") == []


def test_summary_prefers_upstream_totals(sample_payload):
    summary = summarize_chain(Snapshot.from_payload(sample_payload))
    assert summary.total_call_oi == 50000
    assert summary.total_put_oi == 65000
    assert summary.pcr == 1.3


def test_summary_sums_records_without_totals(make_snapshot):
    snap = make_snapshot("2026-10-19T09:15:00", 25000, {24950: (100, 50), 25000: (300, 250)})
    summary = summarize_chain(snap)
    assert (summary.total_call_oi, summary.total_put_oi) == (400, 300)
    assert summary.pcr == 0.75


def test_summary_without_call_oi_divides_by_one(make_snapshot):
    snap = make_snapshot("2026-10-19T09:15:00", 25000, {25000: (0, 42)})
    assert summarize_chain(snap).pcr == 42.0
    assert summarize_chain(None) is None
