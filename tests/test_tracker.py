import json
import threading

import pytest

from imbued.core.tracking import AccessRecord, AccessType, FileTracker, TrackingError
from tests.conftest import read_records


def test_records_are_json_lines(tracker, log_path):
    tracker.track_authentication_request("42", ["a", "b"])
    tracker.track_secret_access_failure("42", ["b"], KeyError("b"))
    tracker.track_authentication_success("42", [])

    records = read_records(log_path)
    assert [r["type"] for r in records] == [
        "authentication_request",
        "secret_access_failure",
        "authentication_success",
    ]
    assert records[0]["secret_names"] == ["a", "b"]
    assert "error" not in records[0]
    assert records[1]["error"] == "'b'"
    assert "secret_names" not in records[2]
    assert all(r["process_id"] == "42" for r in records)
    assert "T" in records[0]["timestamp"]


def test_creates_log_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "audit.log"
    t = FileTracker(path)
    t.track_secret_access("1", ["x"])
    t.close()
    assert path.exists()


def test_reopening_appends_without_rewriting(log_path):
    first = FileTracker(log_path)
    first.track_authentication_request("1", ["a"])
    first.close()
    original = log_path.read_text()

    second = FileTracker(log_path)
    second.track_authentication_failure("2", ["a"], "authentication denied")
    second.close()

    content = log_path.read_text()
    assert content.startswith(original)
    assert len(content.splitlines()) == 2


def test_concurrent_writers_never_interleave(tracker, log_path):
    def worker(n):
        for i in range(50):
            tracker.track_secret_access(f"{n}", [f"secret_{n}_{i}" * 20])

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    lines = log_path.read_text().splitlines()
    assert len(lines) == 400
    for line in lines:
        record = json.loads(line)
        assert record["type"] == "secret_access"


def test_tracking_after_close_fails(tracker):
    tracker.close()
    with pytest.raises(TrackingError):
        tracker.track_secret_access("1", ["a"])
    tracker.close()  # second close is harmless


def test_unwritable_location_raises_tracking_error(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    with pytest.raises(TrackingError):
        FileTracker(blocker / "audit.log")


def test_access_record_serialization():
    record = AccessRecord(AccessType.AUTHENTICATION_FAILURE, "9", ["k"], "denied")
    data = json.loads(record.to_json())
    assert data == {
        "timestamp": record.timestamp.isoformat(),
        "type": "authentication_failure",
        "process_id": "9",
        "secret_names": ["k"],
        "error": "denied",
    }
