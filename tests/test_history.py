from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from quizrunner.errors import PersistenceError
from quizrunner.history.export import CSV_COLUMNS, export_csv, export_history, export_json, summarize
from quizrunner.history.store import HistoryEntry, HistoryStore
from quizrunner.scoring.grading import BAND_EXCELLENT, BAND_GOOD, GradeResult
from quizrunner.storage import MemoryStorage

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def _entry(score: float, minutes: int = 0, spent=None, topic="all") -> HistoryEntry:
    return HistoryEntry(
        timestamp=T0 + timedelta(minutes=minutes),
        score=score,
        total_questions=4,
        correct_count=int(score * 4 / 10),
        wrong_count=4 - int(score * 4 / 10),
        time_spent_seconds=spent,
        topic=topic,
    )


class FailingStorage(MemoryStorage):
    def get_item(self, key):
        raise PersistenceError("disk gone", key=key)

    def set_item(self, key, value):
        raise PersistenceError("disk gone", key=key)

    def remove_item(self, key):
        raise PersistenceError("disk gone", key=key)


def test_append_is_newest_first_and_capped():
    store = HistoryStore(limit=50)
    for i in range(51):
        store.append(_entry(5.0, minutes=i))
    assert len(store) == 50
    assert store.entries[0].timestamp == T0 + timedelta(minutes=50)
    assert store.entries[-1].timestamp == T0 + timedelta(minutes=1)


def test_filter_by_band():
    store = HistoryStore()
    for score in (10.0, 8.0, 7.5, 5.0, 2.5):
        store.append(_entry(score))
    assert len(store.filter()) == 5
    assert [e.score for e in store.filter(BAND_EXCELLENT)] == [8.0, 10.0]
    assert [e.score for e in store.filter(BAND_GOOD)] == [7.5]
    assert [e.score for e in store.filter("average")] == [5.0]
    with pytest.raises(ValueError):
        store.filter("needs_improvement")


def test_persistence_round_trip():
    storage = MemoryStorage()
    store = HistoryStore(storage=storage)
    store.append(_entry(7.5, spent=95, topic="math"))

    reloaded = HistoryStore(storage=storage)
    reloaded.load()
    assert reloaded.entries == store.entries
    saved = storage.get_item("quizHistory")[0]
    assert saved["timeSpent"] == 95
    assert saved["total"] == 4


def test_load_accepts_browser_entries_and_skips_bad_ones(caplog):
    storage = MemoryStorage()
    storage.set_item(
        "quizHistory",
        [
            {"timestamp": 1714564800000, "score": 6.67, "total": 3, "correct": 2, "wrong": 1, "timeSpent": "1:30"},
            {"score": 1.0},
        ],
    )
    store = HistoryStore(storage=storage)
    with caplog.at_level("WARNING"):
        store.load()
    assert len(store) == 1
    entry = store.entries[0]
    assert entry.timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert entry.time_spent_seconds == 90
    assert entry.topic == "all"
    assert "Skipping history entry" in caplog.text


def test_corrupt_storage_yields_empty_history():
    storage = MemoryStorage()
    storage.set_raw("quizHistory", "{not json")
    store = HistoryStore(storage=storage)
    store.load()
    assert store.entries == []


def test_failing_storage_is_not_fatal(caplog):
    store = HistoryStore(storage=FailingStorage())
    with caplog.at_level("WARNING"):
        store.load()
        store.append(_entry(9.0))
        store.clear()
    assert len(store) == 0
    assert "Could not save history" in caplog.text


def test_clear_removes_saved_copy():
    storage = MemoryStorage()
    store = HistoryStore(storage=storage)
    store.append(_entry(9.0))
    store.clear()
    assert store.entries == []
    assert storage.get_item("quizHistory") is None


def test_entry_from_result():
    result = GradeResult(total=2, correct_count=1, score=5.0, time_spent_seconds=12)
    entry = HistoryEntry.from_result(result, topic="math", timestamp=T0)
    assert (entry.total_questions, entry.correct_count, entry.wrong_count) == (2, 1, 0)
    assert entry.time_spent_seconds == 12
    assert entry.band == "average"


def test_export_csv():
    text = export_csv([_entry(7.5, spent=65, topic="math"), _entry(10.0)])
    lines = text.splitlines()
    assert lines[0] == ",".join(CSV_COLUMNS)
    assert lines[1] == "2024-05-01 12:00:00,7.50,4,3,1,1:05,math"
    assert lines[2].endswith(",N/A,all")


def test_export_empty_history():
    assert export_csv([]).strip() == ",".join(CSV_COLUMNS)
    payload = json.loads(export_json([], now=T0))
    assert payload == {"export_date": T0.isoformat(), "total_sessions": 0, "sessions": []}


def test_export_json():
    payload = json.loads(export_json([_entry(5.0, spent=10)], now=T0))
    assert payload["total_sessions"] == 1
    assert payload["sessions"][0]["score"] == 5.0
    assert payload["sessions"][0]["timeSpent"] == 10


def test_export_unknown_format():
    with pytest.raises(ValueError):
        export_history([], "xml")


def test_summarize():
    stats = summarize([_entry(10.0), _entry(5.0), _entry(2.5)])
    assert stats == {"sessions": 3, "mean_score": 5.83, "best_score": 10.0, "worst_score": 2.5}
    assert summarize([])["sessions"] == 0


def test_store_export_and_summary():
    store = HistoryStore()
    store.append(_entry(10.0))
    store.append(_entry(5.0, minutes=1))
    assert store.export("csv").splitlines()[1].startswith("2024-05-01 12:01:00,5.00")
    assert json.loads(store.export("json"))["total_sessions"] == 2
    assert store.summary()["best_score"] == 10.0


def test_out_of_range_numbers_are_skipped():
    storage = MemoryStorage()
    storage.set_raw(
        "quizHistory",
        '[{"timestamp": 1e300, "score": 5.0, "total": 2, "correct": 1, "wrong": 1},'
        ' {"timestamp": "2024-05-01T12:00:00+00:00", "score": 5.0, "total": Infinity, "correct": 1, "wrong": 1},'
        ' {"timestamp": "2024-05-01T12:00:00+00:00", "score": 5.0, "total": 2, "correct": 1, "wrong": 1}]',
    )
    store = HistoryStore(storage=storage)
    store.load()
    assert len(store) == 1
    assert store.entries[0].total_questions == 2
