"""Tests for the tracker module."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from leftovers.core.tracker import UNUSED_TARGET, Tracker
from leftovers.models.category import Category
from leftovers.storage import load_history

pytestmark = pytest.mark.usefixtures("isolate_storage")


class TestTracker:
    def test_record(self, isolate_storage):
        tracker = Tracker()
        tracker.record("harbour-foo", Category.CONFIG | Category.CACHE, 5000)

        history = json.loads(isolate_storage.read_text())
        assert len(history["sessions"]) == 1
        session = history["sessions"][0]
        assert session["target"] == "harbour-foo"
        assert session["categories"] == ["config", "cache"]
        assert session["bytes_freed"] == 5000
        assert "timestamp" in session

    def test_zero_bytes_not_recorded(self, isolate_storage):
        Tracker().record("harbour-foo", Category.ALL, 0)
        assert not isolate_storage.exists()

    def test_multiple_records(self, isolate_storage):
        tracker = Tracker()
        tracker.record("a", Category.ALL, 100)
        tracker.record(UNUSED_TARGET, Category.CACHE, 200)
        tracker.record("a", Category.CONFIG, 50)

        stats = tracker.get_stats("all")
        assert stats["deletion_count"] == 3
        assert stats["bytes_freed"] == 350
        assert stats["lifetime_bytes_freed"] == 350
        assert stats["per_target"] == {"a": 150, UNUSED_TARGET: 200}

    def test_get_stats_period_filters_old_sessions(self, isolate_storage):
        old = (datetime.now(timezone.utc) - timedelta(days=60)).isoformat()
        isolate_storage.write_text(
            json.dumps({"sessions": [{"timestamp": old, "target": "x", "categories": ["cache"], "bytes_freed": 999}]})
        )
        tracker = Tracker()
        tracker.record("y", Category.CACHE, 1)

        month = tracker.get_stats("month")
        assert month["bytes_freed"] == 1
        assert month["deletion_count"] == 1
        assert month["lifetime_bytes_freed"] == 1000

        today = tracker.get_stats("today")
        assert today["per_target"] == {"y": 1}

    def test_last_deletion_time(self):
        tracker = Tracker()
        assert tracker.get_last_deletion_time() is None

        tracker.record("a", Category.ALL, 10)
        assert tracker.get_last_deletion_time() is not None

    def test_empty_stats(self):
        stats = Tracker().get_stats("week")
        assert stats == {
            "period": "week",
            "bytes_freed": 0,
            "deletion_count": 0,
            "lifetime_bytes_freed": 0,
            "per_target": {},
        }


class TestStorage:
    def test_corrupt_history_ignored(self, isolate_storage):
        isolate_storage.write_text("{ broken")
        assert load_history() == {"sessions": []}

    def test_malformed_history_ignored(self, isolate_storage):
        isolate_storage.write_text(json.dumps({"sessions": "nope"}))
        assert load_history() == {"sessions": []}

    def test_record_after_corruption_starts_fresh(self, isolate_storage):
        isolate_storage.write_text("[]")
        Tracker().record("a", Category.ALL, 7)
        assert len(load_history()["sessions"]) == 1
