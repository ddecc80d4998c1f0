"""Tests for the scan/delete engine."""

from __future__ import annotations

import logging
import shutil
import threading
import time

import pytest

from leftovers.core.scanner import Scanner
from leftovers.models.app import AppDescriptor
from leftovers.models.category import Category
from tests.helpers import RecordingListener, make_engine, write_file


class SlowScanner(Scanner):
    """Scanner that sleeps and records how many scans overlap."""

    def __init__(self, *args, delay: float = 0.05, fail: bool = False, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.delay = delay
        self.fail = fail
        self.hook = None
        self.active = 0
        self.max_active = 0
        self._count_lock = threading.Lock()

    def scan(self):
        with self._count_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            if self.hook:
                self.hook()
            if self.fail:
                raise RuntimeError("scan failed")
            return super().scan()
        finally:
            with self._count_lock:
                self.active -= 1


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def engine(world, listener):
    locations, apps = world
    eng = make_engine(locations, apps)
    eng.start().result()
    eng.add_listener(listener)
    yield eng
    eng.shutdown()


class TestReset:
    def test_populates_store(self, engine):
        assert [r.name for r in engine.store.rows()] == ["foo", "harbour-old", "harbour-new"]

        foo = engine.store.find("foo")
        assert foo.config_size == 500
        assert foo.cache_size == 0
        assert foo.local_data_size == 0
        assert foo.installed is True
        assert foo.title == "Foo"

        old = engine.store.find("harbour-old")
        assert (old.config_size, old.cache_size, old.local_data_size) == (10, 20, 30)
        assert old.installed is False

    def test_totals_after_reset(self, engine):
        t = engine.store.totals
        rows = engine.store.rows()
        assert t.total_config_size == sum(r.config_size for r in rows) == 510
        assert t.total_cache_size == sum(r.cache_size for r in rows) == 60
        assert t.total_local_data_size == sum(r.local_data_size for r in rows) == 30
        assert t.unused_apps_count == sum(1 for r in rows if not r.installed) == 1
        assert (t.unused_config_size, t.unused_cache_size, t.unused_local_data_size) == (10, 20, 30)

    def test_notification_order(self, engine, listener):
        assert engine.reset().result() == 3
        assert listener.names() == [
            "busy_changed",
            "rows_reset_begin",
            "resetting_changed",
            "rows_reset_end",
            "totals_changed",
            "resetting_changed",
            "busy_changed",
        ]
        assert listener.of("busy_changed") == [(True,), (False,)]
        assert listener.of("resetting_changed") == [(True,), (False,)]
        assert engine.busy is False
        assert engine.resetting is False

    def test_reset_replaces_rather_than_merges(self, engine, world):
        locations, _ = world
        shutil.rmtree(locations.cache / "harbour-new")

        engine.reset().result()
        assert engine.store.find("harbour-new") is None
        assert len(engine.store) == 2

    def test_scan_failure_keeps_rows_and_restores_flags(self, world, listener, caplog):
        locations, apps = world
        eng = make_engine(locations, apps, scanner_cls=SlowScanner, delay=0)
        try:
            eng.reset().result()
            eng.scanner.fail = True
            eng.add_listener(listener)

            with caplog.at_level(logging.ERROR):
                assert eng.reset().result() is None

            assert "Operation 'reset' failed" in caplog.text
            assert len(eng.store) == 3
            assert eng.busy is False
            assert eng.resetting is False
            assert listener.names()[-2:] == ["resetting_changed", "busy_changed"]
            assert "rows_reset_end" in listener.names()
        finally:
            eng.shutdown()


class TestDeleteData:
    def test_delete_all_removes_entry(self, engine, listener, world):
        locations, _ = world
        freed = engine.delete_data("harbour-old", Category.ALL).result()

        assert freed == 60
        assert engine.store.find("harbour-old") is None
        assert not (locations.config / "harbour-old").exists()
        assert not (locations.cache / "harbour-old").exists()
        assert not (locations.data / "harbour-old").exists()
        assert listener.names() == [
            "busy_changed",
            "row_remove_begin",
            "row_remove_end",
            "totals_changed",
            "data_deleted",
            "busy_changed",
        ]
        assert listener.of("row_remove_begin") == [(1, "harbour-old")]
        assert listener.of("data_deleted") == [(60,)]

        t = engine.store.totals
        assert t.unused_apps_count == 0
        assert t.total_config_size == 500

    def test_delete_single_category(self, engine, listener, world):
        locations, _ = world
        freed = engine.delete_data("harbour-old", Category.CACHE).result()

        assert freed == 20
        row = engine.store.find("harbour-old")
        assert (row.config_size, row.cache_size, row.local_data_size) == (10, 0, 30)
        assert (locations.config / "harbour-old").exists()
        assert not (locations.cache / "harbour-old").exists()
        assert listener.of("row_changed") == [(1, ("cache_size",))]
        assert engine.store.totals.total_cache_size == 40

    def test_delete_two_categories(self, engine, listener):
        freed = engine.delete_data("harbour-old", Category.CONFIG | Category.LOCAL_DATA).result()

        assert freed == 40
        assert listener.of("row_changed") == [(1, ("config_size", "local_data_size"))]

    def test_unknown_name_is_noop(self, engine, listener, caplog):
        with caplog.at_level(logging.WARNING):
            assert engine.delete_data("nope").result() == 0

        assert "doesn't contain the 'nope' entry" in caplog.text
        assert listener.names() == ["busy_changed", "busy_changed"]

    def test_second_delete_is_noop(self, engine, listener):
        engine.delete_data("harbour-old").result()
        listener.events.clear()

        assert engine.delete_data("harbour-old").result() == 0
        assert listener.names() == ["busy_changed", "busy_changed"]

    def test_category_without_data_skipped(self, engine, listener):
        assert engine.delete_data("foo", Category.CACHE).result() == 0
        assert engine.store.find("foo").config_size == 500
        assert listener.names() == ["busy_changed", "busy_changed"]

    def test_partial_failure_keeps_category(self, locations, listener):
        cfg = write_file(locations.config / "multi.conf", 100)
        first = write_file(locations.cache / "multi-a" / "blob", 1000).parent
        second = write_file(locations.cache / "multi-b" / "blob", 500).parent
        app = AppDescriptor(name="multi", config_paths=(str(cfg),), cache_paths=(str(first), str(second)))

        eng = make_engine(locations, [app])
        try:
            eng.reset().result()
            shutil.rmtree(second)  # vanishes between scan and deletion
            eng.add_listener(listener)

            freed = eng.delete_data("multi", Category.ALL).result()

            assert freed == 100
            assert not first.exists()
            row = eng.store.find("multi")
            assert row.config_size == 0
            assert row.cache_size == 1500
            assert eng.store.entry("multi").paths[Category.CACHE] == [str(first), str(second)]
            assert listener.of("deletion_error") == [(str(second),)]
            assert listener.of("data_deleted") == [(100,)]
            assert listener.of("row_changed") == [(0, ("config_size",))]
        finally:
            eng.shutdown()

    def test_safe_mode_keeps_files(self, world, listener):
        locations, apps = world
        eng = make_engine(locations, apps, safe_mode=True)
        try:
            eng.reset().result()
            eng.add_listener(listener)

            assert eng.delete_data("harbour-old").result() == 60
            assert eng.store.find("harbour-old") is None
            assert (locations.config / "harbour-old" / "settings.ini").exists()
            assert listener.of("data_deleted") == [(60,)]
        finally:
            eng.shutdown()


class TestDeleteUnusedData:
    def test_skips_installed_entries(self, engine, listener, world):
        locations, _ = world
        before = {e.name: (dict(e.sizes), {c: list(p) for c, p in e.paths.items()})
                  for e in engine.store.entries() if e.installed}

        freed = engine.delete_unused_data(Category.ALL).result()

        assert freed == 60
        after = {e.name: (dict(e.sizes), {c: list(p) for c, p in e.paths.items()})
                 for e in engine.store.entries() if e.installed}
        assert after == before
        assert (locations.cache / "harbour-new").exists()
        assert (locations.config / "foo.conf").exists()
        assert engine.store.find("harbour-old") is None
        assert listener.of("data_deleted") == [(60,)]

    def test_single_total_for_many_entries(self, world, listener):
        locations, apps = world
        write_file(locations.data / "harbour-gone" / "x", 5)
        eng = make_engine(locations, apps)
        try:
            eng.reset().result()
            eng.add_listener(listener)

            assert eng.delete_unused_data(Category.ALL).result() == 65
            assert listener.of("data_deleted") == [(65,)]
            assert listener.names().count("totals_changed") == 1
            assert len(eng.store) == 2
            assert eng.store.totals.unused_apps_count == 0
        finally:
            eng.shutdown()

    def test_selected_category_only(self, engine, listener):
        assert engine.delete_unused_data(Category.LOCAL_DATA).result() == 30
        row = engine.store.find("harbour-old")
        assert (row.config_size, row.cache_size, row.local_data_size) == (10, 20, 0)
        assert engine.store.totals.unused_local_data_size == 0

    def test_nothing_unused(self, engine, listener):
        engine.delete_unused_data().result()
        listener.events.clear()

        assert engine.delete_unused_data().result() == 0
        assert listener.names() == ["busy_changed", "busy_changed"]


class TestSerialization:
    def test_operations_never_overlap(self, world):
        locations, apps = world
        eng = make_engine(locations, apps, scanner_cls=SlowScanner, delay=0.05)
        try:
            futures = [eng.reset() for _ in range(3)]
            futures.append(eng.delete_data("harbour-old"))
            futures.append(eng.reset())
            for f in futures:
                f.result()

            assert eng.scanner.max_active == 1
            assert futures[3].result() == 60
            assert eng.store.find("harbour-old") is None
        finally:
            eng.shutdown()

    def test_public_calls_return_immediately(self, world):
        locations, apps = world
        eng = make_engine(locations, apps, scanner_cls=SlowScanner, delay=0.3)
        try:
            start = time.monotonic()
            future = eng.reset()
            assert time.monotonic() - start < 0.2
            assert future.result() == 3
        finally:
            eng.shutdown()

    def test_reads_see_previous_snapshot_during_scan(self, world):
        locations, apps = world
        eng = make_engine(locations, apps, scanner_cls=SlowScanner, delay=0)
        seen: dict[str, object] = {}
        try:
            eng.reset().result()
            before = eng.store.rows()

            def during_scan():
                seen["rows"] = eng.store.rows()
                seen["busy"] = eng.busy
                seen["resetting"] = eng.resetting

            eng.scanner.hook = during_scan
            eng.reset().result()

            assert seen["rows"] is before
            assert seen["busy"] is True
            assert seen["resetting"] is True
        finally:
            eng.shutdown()
