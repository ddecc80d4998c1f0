"""Scan and deletion orchestration engine."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from leftovers.core.events import EngineListener
from leftovers.core.locations import StandardLocations
from leftovers.core.registry import AppRegistry
from leftovers.core.remover import PathRemover
from leftovers.core.scanner import Scanner
from leftovers.core.store import EntryStore
from leftovers.models.category import Category
from leftovers.models.entry import Entry
from leftovers.settings import Settings

log = logging.getLogger(__name__)


class LeftoversEngine:
    """Runs scans and deletions against an EntryStore in the background.

    Operations are serialized, not merely asynchronous: they are queued on
    a single worker thread and each one holds the mutation lock for its
    whole duration, so a rescan can never interleave with a deletion.
    Every public operation returns a Future right away. Reads through
    ``store`` are safe from any thread at any time.

    There is no cancellation; once started, a scan or deletion runs to
    completion.
    """

    def __init__(
        self,
        scanner: Scanner,
        remover: PathRemover | None = None,
        store: EntryStore | None = None,
    ) -> None:
        self.scanner = scanner
        self.remover = remover or PathRemover()
        self.store = store or EntryStore()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="leftovers")
        self._lock = threading.Lock()
        self._busy = False
        self._resetting = False

    @classmethod
    def from_settings(
        cls,
        registry: AppRegistry,
        locations: StandardLocations | None = None,
        settings: Settings | None = None,
        *,
        safe_mode: bool | None = None,
    ) -> LeftoversEngine:
        """Build an engine for the current host from user settings.

        Args:
            registry: Known applications.
            locations: Category roots; resolved from XDG variables if None.
            settings: Settings store; the singleton if None.
            safe_mode: Overrides the ``removal.safe_mode`` setting if given.
        """
        settings = settings or Settings.instance()
        locations = locations or StandardLocations.from_environment()
        if safe_mode is None:
            safe_mode = bool(settings.get("removal.safe_mode"))
        if safe_mode:
            log.info("Safe mode enabled: nothing will be deleted")
        return cls(
            Scanner.from_settings(registry, locations, settings),
            PathRemover(safe_mode=safe_mode),
        )

    # -- Status --

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def resetting(self) -> bool:
        return self._resetting

    def add_listener(self, listener: EngineListener) -> None:
        self.store.notifier.add(listener)

    def remove_listener(self, listener: EngineListener) -> None:
        self.store.notifier.remove(listener)

    # -- Operations --

    def start(self) -> Future:
        """Queue the initial scan."""
        return self.reset()

    def reset(self) -> Future:
        """Rescan everything and replace the store contents.

        The Future resolves to the number of entries found.
        """
        return self._submit("reset", self._reset_impl)

    def delete_data(self, name: str, categories: Category = Category.ALL) -> Future:
        """Delete the selected categories of one application.

        The Future resolves to the number of bytes freed.
        """
        return self._submit("delete_data", self._delete_data_impl, name, categories)

    def delete_unused_data(self, categories: Category = Category.ALL) -> Future:
        """Delete the selected categories of every application that is not installed.

        The Future resolves to the number of bytes freed.
        """
        return self._submit("delete_unused_data", self._delete_unused_data_impl, categories)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker after queued operations finish."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> LeftoversEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # -- Worker side --

    def _submit(self, label: str, fn: Callable[..., Any], *args: Any) -> Future:
        return self._executor.submit(self._run, label, fn, *args)

    def _run(self, label: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Run one operation under the mutation lock with the busy flag raised."""
        with self._lock:
            self._set_busy(True)
            try:
                return fn(*args)
            except Exception:
                log.exception("Operation '%s' failed", label)
                return None
            finally:
                self._set_busy(False)

    def _reset_impl(self) -> int:
        self.store.begin_reset()
        self._set_resetting(True)
        entries: dict[str, Entry] | None = None
        try:
            entries = self.scanner.scan()
        finally:
            if entries is None:
                # Scan failed: keep the previous rows but still close the bracket
                entries = {e.name: e for e in self.store.entries()}
            self.store.end_reset(entries)
            self.store.recalculate()
            self._set_resetting(False)
        return len(entries)

    def _delete_data_impl(self, name: str, categories: Category) -> int:
        entry = self.store.entry(name)
        if entry is None:
            log.warning("Store doesn't contain the '%s' entry", name)
            return 0

        freed, changed = self._clear_entry(entry, categories)
        self._finish(freed, changed)
        return freed

    def _delete_unused_data_impl(self, categories: Category) -> int:
        freed = 0
        changed = False
        for entry in self.store.entries():
            if entry.installed:
                continue
            entry_freed, entry_changed = self._clear_entry(entry, categories)
            freed += entry_freed
            changed = changed or entry_changed
        self._finish(freed, changed)
        return freed

    def _finish(self, freed: int, changed: bool) -> None:
        if freed > 0 or changed:
            self.store.recalculate()
        if freed > 0:
            log.info("Freed %d bytes", freed)
            self.store.notifier.emit("data_deleted", freed)

    def _clear_entry(self, entry: Entry, categories: Category) -> tuple[int, bool]:
        """Remove the selected categories of one entry and publish the change.

        A category is cleared only if every one of its paths was removed;
        otherwise it keeps its paths and size and contributes no freed bytes.

        Returns:
            (freed_bytes, whether the entry changed) tuple.
        """
        freed = 0
        fields: list[str] = []

        for category in categories.members():
            if entry.sizes[category] <= 0:
                continue
            result = self.remover.remove(entry.paths[category], on_error=self._on_deletion_error)
            if result.complete:
                entry.clear(category)
                freed += result.freed_bytes
                fields.append(category.size_field)
            else:
                log.warning(
                    "Could not fully delete %s data of '%s' (%d of %d paths failed)",
                    category.key,
                    entry.name,
                    len(result.failed),
                    len(result.failed) + len(result.removed),
                )

        if not entry.exists():
            self.store.remove(entry.name)
            return freed, True
        if fields:
            self.store.touch(entry.name, tuple(fields))
            return freed, True
        return freed, False

    def _on_deletion_error(self, path: str) -> None:
        self.store.notifier.emit("deletion_error", path)

    def _set_busy(self, busy: bool) -> None:
        self._busy = busy
        self.store.notifier.emit("busy_changed", busy)

    def _set_resetting(self, resetting: bool) -> None:
        self._resetting = resetting
        self.store.notifier.emit("resetting_changed", resetting)
