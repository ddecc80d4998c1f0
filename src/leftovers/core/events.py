"""Change notifications for presentation layers."""

from __future__ import annotations

import logging
import threading

from leftovers.models.entry import Totals

log = logging.getLogger(__name__)


class EngineListener:
    """Receives store and engine notifications.

    Every method is a no-op; subclasses override what they need. Methods
    are called on the engine's worker thread, so GUI frontends must hand
    them over to their own main loop (``GLib.idle_add``,
    ``loop.call_soon_threadsafe``, ...).
    """

    def rows_reset_begin(self) -> None:
        """All rows are about to be replaced."""

    def rows_reset_end(self) -> None:
        """Rows were replaced; re-read everything."""

    def row_remove_begin(self, row: int, name: str) -> None:
        """Row *row* is about to disappear."""

    def row_remove_end(self, row: int, name: str) -> None:
        """Row *row* is gone; later rows shifted up by one."""

    def row_changed(self, row: int, fields: tuple[str, ...]) -> None:
        """Named fields of row *row* have new values."""

    def totals_changed(self, totals: Totals) -> None:
        """Aggregate totals were recomputed."""

    def busy_changed(self, busy: bool) -> None:
        pass

    def resetting_changed(self, resetting: bool) -> None:
        pass

    def data_deleted(self, bytes_freed: int) -> None:
        """An operation freed *bytes_freed* bytes."""

    def deletion_error(self, path: str) -> None:
        """*path* could not be deleted."""


class Notifier:
    """Fans notifications out to registered listeners.

    A listener that raises is logged and skipped; it never interrupts the
    operation that produced the event.
    """

    def __init__(self) -> None:
        self._listeners: list[EngineListener] = []
        self._lock = threading.Lock()

    def add(self, listener: EngineListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove(self, listener: EngineListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def emit(self, event: str, *args: object) -> None:
        """Call ``listener.<event>(*args)`` on every listener."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                getattr(listener, event)(*args)
            except Exception:
                log.exception("Listener %r failed handling '%s'", listener, event)
