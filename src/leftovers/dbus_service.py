"""D-Bus service for frontend communication.

D-Bus methods use PascalCase per D-Bus convention, and type signatures
like "as" and "ias" are D-Bus protocol types, not Python syntax.

Mutating methods only queue work on the engine and return at once;
outcomes arrive as signals.
"""

from __future__ import annotations

import asyncio
import json
import logging

from dbus_next import BusType
from dbus_next.aio import MessageBus
from dbus_next.service import ServiceInterface, method, signal

from leftovers.core.app_loader import load_known_apps
from leftovers.core.engine import LeftoversEngine
from leftovers.core.events import EngineListener
from leftovers.core.registry import AppRegistry
from leftovers.core.tracker import UNUSED_TARGET, Tracker
from leftovers.models.category import Category
from leftovers.models.entry import Totals

log = logging.getLogger(__name__)

_BUS_NAME = "io.github.leftovers"
_OBJECT_PATH = "/io/github/leftovers"
_INTERFACE = "io.github.leftovers.Manager"


class _SignalBridge(EngineListener):
    """Re-emits engine notifications as D-Bus signals on the event loop thread."""

    def __init__(self, service: LeftoversDBusService, loop: asyncio.AbstractEventLoop) -> None:
        self._service = service
        self._loop = loop

    def _post(self, fn, *args) -> None:
        self._loop.call_soon_threadsafe(fn, *args)

    def rows_reset_end(self) -> None:
        self._post(self._service.EntriesReset)

    def row_remove_end(self, row: int, name: str) -> None:
        self._post(self._service.EntryRemoved, row, name)

    def row_changed(self, row: int, fields: tuple[str, ...]) -> None:
        self._post(self._service.EntryChanged, row, list(fields))

    def totals_changed(self, totals: Totals) -> None:
        self._post(self._service.TotalsChanged, json.dumps(totals.to_dict()))

    def busy_changed(self, busy: bool) -> None:
        self._post(self._service.BusyChanged, busy)

    def resetting_changed(self, resetting: bool) -> None:
        self._post(self._service.ResettingChanged, resetting)

    def data_deleted(self, bytes_freed: int) -> None:
        self._post(self._service.DataDeleted, bytes_freed)

    def deletion_error(self, path: str) -> None:
        self._post(self._service.DeletionError, path)


# noinspection PyPep8Naming
class LeftoversDBusService(ServiceInterface):
    """D-Bus service interface for Leftovers."""

    def __init__(self, engine: LeftoversEngine) -> None:
        super().__init__(_INTERFACE)
        self._engine = engine
        self._tracker = Tracker()

    def attach(self, loop: asyncio.AbstractEventLoop) -> None:
        """Start forwarding engine notifications as signals."""
        self._engine.add_listener(_SignalBridge(self, loop))

    @method()
    def ListEntries(self) -> "s":  # type: ignore[override]
        """All rows in store order, as JSON."""
        return json.dumps([row.to_dict() for row in self._engine.store.rows()])

    @method()
    def GetTotals(self) -> "s":  # type: ignore[override]
        """Aggregate totals as JSON."""
        return json.dumps(self._engine.store.totals.to_dict())

    @method()
    def GetStatus(self) -> "bb":  # type: ignore[override]
        """Current (busy, resetting) flags."""
        return [self._engine.busy, self._engine.resetting]

    @method()
    def Reset(self) -> "b":  # type: ignore[override]
        """Queue a full rescan."""
        self._engine.reset()
        return True

    @method()
    def DeleteData(self, name: "s", categories: "as") -> "b":  # type: ignore[override]
        """Queue deletion of one application's data. False if a category is unknown."""
        selection = self._parse_categories(categories)
        if selection is None:
            return False
        future = self._engine.delete_data(name, selection)
        future.add_done_callback(lambda f: self._record(name, selection, f.result()))
        return True

    @method()
    def DeleteUnusedData(self, categories: "as") -> "b":  # type: ignore[override]
        """Queue deletion of every uninstalled application's data."""
        selection = self._parse_categories(categories)
        if selection is None:
            return False
        future = self._engine.delete_unused_data(selection)
        future.add_done_callback(lambda f: self._record(UNUSED_TARGET, selection, f.result()))
        return True

    @method()
    def GetStats(self, period: "s") -> "s":  # type: ignore[override]
        """Deletion statistics for a time period."""
        return json.dumps(self._tracker.get_stats(period))

    @signal()
    def EntriesReset(self):  # type: ignore[override]
        """Every row was replaced; clients should call ListEntries again."""

    @signal()
    def EntryRemoved(self, row: int, name: str) -> "is":  # type: ignore[override]
        return [row, name]

    @signal()
    def EntryChanged(self, row: int, fields: list[str]) -> "ias":  # type: ignore[override]
        return [row, fields]

    @signal()
    def TotalsChanged(self, totals_json: str) -> "s":  # type: ignore[override]
        return totals_json

    @signal()
    def BusyChanged(self, busy: bool) -> "b":  # type: ignore[override]
        return busy

    @signal()
    def ResettingChanged(self, resetting: bool) -> "b":  # type: ignore[override]
        return resetting

    @signal()
    def DataDeleted(self, bytes_freed: int) -> "t":  # type: ignore[override]
        return bytes_freed

    @signal()
    def DeletionError(self, path: str) -> "s":  # type: ignore[override]
        return path

    @staticmethod
    def _parse_categories(categories: list[str]) -> Category | None:
        try:
            return Category.parse(categories) if categories else Category.ALL
        except ValueError as e:
            log.warning("Rejected deletion request: %s", e)
            return None

    def _record(self, target: str, selection: Category, freed: int | None) -> None:
        if freed and not self._engine.remover.safe_mode:
            self._tracker.record(target, selection, freed)


async def run_service(safe_mode: bool | None = None) -> None:
    """Start the D-Bus service and the initial scan."""
    registry = AppRegistry()
    load_known_apps(registry)
    engine = LeftoversEngine.from_settings(registry, safe_mode=safe_mode)

    bus = await MessageBus(bus_type=BusType.SESSION).connect()
    service = LeftoversDBusService(engine)
    service.attach(asyncio.get_running_loop())
    bus.export(_OBJECT_PATH, service)
    await bus.request_name(_BUS_NAME)
    log.info("D-Bus service started on %s", _BUS_NAME)

    engine.start()
    try:
        await bus.wait_for_disconnect()
    finally:
        engine.shutdown(wait=False)


def start_service(safe_mode: bool | None = None) -> None:
    """Entry point to start the D-Bus service."""
    asyncio.run(run_service(safe_mode))
