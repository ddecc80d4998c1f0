"""Observable collection of per-application entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from leftovers.core.events import Notifier
from leftovers.models.entry import Entry, Row, Totals


@dataclass(frozen=True)
class _Snapshot:
    rows: tuple[Row, ...] = ()
    index: Mapping[str, int] = field(default_factory=dict)
    totals: Totals = field(default_factory=Totals)


class EntryStore:
    """Name-keyed entries in insertion order, plus aggregate totals.

    Two sides:

    * The read side (``len``, ``row``, ``rows``, ``find``, ``totals``)
      works on an immutable snapshot that is swapped in one assignment
      after each mutation. Readers never lock and never see a
      half-applied change.
    * The write side (``entry``, ``entries``, ``begin_reset``,
      ``end_reset``, ``remove``, ``touch``, ``recalculate``) mutates
      live entries. Only one writer may run at a time; the engine
      guarantees that.
    """

    def __init__(self, notifier: Notifier | None = None) -> None:
        self.notifier = notifier or Notifier()
        self._entries: dict[str, Entry] = {}
        self._snapshot = _Snapshot()

    # -- Read side --

    def __len__(self) -> int:
        return len(self._snapshot.rows)

    def row(self, index: int) -> Row:
        return self._snapshot.rows[index]

    def rows(self) -> tuple[Row, ...]:
        return self._snapshot.rows

    def find(self, name: str) -> Row | None:
        snap = self._snapshot
        index = snap.index.get(name)
        return snap.rows[index] if index is not None else None

    def row_index(self, name: str) -> int | None:
        return self._snapshot.index.get(name)

    @property
    def totals(self) -> Totals:
        return self._snapshot.totals

    # -- Write side --

    def entry(self, name: str) -> Entry | None:
        """Live entry for *name*, for mutation by the engine."""
        return self._entries.get(name)

    def entries(self) -> list[Entry]:
        """Live entries in row order."""
        return list(self._entries.values())

    def begin_reset(self) -> None:
        self.notifier.emit("rows_reset_begin")

    def end_reset(self, entries: Mapping[str, Entry]) -> None:
        """Discard every entry and take *entries* in their iteration order."""
        self._entries = dict(entries)
        self._publish()
        self.notifier.emit("rows_reset_end")

    def remove(self, name: str) -> int:
        """Drop an entry and return the row it occupied."""
        row = self._snapshot.index[name]
        self.notifier.emit("row_remove_begin", row, name)
        del self._entries[name]
        self._publish()
        self.notifier.emit("row_remove_end", row, name)
        return row

    def touch(self, name: str, fields: tuple[str, ...]) -> int:
        """Publish changed fields of an entry and return its row."""
        self._publish()
        row = self._snapshot.index[name]
        self.notifier.emit("row_changed", row, fields)
        return row

    def recalculate(self) -> Totals:
        """Recompute every aggregate from scratch and announce the result."""
        self._publish()
        totals = self._snapshot.totals
        self.notifier.emit("totals_changed", totals)
        return totals

    def _publish(self) -> None:
        # Rows and totals come from the same entries so readers never see them disagree
        entries = list(self._entries.values())
        rows = tuple(e.to_row() for e in entries)
        index = {row.name: i for i, row in enumerate(rows)}
        self._snapshot = _Snapshot(rows=rows, index=index, totals=Totals.from_entries(entries))
