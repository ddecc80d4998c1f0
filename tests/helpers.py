"""Builders and recorders shared by tests."""

from __future__ import annotations

from pathlib import Path

from leftovers.core.engine import LeftoversEngine
from leftovers.core.events import EngineListener
from leftovers.core.registry import AppRegistry
from leftovers.core.remover import PathRemover
from leftovers.core.scanner import Scanner


def write_file(path: Path, size: int) -> Path:
    """Create *path* (and parents) holding *size* bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


def write_desktop(app_dir: Path, name: str, title: str = "", icon: str = "") -> Path:
    """Create a minimal desktop entry file."""
    lines = ["[Desktop Entry]", "Type=Application"]
    if title:
        lines.append(f"Name={title}")
    if icon:
        lines.append(f"Icon={icon}")
    path = app_dir / f"{name}.desktop"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def make_engine(locations, apps=(), safe_mode=False, scanner_cls=Scanner, **scanner_kwargs) -> LeftoversEngine:
    """Engine over *locations* with no icon lookup outside the test tree."""
    registry = AppRegistry(apps)
    scanner = scanner_cls(registry, locations, exclude=registry.exclude_pattern(), icon_templates=[], **scanner_kwargs)
    return LeftoversEngine(scanner, PathRemover(safe_mode=safe_mode))


class RecordingListener(EngineListener):
    """Listener that records every notification as an (event, *args) tuple."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def names(self) -> list[str]:
        return [e[0] for e in self.events]

    def of(self, event: str) -> list[tuple]:
        return [e[1:] for e in self.events if e[0] == event]

    def rows_reset_begin(self):
        self.events.append(("rows_reset_begin",))

    def rows_reset_end(self):
        self.events.append(("rows_reset_end",))

    def row_remove_begin(self, row, name):
        self.events.append(("row_remove_begin", row, name))

    def row_remove_end(self, row, name):
        self.events.append(("row_remove_end", row, name))

    def row_changed(self, row, fields):
        self.events.append(("row_changed", row, fields))

    def totals_changed(self, totals):
        self.events.append(("totals_changed", totals))

    def busy_changed(self, busy):
        self.events.append(("busy_changed", busy))

    def resetting_changed(self, resetting):
        self.events.append(("resetting_changed", resetting))

    def data_deleted(self, bytes_freed):
        self.events.append(("data_deleted", bytes_freed))

    def deletion_error(self, path):
        self.events.append(("deletion_error", path))
