"""Per-application usage records and the read model built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from leftovers.models.category import CATEGORIES, Category


def _empty_paths() -> dict[Category, list[str]]:
    return {c: [] for c in CATEGORIES}


def _empty_sizes() -> dict[Category, int]:
    return {c: 0 for c in CATEGORIES}


@dataclass(slots=True)
class Entry:
    """Mutable record of one application's data on disk.

    Sizes are cached at scan time. They only change when a scan rebuilds
    the entry or when a deletion fully clears a category.
    """

    name: str
    title: str = ""
    icon: str = ""
    installed: bool = False
    paths: dict[Category, list[str]] = field(default_factory=_empty_paths)
    sizes: dict[Category, int] = field(default_factory=_empty_sizes)

    @property
    def display_title(self) -> str:
        return self.title or self.name

    @property
    def config_size(self) -> int:
        return self.sizes[Category.CONFIG]

    @property
    def cache_size(self) -> int:
        return self.sizes[Category.CACHE]

    @property
    def local_data_size(self) -> int:
        return self.sizes[Category.LOCAL_DATA]

    def exists(self) -> bool:
        """Whether any category still has data to account for."""
        return any(size > 0 for size in self.sizes.values())

    def add_path(self, category: Category, path: str, size: int) -> None:
        """Accumulate a path into a category (known applications)."""
        self.paths[category].append(path)
        self.sizes[category] += size

    def set_path(self, category: Category, path: str, size: int) -> None:
        """Make *path* the only path of a category (discovered applications)."""
        self.paths[category] = [path]
        self.sizes[category] = size

    def clear(self, category: Category) -> None:
        """Mark a category as fully removed."""
        self.paths[category] = []
        self.sizes[category] = 0

    def to_row(self) -> Row:
        return Row(
            name=self.name,
            title=self.display_title,
            icon=self.icon,
            installed=self.installed,
            config_size=self.config_size,
            cache_size=self.cache_size,
            local_data_size=self.local_data_size,
        )


@dataclass(frozen=True, slots=True)
class Row:
    """Immutable view of an entry handed to the presentation layer."""

    name: str
    title: str
    icon: str
    installed: bool
    config_size: int
    cache_size: int
    local_data_size: int

    @property
    def sort_key(self) -> str:
        """Unused applications first, then by display title."""
        return ("1" if self.installed else "0") + self.title

    @property
    def total_size(self) -> int:
        return self.config_size + self.cache_size + self.local_data_size

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "title": self.title,
            "icon": self.icon,
            "installed": self.installed,
            "config_size": self.config_size,
            "cache_size": self.cache_size,
            "local_data_size": self.local_data_size,
        }


@dataclass(frozen=True, slots=True)
class Totals:
    """Store-wide aggregates, always recomputed as a unit."""

    total_config_size: int = 0
    total_cache_size: int = 0
    total_local_data_size: int = 0
    unused_apps_count: int = 0
    unused_config_size: int = 0
    unused_cache_size: int = 0
    unused_local_data_size: int = 0

    @classmethod
    def from_entries(cls, entries: Iterable[Entry]) -> Totals:
        totals = dict.fromkeys(cls.__dataclass_fields__, 0)
        for e in entries:
            totals["total_config_size"] += e.config_size
            totals["total_cache_size"] += e.cache_size
            totals["total_local_data_size"] += e.local_data_size
            if not e.installed:
                totals["unused_apps_count"] += 1
                totals["unused_config_size"] += e.config_size
                totals["unused_cache_size"] += e.cache_size
                totals["unused_local_data_size"] += e.local_data_size
        return cls(**totals)

    @property
    def total_size(self) -> int:
        return self.total_config_size + self.total_cache_size + self.total_local_data_size

    @property
    def unused_size(self) -> int:
        return self.unused_config_size + self.unused_cache_size + self.unused_local_data_size

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}
