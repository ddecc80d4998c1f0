"""Data category selection."""

from __future__ import annotations

from enum import Flag, auto
from typing import Iterable


class Category(Flag):
    """Kind of application-owned data. Members combine into a selection set."""

    CONFIG = auto()
    CACHE = auto()
    LOCAL_DATA = auto()
    ALL = CONFIG | CACHE | LOCAL_DATA

    @property
    def key(self) -> str:
        """Short name used on the command line and over D-Bus."""
        return _KEYS[self]

    @property
    def size_field(self) -> str:
        """Name of the matching size field on a row."""
        return f"{self.key}_size"

    @classmethod
    def parse(cls, names: Iterable[str]) -> Category:
        """Build a selection from short names ('config', 'cache', 'local_data' or 'all').

        An empty iterable selects nothing.

        Raises:
            ValueError: If a name is not recognised.
        """
        selection = cls(0)
        for name in names:
            key = name.strip().lower().replace("-", "_")
            if key == "all":
                selection |= cls.ALL
            elif key == "data":
                selection |= cls.LOCAL_DATA
            elif key in _BY_KEY:
                selection |= _BY_KEY[key]
            else:
                raise ValueError(f"Unknown data category: {name!r}")
        return selection

    def members(self) -> tuple[Category, ...]:
        """Single categories contained in this selection, in canonical order."""
        return tuple(c for c in CATEGORIES if c in self)


CATEGORIES: tuple[Category, ...] = (Category.CONFIG, Category.CACHE, Category.LOCAL_DATA)

_KEYS = {
    Category.CONFIG: "config",
    Category.CACHE: "cache",
    Category.LOCAL_DATA: "local_data",
    Category.ALL: "all",
}
_BY_KEY = {v: k for k, v in _KEYS.items()}
