"""Known application descriptor."""

from __future__ import annotations

from dataclasses import dataclass, field

from leftovers.models.category import Category


@dataclass(frozen=True)
class AppDescriptor:
    """A well-known application and the paths it may own.

    Paths are absolute and already resolved; the scanner never expands
    templates itself.
    """

    name: str
    config_paths: tuple[str, ...] = field(default_factory=tuple)
    cache_paths: tuple[str, ...] = field(default_factory=tuple)
    local_data_paths: tuple[str, ...] = field(default_factory=tuple)

    def paths(self, category: Category) -> tuple[str, ...]:
        """Candidate paths for a single category."""
        if category is Category.CONFIG:
            return self.config_paths
        if category is Category.CACHE:
            return self.cache_paths
        if category is Category.LOCAL_DATA:
            return self.local_data_paths
        raise ValueError(f"Not a single category: {category}")

    def all_paths(self) -> tuple[str, ...]:
        return self.config_paths + self.cache_paths + self.local_data_paths
