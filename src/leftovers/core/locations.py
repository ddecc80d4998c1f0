"""Platform-standard data locations."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from leftovers.models.category import Category
from leftovers.utils import xdg_cache_home, xdg_config_home, xdg_data_dirs, xdg_data_home


@dataclass(frozen=True)
class StandardLocations:
    """Category roots and application descriptor directories of the host."""

    config: Path
    cache: Path
    data: Path
    application_dirs: tuple[Path, ...] = field(default_factory=tuple)

    @classmethod
    def from_environment(cls) -> StandardLocations:
        """Resolve locations from the XDG base directory variables."""
        data_home = xdg_data_home()
        app_dirs = [data_home / "applications"]
        app_dirs.extend(d / "applications" for d in xdg_data_dirs())
        return cls(
            config=xdg_config_home(),
            cache=xdg_cache_home(),
            data=data_home,
            application_dirs=tuple(app_dirs),
        )

    def root(self, category: Category) -> Path:
        """Root directory scanned for a single category."""
        if category is Category.CONFIG:
            return self.config
        if category is Category.CACHE:
            return self.cache
        if category is Category.LOCAL_DATA:
            return self.data
        raise ValueError(f"Not a single category: {category}")
