"""Application inventory: known apps, discovered apps and their metadata."""

from __future__ import annotations

import configparser
import logging
import os
import re
from pathlib import Path
from typing import Callable, Sequence

from leftovers.core.locations import StandardLocations
from leftovers.core.probe import measure
from leftovers.core.registry import AppRegistry
from leftovers.models.category import CATEGORIES
from leftovers.models.entry import Entry
from leftovers.settings import DEFAULT_ICON_TEMPLATES, Settings

log = logging.getLogger(__name__)

_DESKTOP_SECTION = "Desktop Entry"

# Naming convention of independently packaged applications
DEFAULT_PREFIX = "harbour-"

SizeProbe = Callable[[str], int]


class Scanner:
    """Builds a fresh name-keyed collection of entries from the filesystem.

    Never deletes anything; the only filesystem access is stat calls,
    directory traversal and reading ``.desktop`` files.
    """

    def __init__(
        self,
        registry: AppRegistry,
        locations: StandardLocations,
        *,
        prefix: str = DEFAULT_PREFIX,
        exclude: re.Pattern[str] | None = None,
        icon_templates: Sequence[str] = DEFAULT_ICON_TEMPLATES,
        probe: SizeProbe = measure,
    ) -> None:
        self.registry = registry
        self.locations = locations
        self.prefix = prefix
        self.exclude = exclude
        self.icon_templates = tuple(icon_templates)
        self._probe = probe

    @classmethod
    def from_settings(
        cls,
        registry: AppRegistry,
        locations: StandardLocations,
        settings: Settings,
    ) -> Scanner:
        """Create a scanner configured from user settings.

        The exclusion pattern combines the registry's known paths with the
        optional ``discovery.exclude`` regex. An empty or non-string
        ``discovery.prefix`` would match every directory under the category
        roots, so it is replaced by the default prefix.
        """
        prefix = settings.get("discovery.prefix")
        if not isinstance(prefix, str) or not prefix:
            log.warning("Ignoring invalid discovery.prefix %r, using %r", prefix, DEFAULT_PREFIX)
            prefix = DEFAULT_PREFIX

        patterns: list[str] = []
        known = registry.exclude_pattern()
        if known is not None:
            patterns.append(known.pattern)
        extra = settings.get("discovery.exclude")
        if extra:
            try:
                re.compile(extra)
                patterns.append(extra)
            except re.error as e:
                log.warning("Ignoring invalid discovery.exclude pattern %r: %s", extra, e)
        exclude = re.compile("|".join(f"(?:{p})" for p in patterns)) if patterns else None

        return cls(
            registry,
            locations,
            prefix=prefix,
            exclude=exclude,
            icon_templates=settings.get("metadata.icon_templates"),
        )

    def scan(self) -> dict[str, Entry]:
        """Run the known pass, the discovery pass and metadata enrichment."""
        entries: dict[str, Entry] = {}
        self._scan_known(entries)
        self._scan_discovered(entries)
        self._enrich(entries)
        log.info("Scan found %d applications with data", len(entries))
        return entries

    def _scan_known(self, entries: dict[str, Entry]) -> None:
        """Accumulate every existing candidate path of each known application."""
        for app in self.registry:
            entry = Entry(name=app.name)
            for category in CATEGORIES:
                for path in app.paths(category):
                    if os.path.exists(path):
                        entry.add_path(category, path, self._probe(path))
            if entry.exists():
                log.debug("Found a known app '%s'", app.name)
                entries[app.name] = entry

    def _scan_discovered(self, entries: dict[str, Entry]) -> None:
        """Add directories following the naming convention under each category root.

        A discovered directory becomes the single path of its category,
        replacing whatever the known pass put there.
        """
        for category in CATEGORIES:
            root = self.locations.root(category)
            for item in _subdirectories(root, self.prefix):
                dirpath = str(item)
                if self.exclude is not None and self.exclude.search(dirpath):
                    continue
                size = self._probe(dirpath)
                entry = entries.get(item.name)
                if entry is None:
                    log.debug("Found an app by naming convention '%s'", item.name)
                    entry = entries[item.name] = Entry(name=item.name)
                entry.set_path(category, dirpath, size)

    def _enrich(self, entries: dict[str, Entry]) -> None:
        """Mark entries with a desktop file as installed and read title and icon."""
        for name, entry in entries.items():
            for app_dir in self.locations.application_dirs:
                desktop_path = app_dir / f"{name}.desktop"
                if desktop_path.is_file():
                    entry.installed = True
                    title, icon_name = _read_desktop_file(desktop_path)
                    entry.title = title
                    entry.icon = self._resolve_icon(icon_name or name)
                    break

    def _resolve_icon(self, icon_name: str) -> str:
        """Return the first existing icon file for *icon_name*, or ''."""
        if os.path.isabs(icon_name):
            return icon_name if os.path.isfile(icon_name) else ""
        for template in self.icon_templates:
            candidate = template.format(icon_name)
            if os.path.isfile(candidate):
                return candidate
        return ""


def _subdirectories(root: Path, prefix: str) -> list[Path]:
    """Immediate subdirectories of *root* whose names start with *prefix*."""
    try:
        return sorted(p for p in root.iterdir() if p.name.startswith(prefix) and p.is_dir())
    except OSError:
        log.debug("Cannot read directory: %s", root)
        return []


def _read_desktop_file(path: Path) -> tuple[str, str]:
    """Return the (Name, Icon) pair of a desktop entry file."""
    parser = configparser.RawConfigParser(strict=False, interpolation=None)
    parser.optionxform = str  # keys are case-sensitive
    try:
        parser.read(path, encoding="utf-8")
    except (configparser.MissingSectionHeaderError, UnicodeDecodeError) as e:
        log.warning("Could not parse desktop file %s: %s", path, e)
        return "", ""
    except configparser.ParsingError as e:
        # Raised after the whole file was read; valid lines are already loaded
        log.warning("Skipping malformed lines in desktop file %s: %s", path, e)
    except configparser.Error as e:
        log.warning("Could not parse desktop file %s: %s", path, e)
        return "", ""
    if not parser.has_section(_DESKTOP_SECTION):
        return "", ""
    section = parser[_DESKTOP_SECTION]
    return section.get("Name", ""), section.get("Icon", "")
