"""Known application discovery and loading."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from leftovers.core.registry import AppRegistry
from leftovers.models.app import AppDescriptor
from leftovers.settings import Settings
from leftovers.utils import xdg_cache_home, xdg_config_home, xdg_data_home

log = logging.getLogger(__name__)

# Standard descriptor search paths
_SYSTEM_APPS_DIR = Path("/usr/share/leftovers/apps")
_USER_APPS_DIR = xdg_data_home() / "leftovers" / "apps"

_CATEGORY_KEYS = ("config", "cache", "local_data")


def resolve_template(template: str) -> str:
    """Turn a path template into an absolute path."""
    path = (
        template.replace("{config}", str(xdg_config_home()))
        .replace("{cache}", str(xdg_cache_home()))
        .replace("{data}", str(xdg_data_home()))
        .replace("{home}", str(Path.home()))
    )
    return os.path.normpath(os.path.expandvars(os.path.expanduser(path)))


def descriptor_from_dict(raw: dict[str, Any]) -> AppDescriptor:
    """Build a resolved descriptor from a raw record.

    Raises:
        ValueError: If the record is malformed.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Descriptor must be an object, got {type(raw).__name__}")
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise ValueError("Descriptor has no name")

    resolved: dict[str, tuple[str, ...]] = {}
    for key in _CATEGORY_KEYS:
        templates = raw.get(key, [])
        if not isinstance(templates, list) or not all(isinstance(t, str) and t for t in templates):
            raise ValueError(f"Descriptor '{name}': '{key}' must be a list of non-empty strings")
        resolved[key] = tuple(resolve_template(t) for t in templates)

    return AppDescriptor(
        name=name,
        config_paths=resolved["config"],
        cache_paths=resolved["cache"],
        local_data_paths=resolved["local_data"],
    )


def _load_builtin_descriptors() -> list[AppDescriptor]:
    """Load descriptors from the leftovers.known_apps table."""
    from leftovers.known_apps import KNOWN_APPS

    return _descriptors_from_records(KNOWN_APPS, "built-in table")


def _descriptors_from_records(records: list[Any], origin: str) -> list[AppDescriptor]:
    found: list[AppDescriptor] = []
    for raw in records:
        try:
            found.append(descriptor_from_dict(raw))
        except ValueError as e:
            log.warning("Skipping invalid descriptor in %s: %s", origin, e)
    return found


def _load_descriptors_from_directory(directory: Path) -> list[AppDescriptor]:
    """Load descriptors from every ``*.json`` file in a directory.

    A file holds either a single descriptor object or a list of them.
    """
    if not directory.is_dir():
        return []

    found: list[AppDescriptor] = []
    for path in sorted(directory.glob("*.json")):
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            log.exception("Failed to read descriptor file: %s", path)
            continue
        records = data if isinstance(data, list) else [data]
        found.extend(_descriptors_from_records(records, str(path)))
    return found


def _get_settings_registry_paths(settings: Settings) -> list[Path]:
    """Read additional descriptor directories from user settings."""
    paths = settings.get("registry.paths", [])
    if not isinstance(paths, list):
        log.warning("Ignoring registry.paths setting: expected a list")
        return []
    return [Path(os.path.expanduser(p)) for p in paths if isinstance(p, str)]


def load_known_apps(registry: AppRegistry, settings: Settings | None = None) -> None:
    """Discover and register all known applications.

    Searches in order: built-in, system-wide, user-local, settings-specified.
    The first descriptor registered for a name wins.
    """
    settings = settings or Settings.instance()
    descriptors: list[AppDescriptor] = []

    # 1. Built-in table
    descriptors.extend(_load_builtin_descriptors())

    # 2. System-wide descriptors
    descriptors.extend(_load_descriptors_from_directory(_SYSTEM_APPS_DIR))

    # 3. User-local descriptors
    descriptors.extend(_load_descriptors_from_directory(_USER_APPS_DIR))

    # 4. Settings-specified paths
    for path in _get_settings_registry_paths(settings):
        descriptors.extend(_load_descriptors_from_directory(path))

    for descriptor in descriptors:
        registry.register(descriptor)

    log.info("Loaded %d known applications", len(registry))
