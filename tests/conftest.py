"""Shared test fixtures."""

from __future__ import annotations

import pytest

import leftovers.storage as storage
from leftovers.core.locations import StandardLocations
from leftovers.models.app import AppDescriptor
from leftovers.settings import Settings
from tests.helpers import write_desktop, write_file


@pytest.fixture
def isolate_storage(tmp_path, monkeypatch):
    """Redirect storage to a temp directory."""
    data_dir = tmp_path / "leftovers_data"
    data_dir.mkdir()
    history_file = data_dir / "history.json"
    monkeypatch.setattr(storage, "HISTORY_FILE", history_file)
    monkeypatch.setattr(storage, "_DATA_DIR", data_dir)
    return history_file


@pytest.fixture
def locations(tmp_path, monkeypatch) -> StandardLocations:
    """Fake XDG tree with empty config, cache, data and applications directories."""
    home = tmp_path / "home"
    config = home / ".config"
    cache = home / ".cache"
    data = home / ".local" / "share"
    system_apps = tmp_path / "usr" / "share" / "applications"
    for d in (config, cache, data, data / "applications", system_apps):
        d.mkdir(parents=True)

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config))
    monkeypatch.setenv("XDG_CACHE_HOME", str(cache))
    monkeypatch.setenv("XDG_DATA_HOME", str(data))
    monkeypatch.setenv("XDG_DATA_DIRS", str(tmp_path / "usr" / "share"))

    return StandardLocations(
        config=config,
        cache=cache,
        data=data,
        application_dirs=(data / "applications", system_apps),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings backed by a file in the temp directory."""
    return Settings(tmp_path / "settings" / "settings.json")


@pytest.fixture
def world(locations):
    """A known app 'foo', an unused discovered app and an installed discovered app."""
    foo_cfg = write_file(locations.config / "foo.conf", 500)
    write_file(locations.config / "harbour-old" / "settings.ini", 10)
    write_file(locations.cache / "harbour-old" / "blob", 20)
    write_file(locations.data / "harbour-old" / "db.sqlite", 30)
    write_file(locations.cache / "harbour-new" / "blob", 40)
    write_desktop(locations.application_dirs[0], "foo", title="Foo")
    write_desktop(locations.application_dirs[0], "harbour-new", title="New App")
    apps = [AppDescriptor(name="foo", config_paths=(str(foo_cfg),))]
    return locations, apps
