"""Registry of well-known applications."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Iterator

from leftovers.models.app import AppDescriptor

log = logging.getLogger(__name__)


class AppRegistry:
    """Ordered, read-only-after-load collection of known applications."""

    def __init__(self, apps: Iterable[AppDescriptor] = ()) -> None:
        self._apps: dict[str, AppDescriptor] = {}
        for app in apps:
            self.register(app)

    def register(self, app: AppDescriptor) -> None:
        """Register an application descriptor."""
        if app.name in self._apps:
            log.warning("Application '%s' already registered, skipping duplicate", app.name)
            return
        self._apps[app.name] = app
        log.debug("Registered known application: %s", app.name)

    def get(self, name: str) -> AppDescriptor | None:
        """Get a descriptor by application name."""
        return self._apps.get(name)

    def exclude_pattern(self) -> re.Pattern[str] | None:
        """Regex matching every path owned by a known application.

        The discovery pass uses it so directories already accounted for by
        the known pass are not counted twice.
        """
        paths = sorted({p.rstrip("/") for app in self._apps.values() for p in app.all_paths() if p})
        if not paths:
            return None
        return re.compile("^(?:" + "|".join(re.escape(p) for p in paths) + ")/?$")

    def __len__(self) -> int:
        return len(self._apps)

    def __iter__(self) -> Iterator[AppDescriptor]:
        return iter(self._apps.values())

    def __contains__(self, name: str) -> bool:
        return name in self._apps
