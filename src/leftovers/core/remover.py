"""Filesystem removal of application data paths."""

from __future__ import annotations

import logging
import os
import shutil
from typing import Callable, Sequence

from leftovers.core.probe import measure
from leftovers.models.removal_result import RemovalResult

log = logging.getLogger(__name__)

ErrorCallback = Callable[[str], None]  # (path)


class PathRemover:
    """Deletes files and directory trees, reporting bytes freed.

    In safe mode every path is measured and logged as deleted, but nothing
    is touched on disk.
    """

    def __init__(self, *, safe_mode: bool = False) -> None:
        self.safe_mode = safe_mode

    def remove(self, paths: Sequence[str], on_error: ErrorCallback | None = None) -> RemovalResult:
        """Remove each path independently.

        Every path is measured before deletion and its size counted only if
        the removal succeeds. Failures fire *on_error* and do not stop the
        remaining paths. If any path is empty nothing is deleted at all.
        """
        if any(not p for p in paths):
            log.critical("One of provided paths is empty, refusing to delete: %r", list(paths))
            return RemovalResult(aborted=True)

        result = RemovalResult()
        for path in paths:
            size = measure(path)

            if self.safe_mode:
                log.debug("SAFE MODE: Deleted %d bytes '%s'", size, path)
                result.freed_bytes += size
                result.removed.append(path)
                continue

            if _remove_path(path):
                log.debug("Deleted %d bytes '%s'", size, path)
                result.freed_bytes += size
                result.removed.append(path)
            else:
                result.failed.append(path)
                if on_error:
                    on_error(path)

        return result


def _remove_path(path: str) -> bool:
    """Delete a directory tree or a single file. Returns False on failure."""
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        elif os.path.isfile(path) or os.path.islink(path):
            os.unlink(path)
        else:
            log.warning("Error deleting '%s': not a file or directory", path)
            return False
    except OSError as e:
        log.warning("Error deleting '%s': %s", path, e)
        return False
    return True
