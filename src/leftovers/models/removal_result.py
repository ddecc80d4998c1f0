"""Removal result dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class RemovalResult:
    """Outcome of removing a list of paths."""

    freed_bytes: int = 0
    removed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def complete(self) -> bool:
        """True when every requested path was removed."""
        return not self.aborted and not self.failed
