"""Tracks freed space across deletions."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from leftovers.models.category import Category
from leftovers.storage import load_history, save_history

log = logging.getLogger(__name__)

# Target recorded for bulk deletions of uninstalled applications
UNUSED_TARGET = "*unused*"


class Tracker:
    """Records completed deletions and aggregates them over time."""

    def record(self, target: str, categories: Category, bytes_freed: int) -> None:
        """Append one deletion to the persistent history.

        Args:
            target: Application name, or UNUSED_TARGET for bulk deletions.
            categories: Categories that were requested.
            bytes_freed: Bytes actually freed; zero-byte deletions are not stored.
        """
        if bytes_freed <= 0:
            return

        history = load_history()
        history["sessions"].append(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "target": target,
                "categories": [c.key for c in categories.members()],
                "bytes_freed": bytes_freed,
            }
        )
        save_history(history)
        log.info("Recorded deletion: %d bytes freed from %s", bytes_freed, target)

    def get_last_deletion_time(self) -> str | None:
        """Return ISO timestamp of the most recent deletion, or None."""
        sessions = load_history().get("sessions", [])
        return sessions[-1]["timestamp"] if sessions else None

    def get_stats(self, period: str = "all") -> dict[str, Any]:
        """Get aggregated statistics for a time period.

        Args:
            period: One of 'today', 'week', 'month', 'all'.
        """
        all_sessions = load_history().get("sessions", [])

        match period:
            case "today":
                cutoff = _start_of_today()
            case "week":
                cutoff = _start_of_today() - timedelta(days=7)
            case "month":
                cutoff = _start_of_today() - timedelta(days=30)
            case _:
                cutoff = None

        if cutoff is not None:
            sessions = [s for s in all_sessions if datetime.fromisoformat(s["timestamp"]) >= cutoff]
        else:
            sessions = all_sessions

        per_target: dict[str, int] = {}
        for s in sessions:
            per_target[s["target"]] = per_target.get(s["target"], 0) + s.get("bytes_freed", 0)

        return {
            "period": period,
            "bytes_freed": sum(s.get("bytes_freed", 0) for s in sessions),
            "deletion_count": len(sessions),
            "lifetime_bytes_freed": sum(s.get("bytes_freed", 0) for s in all_sessions),
            "per_target": per_target,
        }


def _start_of_today() -> datetime:
    """Return the start of the current UTC day."""
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)
