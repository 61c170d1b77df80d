"""Log reconciliation for deployment stages.

Two delivery modes are supported, one per deployment run:

- Push: live log lines arrive at any time into a single ``LogWindow`` for the
  whole run. Lines are released up to a timestamp watermark so that lines of
  a later stage are not printed inside an earlier stage's group.
- Pull: every stage log fetch returns the stage's full history. ``new_since``
  picks out the lines not emitted yet using the integer log id as a cursor.
"""

from __future__ import annotations

from datetime import datetime

from pagesdeploy.lib.logging_config import get_logger
from pagesdeploy.models.deployment import LogEntry, StageLogSnapshot

logger = get_logger(__name__)


class LogWindow:
    """Buffer of pushed log lines waiting to be emitted.

    Lines are kept in arrival order and never reordered. Delivery order can
    differ slightly from timestamp order, so the release boundary is the first
    buffered line newer than the watermark rather than a sorted cut.
    """

    def __init__(self) -> None:
        self._entries: list[LogEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def enqueue(self, entry: LogEntry) -> None:
        """Add a pushed log line to the end of the buffer."""
        self._entries.append(entry)

    def peek(self, until: datetime | None = None) -> int:
        """Return how many lines ``flush(until)`` would release.

        Args:
            until: Watermark. Lines with a timestamp at or before it are
                released. None releases every buffered line.
        """
        if until is None:
            return len(self._entries)
        for index, entry in enumerate(self._entries):
            if entry.timestamp > until:
                return index
        return len(self._entries)

    def flush(self, until: datetime | None = None) -> list[LogEntry]:
        """Remove and return the lines at or before the watermark, in order."""
        count = self.peek(until)
        released = self._entries[:count]
        del self._entries[:count]
        logger.debug(
            f"Flushed {count} log lines, {len(self._entries)} remain buffered"
        )
        return released


def last_log_id(snapshot: StageLogSnapshot | None) -> int | None:
    """Return the highest log id of a snapshot, or None if it has no lines."""
    if snapshot is None:
        return None
    ids = [entry.id for entry in snapshot.data if entry.id is not None]
    return max(ids) if ids else None


def new_since(snapshot: StageLogSnapshot, last_id: int | None) -> list[LogEntry]:
    """Return the lines of a stage snapshot newer than ``last_id``.

    Args:
        snapshot: Full log history of a stage
        last_id: Highest log id already emitted, None if nothing was

    Returns:
        Whole snapshot when nothing was emitted, nothing when the snapshot
        ends at ``last_id``, otherwise lines with a greater id.
    """
    if last_id is None:
        return list(snapshot.data)
    if snapshot.end == last_id:
        return []
    return [
        entry for entry in snapshot.data if entry.id is not None and entry.id > last_id
    ]
