"""Heap event log — an audit trail of allocator activity.

Every allocator can be handed a ``Logger``.  Each allocate, release and
compaction appends a structured entry, and so does every rejected
request.  Reading the log back answers questions like "which request
ran out of space?" or "how many compactions happened?" without
re-running the experiment.

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **HeapEvent** — what kind of operation produced the entry.
- **LogEntry** — a single immutable record.
- **Logger** — an append-only buffer with filtering and clearing.

Design choices:
    - **IntEnum for levels** so they compare naturally with ``<``.
    - **StrEnum for events** so they read cleanly in f-strings and JSON.
    - **Frozen dataclass for entries** — log records should be immutable.
    - **Filter returns a list, not a generator** — the log is typically
      small and callers usually want to iterate multiple times.
"""

from dataclasses import dataclass
from enum import IntEnum, StrEnum


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


class HeapEvent(StrEnum):
    """The allocator operation an entry describes."""

    ALLOCATE = "allocate"
    RELEASE = "release"
    COMPACT = "compact"
    OUT_OF_SPACE = "out_of_space"
    INVALID_HANDLE = "invalid_handle"
    INVALID_REQUEST = "invalid_request"


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        event: The operation that produced the entry.
        message: A human-readable description of what happened.
        source: The allocator that generated it (its policy name).

    """

    level: LogLevel
    event: HeapEvent
    message: str
    source: str

    def __str__(self) -> str:
        """Format as ``[LEVEL] source/event: message``."""
        return f"[{self.level.name}] {self.source}/{self.event}: {self.message}"


class Logger:
    """Append-only log buffer with filtering."""

    def __init__(self) -> None:
        """Create an empty logger."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        event: HeapEvent,
        message: str,
        *,
        source: str,
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            event: Which operation produced it.
            message: Human-readable event description.
            source: Allocator that generated the event.

        """
        self._entries.append(LogEntry(level=level, event=event, message=message, source=source))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        event: HeapEvent | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching every given criterion.

        Args:
            min_level: If set, only return entries at or above this level.
            event: If set, only return entries for this event.
            source: If set, only return entries from this source.

        Returns:
            A filtered list of log entries.

        """
        result = list(self._entries)
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if event is not None:
            result = [e for e in result if e.event is event]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()

    def __len__(self) -> int:
        """Return the number of entries."""
        return len(self._entries)
