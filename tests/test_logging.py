"""Tests for the heap event log.

Allocators record every operation, and every rejected request, as a
structured entry so an experiment can be inspected after the fact.
"""

import pytest

from py_heap.logging import HeapEvent, LogEntry, Logger, LogLevel
from py_heap.memory.allocator import FirstFitAllocator
from py_heap.memory.errors import InvalidHandleError, OutOfSpaceError
from py_heap.storage import RawStorage

CAPACITY = 64


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry structure."""

    def test_entry_str(self) -> None:
        """String form should include level, source, event, and message."""
        entry = LogEntry(
            level=LogLevel.WARNING,
            event=HeapEvent.OUT_OF_SPACE,
            message="no gap",
            source="best-fit",
        )
        assert str(entry) == "[WARNING] best-fit/out_of_space: no gap"


class TestLogger:
    """Verify the logger itself."""

    def test_log_stores_entries(self) -> None:
        """Logged entries should be retrievable in order."""
        logger = Logger()
        logger.log(LogLevel.INFO, HeapEvent.ALLOCATE, "first", source="test")
        logger.log(LogLevel.INFO, HeapEvent.RELEASE, "second", source="test")
        assert [e.message for e in logger.entries] == ["first", "second"]
        assert len(logger) == 2

    def test_entries_returns_copy(self) -> None:
        """Mutating the returned list should not affect the log."""
        logger = Logger()
        logger.log(LogLevel.INFO, HeapEvent.ALLOCATE, "x", source="test")
        logger.entries.clear()
        assert len(logger) == 1

    def test_filter_by_level_event_and_source(self) -> None:
        """Filters should combine."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, HeapEvent.ALLOCATE, "a", source="first-fit")
        logger.log(LogLevel.WARNING, HeapEvent.OUT_OF_SPACE, "b", source="first-fit")
        logger.log(LogLevel.WARNING, HeapEvent.OUT_OF_SPACE, "c", source="best-fit")
        assert len(logger.filter(min_level=LogLevel.WARNING)) == 2
        assert len(logger.filter(event=HeapEvent.ALLOCATE)) == 1
        matched = logger.filter(min_level=LogLevel.INFO, source="best-fit")
        assert [e.message for e in matched] == ["c"]

    def test_clear(self) -> None:
        """Clear should empty the log."""
        logger = Logger()
        logger.log(LogLevel.INFO, HeapEvent.COMPACT, "x", source="test")
        logger.clear()
        assert logger.entries == []


class TestAllocatorLogging:
    """Verify allocators write to an attached logger."""

    def test_operations_are_logged(self) -> None:
        """Allocate, release, and compact should each leave an entry."""
        logger = Logger()
        allocator = FirstFitAllocator(storage=RawStorage(CAPACITY), logger=logger)
        handle = allocator.allocate(8)
        allocator.release(handle)
        allocator.compact()
        events = [e.event for e in logger.entries]
        assert events == [HeapEvent.ALLOCATE, HeapEvent.RELEASE, HeapEvent.COMPACT]
        assert all(e.source == "first-fit" for e in logger.entries)

    def test_rejections_are_logged_as_warnings(self) -> None:
        """Failed requests should be logged before the error propagates."""
        logger = Logger()
        allocator = FirstFitAllocator(storage=RawStorage(CAPACITY), logger=logger)
        handle = allocator.allocate(8)
        allocator.release(handle)
        with pytest.raises(OutOfSpaceError):
            allocator.allocate(CAPACITY + 1)
        with pytest.raises(InvalidHandleError):
            allocator.release(handle)
        warnings = logger.filter(min_level=LogLevel.WARNING)
        assert [e.event for e in warnings] == [HeapEvent.OUT_OF_SPACE, HeapEvent.INVALID_HANDLE]

    def test_no_logger_is_fine(self) -> None:
        """An allocator without a logger should work normally."""
        allocator = FirstFitAllocator(storage=RawStorage(CAPACITY))
        allocator.release(allocator.allocate(4))
        assert allocator.logger is None
