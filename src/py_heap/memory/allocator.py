"""Heap allocator — contiguous blocks handed out through handles.

The heap is a fixed run of cells (``RawStorage``).  Clients ask for
``n`` contiguous cells and get back a ``Handle``; later they give the
handle back to release the cells.  Between those two calls the block
may move (compaction), but the handle stays valid.

The allocator owns two views of the same blocks:

- A **block list** sorted by address.  Free gaps are derived from it
  on demand (they are whatever the blocks don't cover), and compaction
  walks it front to back.
- A **handle table** mapping each handle id to its block.  Resolving a
  handle is one dict lookup; compaction only rewrites the addresses
  stored in the blocks, never the table keys.

Free space is *never* stored.  Keeping a separate free list would mean
two sources of truth that could drift apart; recomputing the gaps from
the sorted block list is linear and always right.

Which gap a new block goes into is decided by a pluggable
``PlacementPolicy`` (first fit or best fit).  ``FirstFitAllocator`` and
``BestFitAllocator`` are the same allocator with the policy fixed.

Invariants (checked by ``verify()``):
    - Blocks are sorted by address and never overlap.
    - Every block lies inside ``[0, capacity)`` and has length >= 1.
    - The handle table and the block list hold exactly the same blocks.

Every mutating operation validates its input before changing anything,
so a rejected call leaves the heap exactly as it was.
"""

from __future__ import annotations

from bisect import bisect_left, insort
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import StrEnum
from itertools import count

from py_heap.logging import HeapEvent, Logger, LogLevel
from py_heap.memory.errors import (
    HeapCorruptionError,
    InvalidHandleError,
    InvalidRequestError,
    OutOfSpaceError,
)
from py_heap.memory.handle import Handle
from py_heap.memory.placement import BestFitPolicy, FirstFitPolicy, Gap, PlacementPolicy
from py_heap.storage import RawStorage


@dataclass(eq=False)
class Block:
    """The allocator's record of one live block.

    Only ``address`` ever changes, and only during compaction.
    """

    handle: Handle
    address: int
    length: int

    @property
    def end(self) -> int:
        """Return the first address after the block."""
        return self.address + self.length


def _by_address(block: Block) -> int:
    return block.address


class RangeStatus(StrEnum):
    """Whether a layout range is in use."""

    FREE = "free"
    ALLOCATED = "allocated"


@dataclass(frozen=True)
class LayoutRange:
    """One entry of ``Allocator.describe_layout()``.

    Attributes:
        start: First address of the range.
        length: Number of cells.
        status: Free or allocated.
        handle_id: The owning handle's id (allocated ranges only).

    """

    start: int
    length: int
    status: RangeStatus
    handle_id: int | None = None

    @property
    def last(self) -> int:
        """Return the last address *inside* the range."""
        return self.start + self.length - 1

    @property
    def end(self) -> int:
        """Return the first address after the range."""
        return self.start + self.length


def _is_count(value: object) -> bool:
    """Return True for real ints (bool is excluded)."""
    return isinstance(value, int) and not isinstance(value, bool)


class Allocator:
    """A heap over raw storage with a pluggable placement policy.

    Args:
        storage: The cells being managed.  The allocator assumes it is
            the only writer.
        policy: Chooses a gap for each new block.
        compacting: If True, compact automatically after every release.
        logger: Optional event log.

    """

    def __init__(
        self,
        *,
        storage: RawStorage,
        policy: PlacementPolicy,
        compacting: bool = False,
        logger: Logger | None = None,
    ) -> None:
        """Create an empty allocator."""
        self._storage = storage
        self._policy = policy
        self._compacting = compacting
        self._logger = logger
        self._blocks: list[Block] = []
        self._table: dict[int, Block] = {}
        self._next_id = count(1)

    # -- Properties -------------------------------------------------------

    @property
    def capacity(self) -> int:
        """Return the total number of cells in the heap."""
        return self._storage.capacity

    @property
    def storage(self) -> RawStorage:
        """Return the underlying raw storage."""
        return self._storage

    @property
    def policy(self) -> PlacementPolicy:
        """Return the placement policy."""
        return self._policy

    @property
    def compacting(self) -> bool:
        """Return True if releases trigger compaction."""
        return self._compacting

    @property
    def logger(self) -> Logger | None:
        """Return the event log, if one was attached."""
        return self._logger

    @property
    def handles(self) -> list[Handle]:
        """Return every live handle, in address order."""
        return [block.handle for block in self._blocks]

    @property
    def used_cells(self) -> int:
        """Return the number of allocated cells."""
        return sum(block.length for block in self._blocks)

    @property
    def free_cells(self) -> int:
        """Return the number of unallocated cells."""
        return self.capacity - self.used_cells

    @property
    def largest_gap(self) -> int:
        """Return the length of the largest free gap (0 if full)."""
        return max((gap.length for gap in self._iter_gaps()), default=0)

    # -- Gaps -------------------------------------------------------------

    def _iter_gaps(self) -> Iterator[Gap]:
        """Yield every free gap in ascending address order.

        Adjacent blocks leave no gap between them, so zero-length gaps
        are never produced.
        """
        cursor = 0
        for block in self._blocks:
            if block.address > cursor:
                yield Gap(start=cursor, length=block.address - cursor)
            cursor = block.end
        if cursor < self.capacity:
            yield Gap(start=cursor, length=self.capacity - cursor)

    def free_gaps(self) -> list[Gap]:
        """Return every free gap in ascending address order."""
        return list(self._iter_gaps())

    # -- Allocation -------------------------------------------------------

    def allocate(self, size: int) -> Handle:
        """Reserve ``size`` contiguous cells and return a handle to them.

        Args:
            size: Number of cells.  Must be a positive integer.

        Returns:
            A fresh handle mapped to the new block.

        Raises:
            InvalidRequestError: If size is not a positive integer.
            OutOfSpaceError: If no free gap can hold the block.

        """
        if not _is_count(size) or size <= 0:
            msg = f"Allocation size must be a positive integer, got {size!r}"
            self._log(LogLevel.WARNING, HeapEvent.INVALID_REQUEST, msg)
            raise InvalidRequestError(msg)

        gap = None if size > self.capacity else self._policy.choose(self._iter_gaps(), size)
        if gap is None:
            msg = (
                f"Cannot allocate {size} cells: largest gap is {self.largest_gap} "
                f"({self.free_cells} free in total)"
            )
            self._log(LogLevel.WARNING, HeapEvent.OUT_OF_SPACE, msg)
            raise OutOfSpaceError(msg)

        handle = Handle(handle_id=next(self._next_id), allocator=self)
        block = Block(handle=handle, address=gap.start, length=size)
        insort(self._blocks, block, key=_by_address)
        self._table[handle.handle_id] = block
        self._log(
            LogLevel.INFO,
            HeapEvent.ALLOCATE,
            f"Handle {handle.handle_id}: {size} cells at {block.address}",
        )
        return handle

    def release(self, handle: Handle) -> None:
        """Free a block so its cells can be reused.

        If the allocator is compacting, the remaining blocks are packed
        afterwards.

        Args:
            handle: A live handle issued by this allocator.

        Raises:
            InvalidHandleError: If the handle was already released or
                belongs to another allocator.

        """
        try:
            block = self._resolve(handle)
        except InvalidHandleError as e:
            self._log(LogLevel.WARNING, HeapEvent.INVALID_HANDLE, str(e))
            raise

        index = bisect_left(self._blocks, block.address, key=_by_address)
        del self._blocks[index]
        del self._table[handle.handle_id]
        self._log(
            LogLevel.INFO,
            HeapEvent.RELEASE,
            f"Handle {handle.handle_id}: {block.length} cells at {block.address} freed",
        )

        if self._compacting:
            self.compact()

    def compact(self) -> int:
        """Slide every block down to eliminate interior gaps.

        Blocks keep their relative order.  Each one moves to the lowest
        address not taken by the blocks before it, its cells are copied
        along in storage, and its handle resolves to the new address
        from then on.  All free space ends up as one trailing gap.

        Returns:
            The number of cells moved (0 if the heap was already packed).

        """
        cursor = 0
        moved = 0
        for block in self._blocks:
            if block.address != cursor:
                self._storage.move(source=block.address, destination=cursor, length=block.length)
                block.address = cursor
                moved += block.length
            cursor = block.end
        self._log(
            LogLevel.INFO,
            HeapEvent.COMPACT,
            f"Moved {moved} cells; {self.capacity - cursor} cells free at {cursor}",
        )
        return moved

    # -- Layout -----------------------------------------------------------

    def describe_layout(self) -> list[LayoutRange]:
        """Return alternating free/allocated ranges covering the heap.

        The ranges are in address order, never empty, and their lengths
        add up to ``capacity``.
        """
        ranges: list[LayoutRange] = []
        cursor = 0
        for block in self._blocks:
            if block.address > cursor:
                ranges.append(LayoutRange(cursor, block.address - cursor, RangeStatus.FREE))
            ranges.append(
                LayoutRange(
                    block.address,
                    block.length,
                    RangeStatus.ALLOCATED,
                    handle_id=block.handle.handle_id,
                )
            )
            cursor = block.end
        if cursor < self.capacity:
            ranges.append(LayoutRange(cursor, self.capacity - cursor, RangeStatus.FREE))
        return ranges

    # -- Handle resolution ------------------------------------------------

    def _resolve(self, handle: Handle) -> Block:
        """Return the block behind *handle*.

        Raises:
            InvalidHandleError: If the handle is unmapped or foreign.

        """
        if not isinstance(handle, Handle):
            msg = f"Not a handle: {handle!r}"
            raise InvalidHandleError(msg)
        if handle.allocator is not self:
            msg = f"Handle {handle.handle_id} belongs to a different allocator"
            raise InvalidHandleError(msg)
        block = self._table.get(handle.handle_id)
        if block is None or block.handle is not handle:
            msg = f"Handle {handle.handle_id} is not allocated"
            raise InvalidHandleError(msg)
        return block

    def owns(self, handle: Handle) -> bool:
        """Return True if *handle* is a live handle of this allocator."""
        try:
            self._resolve(handle)
        except InvalidHandleError:
            return False
        return True

    def address_of(self, handle: Handle) -> int:
        """Return the current physical address behind *handle*."""
        return self._resolve(handle).address

    def size_of(self, handle: Handle) -> int:
        """Return the length of the block behind *handle*."""
        return self._resolve(handle).length

    # -- Cell access ------------------------------------------------------

    def _cell(self, handle: Handle, offset: int) -> int:
        """Translate a block-relative offset to an absolute address."""
        block = self._resolve(handle)
        if not _is_count(offset) or not 0 <= offset < block.length:
            msg = f"Offset {offset!r} outside handle {handle.handle_id} (size {block.length})"
            raise InvalidRequestError(msg)
        return block.address + offset

    def read(self, handle: Handle, offset: int = 0) -> int:
        """Return the value at *offset* within the handle's block."""
        return self._storage.read_cell(self._cell(handle, offset))

    def write(self, handle: Handle, value: int, offset: int = 0) -> None:
        """Store *value* at *offset* within the handle's block."""
        self._storage.write_cell(self._cell(handle, offset), value)

    def read_block(self, handle: Handle) -> list[int]:
        """Return a copy of every cell in the handle's block."""
        block = self._resolve(handle)
        return self._storage.snapshot(block.address, block.length)

    def write_block(self, handle: Handle, values: Sequence[int]) -> None:
        """Write *values* to the start of the handle's block.

        Raises:
            InvalidRequestError: If there are more values than cells.

        """
        block = self._resolve(handle)
        if len(values) > block.length:
            msg = f"{len(values)} values do not fit in handle {handle.handle_id} (size {block.length})"
            raise InvalidRequestError(msg)
        for offset, value in enumerate(values):
            self._storage.write_cell(block.address + offset, value)

    # -- Invariants -------------------------------------------------------

    def verify(self) -> None:
        """Check every bookkeeping invariant.

        Raises:
            HeapCorruptionError: On the first violated invariant.

        """
        previous_end = 0
        for block in self._blocks:
            handle_id = block.handle.handle_id
            if block.length <= 0:
                msg = f"Handle {handle_id} has non-positive length {block.length}"
                raise HeapCorruptionError(msg)
            if block.address < 0 or block.end > self.capacity:
                msg = f"Handle {handle_id} spans [{block.address}, {block.end}) outside the heap"
                raise HeapCorruptionError(msg)
            if block.address < previous_end:
                msg = f"Handle {handle_id} at {block.address} overlaps or precedes the block ending at {previous_end}"
                raise HeapCorruptionError(msg)
            if self._table.get(handle_id) is not block:
                msg = f"Handle {handle_id} is missing from the handle table"
                raise HeapCorruptionError(msg)
            previous_end = block.end
        if len(self._table) != len(self._blocks):
            msg = f"Handle table has {len(self._table)} entries for {len(self._blocks)} blocks"
            raise HeapCorruptionError(msg)

    def _log(self, level: LogLevel, event: HeapEvent, message: str) -> None:
        if self._logger is not None:
            self._logger.log(level, event, message, source=self._policy.name)


class FirstFitAllocator(Allocator):
    """An allocator that places each block in the first gap that fits."""

    def __init__(
        self,
        *,
        storage: RawStorage,
        compacting: bool = False,
        logger: Logger | None = None,
    ) -> None:
        """Create an empty first-fit allocator."""
        super().__init__(storage=storage, policy=FirstFitPolicy(), compacting=compacting, logger=logger)


class BestFitAllocator(Allocator):
    """An allocator that places each block in the smallest gap that fits."""

    def __init__(
        self,
        *,
        storage: RawStorage,
        compacting: bool = False,
        logger: Logger | None = None,
    ) -> None:
        """Create an empty best-fit allocator."""
        super().__init__(storage=storage, policy=BestFitPolicy(), compacting=compacting, logger=logger)
