"""Handles — stable references to blocks that may move.

A client never sees a raw address.  ``allocate`` returns a ``Handle``,
and every later access goes through it.  The handle itself holds only
two things: a numeric id and a back-reference to the allocator that
issued it.  The *address* lives in the allocator's handle table.

Why the indirection?
    Compaction slides blocks towards address 0.  If clients held raw
    addresses, every one of them would go stale after a compaction.
    With handles, compaction rewrites one table entry per block and
    every outstanding handle keeps working; it simply resolves to the
    new address next time it is asked.

Handle lifecycle:
    - Created by a successful ``allocate`` (one handle per block).
    - Valid until its block is released.
    - Never reused: ids are issued from a counter that only goes up,
      so a stale handle can't accidentally reach a newer block.

Handles compare by identity.  Two handles are equal only if they are
the same object.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_heap.memory.allocator import Allocator


class Handle:
    """An opaque, stable reference to one allocated block."""

    def __init__(self, *, handle_id: int, allocator: Allocator) -> None:
        """Create a handle.  Only the allocator should call this.

        Args:
            handle_id: The allocator-unique id of the block.
            allocator: The allocator that owns the block.

        """
        self._handle_id = handle_id
        self._allocator = allocator

    @property
    def handle_id(self) -> int:
        """Return the id this handle was issued with."""
        return self._handle_id

    @property
    def allocator(self) -> Allocator:
        """Return the allocator that issued this handle."""
        return self._allocator

    @property
    def is_valid(self) -> bool:
        """Return True while the handle's block is still allocated."""
        return self._allocator.owns(self)

    @property
    def address(self) -> int:
        """Return the block's current physical address.

        Raises:
            InvalidHandleError: If the block has been released.

        """
        return self._allocator.address_of(self)

    @property
    def size(self) -> int:
        """Return the block's length in cells.

        Raises:
            InvalidHandleError: If the block has been released.

        """
        return self._allocator.size_of(self)

    def read(self, offset: int = 0) -> int:
        """Read the cell at *offset* within the block."""
        return self._allocator.read(self, offset)

    def write(self, value: int, offset: int = 0) -> None:
        """Write *value* to the cell at *offset* within the block."""
        self._allocator.write(self, value, offset)

    def __repr__(self) -> str:
        """Show the id, plus address and size while the block is live."""
        if not self.is_valid:
            return f"Handle(id={self._handle_id}, released)"
        return f"Handle(id={self._handle_id}, address={self.address}, size={self.size})"
