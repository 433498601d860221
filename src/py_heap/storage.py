"""Raw storage — the cell array underneath the heap.

Storage is deliberately dumb.  It knows how many cells it has and how
to read or write one cell by absolute address, nothing more.  It has no
idea which cells belong to which block; that bookkeeping lives in the
allocator (``py_heap.memory.allocator``).

Cells hold plain integers.  Real RAM holds bytes, but a simulator that
stores whole values per cell keeps the examples readable: writing ``42``
to a cell and reading it back gives ``42``.

Design choices:
    - **A list, not a bytearray** — cells are not limited to 0-255.
    - **Capacity is fixed** — the list is created once and never
      resized, so every address check is a simple range test.
    - **``move`` handles overlap** — compaction slides blocks towards
      address 0, often into a range that overlaps where they started.
"""


class StorageError(IndexError):
    """Raise when an address falls outside the storage."""


class RawStorage:
    """A fixed-capacity array of integer cells addressed from 0."""

    def __init__(self, capacity: int) -> None:
        """Create storage with every cell set to 0.

        Args:
            capacity: Number of cells.  Must be positive.

        Raises:
            ValueError: If capacity is not a positive integer.

        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            msg = f"Storage capacity must be a positive integer, got {capacity!r}"
            raise ValueError(msg)
        self._cells: list[int] = [0] * capacity

    @property
    def capacity(self) -> int:
        """Return the number of cells."""
        return len(self._cells)

    def _check(self, address: int) -> None:
        if not 0 <= address < len(self._cells):
            msg = f"Address {address} out of range (capacity {len(self._cells)})"
            raise StorageError(msg)

    def read_cell(self, address: int) -> int:
        """Return the value stored at *address*.

        Raises:
            StorageError: If the address is out of range.

        """
        self._check(address)
        return self._cells[address]

    def write_cell(self, address: int, value: int) -> None:
        """Store *value* at *address*.

        Raises:
            StorageError: If the address is out of range.

        """
        self._check(address)
        self._cells[address] = value

    def snapshot(self, start: int, length: int) -> list[int]:
        """Return a copy of ``length`` cells beginning at ``start``.

        Raises:
            StorageError: If any part of the run is out of range.

        """
        if length == 0:
            return []
        self._check(start)
        self._check(start + length - 1)
        return self._cells[start : start + length]

    def move(self, *, source: int, destination: int, length: int) -> None:
        """Copy a run of cells from one address to another.

        Slice assignment copies the source run before writing, so the
        two ranges may overlap in either direction.

        Args:
            source: First address of the run to copy.
            destination: First address to copy into.
            length: Number of cells.

        Raises:
            StorageError: If either run leaves the storage.

        """
        if length == 0 or source == destination:
            return
        self._check(source)
        self._check(source + length - 1)
        self._check(destination)
        self._check(destination + length - 1)
        self._cells[destination : destination + length] = self._cells[source : source + length]
