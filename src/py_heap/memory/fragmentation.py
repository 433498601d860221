"""Fragmentation metrics — how badly is the free space broken up?

**External fragmentation** is the classic failure of contiguous
allocation: there may be plenty of free cells in total, yet no single
gap is large enough for the next request.  These metrics put numbers on
that so first fit and best fit (and the effect of compaction) can be
compared across the same workload.

- ``total_free`` — free cells across all gaps.
- ``largest_gap`` — the biggest request that can succeed right now.
- ``gap_count`` — how many pieces the free space is split into.
- ``external_fragmentation`` — ``1 - largest_gap / total_free``.  0.0
  means all free space is one gap; values near 1.0 mean it is scattered
  into many small pieces.
- ``utilisation`` — fraction of the heap that is allocated.
"""

from dataclasses import dataclass

from py_heap.memory.allocator import Allocator


@dataclass(frozen=True)
class FragmentationReport:
    """A snapshot of how the free space is distributed."""

    capacity: int
    total_free: int
    largest_gap: int
    gap_count: int

    @property
    def external_fragmentation(self) -> float:
        """Return the share of free space outside the largest gap."""
        if self.total_free == 0:
            return 0.0
        return 1.0 - self.largest_gap / self.total_free

    @property
    def utilisation(self) -> float:
        """Return the fraction of cells that are allocated."""
        return (self.capacity - self.total_free) / self.capacity


def measure(allocator: Allocator) -> FragmentationReport:
    """Compute a fragmentation report for the allocator's current state."""
    lengths = [gap.length for gap in allocator.free_gaps()]
    return FragmentationReport(
        capacity=allocator.capacity,
        total_free=sum(lengths),
        largest_gap=max(lengths, default=0),
        gap_count=len(lengths),
    )
