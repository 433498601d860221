"""Placement policies — which free gap gets the next block.

When a client asks for ``n`` cells, the allocator knows every free gap
but not which one to use.  That choice is the **placement policy**.
The rest of the bookkeeping (the block list, the handle table,
compaction) is the same whatever the policy, so each policy is a small
object with a single ``choose`` method — the Strategy pattern, like the
replacement policies of a pager or the scheduling policies of a CPU.

Policies:
    - **First fit** — take the first gap, in address order, that is big
      enough.  Stops scanning as soon as it finds one, so the average
      request touches only part of the heap.
    - **Best fit** — look at every gap and take the smallest one that is
      big enough; ties go to the lowest address.  Leaves the smallest
      leftover fragment at the cost of always scanning the whole heap.

Both policies accept a gap whose length equals the request exactly.

The allocator hands a policy a *lazy* iterable of gaps in ascending
address order.  First fit benefits from the laziness (it stops
pulling gaps early); best fit drains it.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Gap:
    """A maximal run of free cells.

    Attributes:
        start: First free address.
        length: Number of free cells (always positive).

    """

    start: int
    length: int

    @property
    def end(self) -> int:
        """Return the first address *after* the gap."""
        return self.start + self.length

    def fits(self, size: int) -> bool:
        """Return True if a block of *size* cells fits in this gap."""
        return self.length >= size


class PlacementPolicy(Protocol):
    """Interface for gap-selection rules (Strategy pattern)."""

    name: str

    def choose(self, gaps: Iterable[Gap], size: int) -> Gap | None:
        """Pick the gap a new block of *size* cells should go into.

        Args:
            gaps: Every free gap, in ascending address order.
            size: The requested block length.

        Returns:
            The chosen gap, or None if no gap is large enough.

        """
        ...


class FirstFitPolicy:
    """Choose the lowest-addressed gap that is large enough."""

    name = "first-fit"

    def choose(self, gaps: Iterable[Gap], size: int) -> Gap | None:
        """Return the first qualifying gap, stopping the scan there."""
        for gap in gaps:
            if gap.fits(size):
                return gap
        return None


class BestFitPolicy:
    """Choose the smallest gap that is large enough.

    Among gaps of equal length the lowest address wins.  Because the
    gaps arrive in address order, keeping only a *strictly* smaller
    candidate gives that tie-break for free.
    """

    name = "best-fit"

    def choose(self, gaps: Iterable[Gap], size: int) -> Gap | None:
        """Return the tightest qualifying gap after scanning them all."""
        best: Gap | None = None
        for gap in gaps:
            if not gap.fits(size):
                continue
            if best is None or gap.length < best.length:
                best = gap
        return best


_POLICIES: dict[str, type[FirstFitPolicy] | type[BestFitPolicy]] = {
    FirstFitPolicy.name: FirstFitPolicy,
    BestFitPolicy.name: BestFitPolicy,
}

POLICY_NAMES: tuple[str, ...] = tuple(_POLICIES)


def policy_by_name(name: str) -> PlacementPolicy:
    """Return a fresh policy instance for *name*.

    Args:
        name: ``"first-fit"`` or ``"best-fit"``.

    Raises:
        ValueError: If the name is not a known policy.

    """
    policy_cls = _POLICIES.get(name)
    if policy_cls is None:
        msg = f"Unknown placement policy {name!r} (expected one of: {', '.join(POLICY_NAMES)})"
        raise ValueError(msg)
    return policy_cls()
