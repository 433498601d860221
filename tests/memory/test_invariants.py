"""Randomised workloads that check allocator invariants at every step.

Each test drives a seeded mix of allocations and releases and, after
every operation, asserts the properties every heap must keep:

- ``verify()`` passes (sorted, non-overlapping, in bounds, consistent).
- The layout tiles ``[0, capacity)`` exactly.
- First fit picked the lowest-addressed gap that fits.
- Best fit picked the smallest gap that fits, lowest address on ties.
"""

import random

import pytest

from py_heap.memory.allocator import Allocator, BestFitAllocator, FirstFitAllocator
from py_heap.memory.errors import OutOfSpaceError
from py_heap.memory.handle import Handle
from py_heap.memory.placement import Gap
from py_heap.storage import RawStorage

CAPACITY = 512
STEPS = 400
MAX_REQUEST = 96
SEEDS = [1, 7, 42]


def _expected_first_fit(gaps: list[Gap], size: int) -> Gap | None:
    return next((g for g in gaps if g.length >= size), None)


def _expected_best_fit(gaps: list[Gap], size: int) -> Gap | None:
    fitting = [g for g in gaps if g.length >= size]
    return min(fitting, key=lambda g: (g.length, g.start), default=None)


def _check_layout(allocator: Allocator) -> None:
    allocator.verify()
    layout = allocator.describe_layout()
    assert sum(r.length for r in layout) == allocator.capacity
    cursor = 0
    for r in layout:
        assert r.start == cursor
        assert r.length > 0
        cursor = r.end


def _run(allocator: Allocator, rng: random.Random, expected_choice) -> None:  # noqa: ANN001
    live: list[Handle] = []
    for _ in range(STEPS):
        if live and rng.random() < 0.45:  # noqa: PLR2004
            handle = live.pop(rng.randrange(len(live)))
            allocator.release(handle)
            assert not handle.is_valid
        else:
            size = rng.randint(1, MAX_REQUEST)
            gaps = allocator.free_gaps()
            expected = expected_choice(gaps, size)
            if expected is None:
                with pytest.raises(OutOfSpaceError):
                    allocator.allocate(size)
                assert allocator.free_gaps() == gaps
            else:
                handle = allocator.allocate(size)
                assert handle.address == expected.start
                assert handle.size == size
                live.append(handle)
        _check_layout(allocator)
        assert all(h.is_valid for h in live)
        assert allocator.used_cells == sum(h.size for h in live)


class TestRandomWorkloads:
    """Verify invariants hold across long random sequences."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_first_fit(self, seed: int) -> None:
        """First fit always takes the lowest qualifying gap."""
        allocator = FirstFitAllocator(storage=RawStorage(CAPACITY))
        _run(allocator, random.Random(seed), _expected_first_fit)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_best_fit(self, seed: int) -> None:
        """Best fit never takes a gap larger than another that fits."""
        allocator = BestFitAllocator(storage=RawStorage(CAPACITY))
        _run(allocator, random.Random(seed), _expected_best_fit)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_compacting_keeps_one_gap(self, seed: int) -> None:
        """A compacting heap never has more than one (trailing) gap."""
        allocator = BestFitAllocator(storage=RawStorage(CAPACITY), compacting=True)
        _run(allocator, random.Random(seed), _expected_best_fit)
        gaps = allocator.free_gaps()
        assert len(gaps) <= 1
        assert all(g.end == CAPACITY for g in gaps)


class TestRoundTrip:
    """Verify allocate-then-release restores the free-gap list."""

    @pytest.mark.parametrize("cls", [FirstFitAllocator, BestFitAllocator])
    @pytest.mark.parametrize("seed", SEEDS)
    def test_round_trip(self, cls: type[Allocator], seed: int) -> None:
        """Undoing one allocation restores the gaps exactly."""
        rng = random.Random(seed)
        allocator = cls(storage=RawStorage(CAPACITY))  # type: ignore[call-arg]
        live = [allocator.allocate(rng.randint(1, 32)) for _ in range(10)]
        for handle in rng.sample(live, 4):
            allocator.release(handle)
        before = allocator.free_gaps()
        allocator.release(allocator.allocate(rng.randint(1, 32)))
        assert allocator.free_gaps() == before
