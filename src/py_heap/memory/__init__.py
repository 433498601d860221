"""Heap subsystem — handles, placement policies, and the allocator.

Re-exports public symbols so callers can write::

    from py_heap.memory import BestFitAllocator, OutOfSpaceError
"""

from py_heap.memory.allocator import (
    Allocator,
    BestFitAllocator,
    Block,
    FirstFitAllocator,
    LayoutRange,
    RangeStatus,
)
from py_heap.memory.errors import (
    HeapCorruptionError,
    HeapError,
    InvalidHandleError,
    InvalidRequestError,
    OutOfSpaceError,
)
from py_heap.memory.fragmentation import FragmentationReport, measure
from py_heap.memory.handle import Handle
from py_heap.memory.placement import (
    POLICY_NAMES,
    BestFitPolicy,
    FirstFitPolicy,
    Gap,
    PlacementPolicy,
    policy_by_name,
)

__all__ = [
    "POLICY_NAMES",
    "Allocator",
    "BestFitAllocator",
    "BestFitPolicy",
    "Block",
    "FirstFitAllocator",
    "FirstFitPolicy",
    "FragmentationReport",
    "Gap",
    "Handle",
    "HeapCorruptionError",
    "HeapError",
    "InvalidHandleError",
    "InvalidRequestError",
    "LayoutRange",
    "OutOfSpaceError",
    "PlacementPolicy",
    "RangeStatus",
    "measure",
    "policy_by_name",
]
