"""Exceptions raised by the heap allocator.

Every condition is local and recoverable: the operation that detects
it raises before touching any state, so the caller can catch the error
and carry on with an unchanged heap.

- ``OutOfSpaceError`` — no gap is large enough.  Retry after a release
  or a compaction.
- ``InvalidHandleError`` — the handle was released already, or was
  never produced by this allocator.
- ``InvalidRequestError`` — a size or offset that makes no sense.
- ``HeapCorruptionError`` — ``Allocator.verify()`` found a broken
  invariant.  Never expected in practice; the tests use it as a tripwire.
"""


class HeapError(Exception):
    """Base class for all allocator errors."""


class OutOfSpaceError(HeapError):
    """Raise when no free gap can hold the requested block."""


class InvalidHandleError(HeapError):
    """Raise when a handle is unmapped or belongs to another allocator."""


class InvalidRequestError(HeapError):
    """Raise when a size or offset is not valid for the request."""


class HeapCorruptionError(HeapError):
    """Raise when the allocator's bookkeeping breaks an invariant."""
