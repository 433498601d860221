"""Heap configuration — the knobs of an experiment.

Three settings describe a heap completely:

- ``capacity`` — how many cells the raw storage has.
- ``policy`` — ``"first-fit"`` or ``"best-fit"``.
- ``compacting`` — whether every release is followed by a compaction.

``HeapConfig`` is a frozen dataclass so a configuration can be passed
around and compared without anyone mutating it halfway through a run.
It validates itself on construction; an invalid config never exists.

The REPL and the web UI read their configuration from environment
variables (``PY_HEAP_CAPACITY``, ``PY_HEAP_POLICY``,
``PY_HEAP_COMPACTING``) so the same entry point can run any experiment.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from py_heap.logging import Logger
from py_heap.memory.allocator import Allocator
from py_heap.memory.placement import POLICY_NAMES, policy_by_name
from py_heap.storage import RawStorage

DEFAULT_CAPACITY = 1024
DEFAULT_POLICY = "first-fit"

ENV_CAPACITY = "PY_HEAP_CAPACITY"
ENV_POLICY = "PY_HEAP_POLICY"
ENV_COMPACTING = "PY_HEAP_COMPACTING"

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off", ""})


class ConfigError(ValueError):
    """Raise when a configuration value is invalid."""


@dataclass(frozen=True)
class HeapConfig:
    """Settings for building an allocator.

    Attributes:
        capacity: Number of cells in the heap.
        policy: Placement policy name.
        compacting: Compact automatically after every release.

    """

    capacity: int = DEFAULT_CAPACITY
    policy: str = DEFAULT_POLICY
    compacting: bool = False

    def __post_init__(self) -> None:
        """Reject impossible settings."""
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int) or self.capacity <= 0:
            msg = f"capacity must be a positive integer, got {self.capacity!r}"
            raise ConfigError(msg)
        if self.policy not in POLICY_NAMES:
            msg = f"policy must be one of {', '.join(POLICY_NAMES)}, got {self.policy!r}"
            raise ConfigError(msg)

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> HeapConfig:
        """Build a config from environment variables.

        Unset variables fall back to the defaults.

        Args:
            environ: Usually ``os.environ``.

        Raises:
            ConfigError: If a variable holds an unusable value.

        """
        raw_capacity = environ.get(ENV_CAPACITY)
        capacity = DEFAULT_CAPACITY
        if raw_capacity is not None:
            try:
                capacity = int(raw_capacity)
            except ValueError:
                msg = f"{ENV_CAPACITY} must be an integer, got {raw_capacity!r}"
                raise ConfigError(msg) from None

        policy = environ.get(ENV_POLICY, DEFAULT_POLICY).strip().lower()

        raw_compacting = environ.get(ENV_COMPACTING, "").strip().lower()
        if raw_compacting in _TRUE_WORDS:
            compacting = True
        elif raw_compacting in _FALSE_WORDS:
            compacting = False
        else:
            msg = f"{ENV_COMPACTING} must be a boolean word, got {raw_compacting!r}"
            raise ConfigError(msg)

        return cls(capacity=capacity, policy=policy, compacting=compacting)


def create_allocator(config: HeapConfig, *, logger: Logger | None = None) -> Allocator:
    """Build a fresh allocator over new storage from *config*."""
    return Allocator(
        storage=RawStorage(config.capacity),
        policy=policy_by_name(config.policy),
        compacting=config.compacting,
        logger=logger,
    )
