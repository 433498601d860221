"""The shell — a command interpreter for poking at a heap.

The shell turns one-line commands into allocator calls and returns the
result as a string::

    alloc 100       → "Handle 1: 100 cells at 0"
    free 1          → "Handle 1 released."
    layout          → the table below

    ------------------------------------------
    |    0 -   99 | Allocated  (handle 1, size 100)
    |  100 - 1023 | Free
    ------------------------------------------

Handles stay opaque.  The shell keeps the live ``Handle`` objects it was
given and refers to them by their ids; it never turns an address into
a handle.

Design choices:
    - **Returns strings, not prints.**  This keeps the shell fully
      testable; the REPL decides how to display output.
    - **Command dispatch via a dict.**  Adding a command means writing
      one method and adding one dict entry.
    - **Errors become ``Error: ...`` strings.**  A typo shouldn't kill
      an interactive session, so allocator exceptions are reported,
      not raised.
"""

from collections.abc import Callable, Iterable

from py_heap.memory.allocator import Allocator, LayoutRange, RangeStatus
from py_heap.memory.errors import HeapError
from py_heap.memory.fragmentation import measure
from py_heap.memory.handle import Handle

# Type alias for a command handler: takes a list of args, returns output.
_Handler = Callable[[list[str]], str]

_RULE = "-" * 42


def format_layout(ranges: Iterable[LayoutRange]) -> str:
    """Render layout ranges as a bordered table, one range per row."""
    lines = [_RULE]
    for r in ranges:
        span = f"| {r.start:>4} - {r.last:>4} |"
        if r.status is RangeStatus.ALLOCATED:
            lines.append(f"{span} Allocated  (handle {r.handle_id}, size {r.length})")
        else:
            lines.append(f"{span} Free")
    lines.append(_RULE)
    return "\n".join(lines)


def _parse_int(text: str, what: str) -> int:
    try:
        return int(text)
    except ValueError:
        msg = f"invalid {what} '{text}'"
        raise ValueError(msg) from None


class Shell:
    """Command interpreter bound to one allocator."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(self, *, allocator: Allocator) -> None:
        """Create a shell for *allocator*."""
        self._allocator = allocator
        self._handles: dict[int, Handle] = {}

        # Command dispatch table: name -> handler method.
        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "alloc": self._cmd_alloc,
            "free": self._cmd_free,
            "compact": self._cmd_compact,
            "layout": self._cmd_layout,
            "stats": self._cmd_stats,
            "handles": self._cmd_handles,
            "read": self._cmd_read,
            "write": self._cmd_write,
            "log": self._cmd_log,
            "exit": self._cmd_exit,
        }

    @property
    def allocator(self) -> Allocator:
        """Return the allocator this shell drives."""
        return self._allocator

    @property
    def command_names(self) -> list[str]:
        """Return all command names, sorted."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute one command line.

        Args:
            command: The raw command string (e.g. "alloc 100").

        Returns:
            The command output, an ``Error: ...`` message, or
            ``EXIT_SENTINEL`` for ``exit``.

        """
        parts = command.strip().split()
        if not parts:
            return ""

        name, args = parts[0], parts[1:]
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}"

        try:
            return handler(args)
        except (HeapError, ValueError) as e:
            return f"Error: {e}"

    def _lookup(self, text: str) -> Handle:
        """Return the live handle the user referred to by id.

        Ids are forgotten once released, so a second ``free`` of the
        same id is reported as an unknown id.
        """
        handle_id = _parse_int(text, "handle id")
        handle = self._handles.get(handle_id)
        if handle is None:
            msg = f"no handle with id {handle_id}"
            raise ValueError(msg)
        return handle

    # -- Command handlers ------------------------------------------------

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        return "Available commands: " + ", ".join(self.command_names)

    def _cmd_alloc(self, args: list[str]) -> str:
        """Allocate a block."""
        if len(args) != 1:
            return "Usage: alloc <size>"
        handle = self._allocator.allocate(_parse_int(args[0], "size"))
        self._handles[handle.handle_id] = handle
        return f"Handle {handle.handle_id}: {handle.size} cells at {handle.address}"

    def _cmd_free(self, args: list[str]) -> str:
        """Release a block by handle id."""
        if len(args) != 1:
            return "Usage: free <id>"
        handle = self._lookup(args[0])
        self._allocator.release(handle)
        del self._handles[handle.handle_id]
        return f"Handle {handle.handle_id} released."

    def _cmd_compact(self, _args: list[str]) -> str:
        """Pack every block against address 0."""
        moved = self._allocator.compact()
        return f"Compacted: {moved} cells moved."

    def _cmd_layout(self, _args: list[str]) -> str:
        """Show the free/allocated ranges."""
        return format_layout(self._allocator.describe_layout())

    def _cmd_stats(self, _args: list[str]) -> str:
        """Show usage and fragmentation figures."""
        report = measure(self._allocator)
        return "\n".join(
            [
                f"Policy:        {self._allocator.policy.name}"
                + (" (compacting)" if self._allocator.compacting else ""),
                f"Capacity:      {report.capacity}",
                f"Used:          {report.capacity - report.total_free} ({report.utilisation:.1%})",
                f"Free:          {report.total_free} in {report.gap_count} gap(s)",
                f"Largest gap:   {report.largest_gap}",
                f"Fragmentation: {report.external_fragmentation:.1%}",
            ]
        )

    def _cmd_handles(self, _args: list[str]) -> str:
        """List live handles in address order."""
        handles = self._allocator.handles
        if not handles:
            return "No live handles."
        lines = ["ID     ADDRESS  SIZE"]
        lines.extend(f"{h.handle_id:<6} {h.address:<8} {h.size}" for h in handles)
        return "\n".join(lines)

    def _cmd_read(self, args: list[str]) -> str:
        """Read one cell of a block."""
        if len(args) not in (1, 2):
            return "Usage: read <id> [offset]"
        handle = self._lookup(args[0])
        offset = _parse_int(args[1], "offset") if len(args) == 2 else 0  # noqa: PLR2004
        return str(self._allocator.read(handle, offset))

    def _cmd_write(self, args: list[str]) -> str:
        """Write one cell of a block."""
        if len(args) != 3:  # noqa: PLR2004
            return "Usage: write <id> <offset> <value>"
        handle = self._lookup(args[0])
        offset = _parse_int(args[1], "offset")
        value = _parse_int(args[2], "value")
        self._allocator.write(handle, value, offset)
        return ""

    def _cmd_log(self, _args: list[str]) -> str:
        """Show the allocator's event log."""
        logger = self._allocator.logger
        if logger is None:
            return "Logging is disabled."
        return "\n".join(str(entry) for entry in logger.entries)

    def _cmd_exit(self, _args: list[str]) -> str:
        """Leave the shell."""
        return self.EXIT_SENTINEL
