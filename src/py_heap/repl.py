"""Interactive REPL (Read-Eval-Print Loop) for the heap simulator.

The REPL builds an allocator from the environment, wraps it in a
``Shell``, and enters the classic loop:

    1. **Read** — display a prompt and read user input.
    2. **Eval** — pass the command to ``shell.execute()``.
    3. **Print** — display the result.
    4. **Loop** — repeat until the shell returns the exit sentinel.

The helpers (``format_banner``, ``build_prompt``, ``complete``) are pure
and testable.  ``run()`` is the I/O entrypoint.
"""

import os
import readline

from py_heap.config import HeapConfig, create_allocator
from py_heap.logging import Logger
from py_heap.memory.allocator import Allocator
from py_heap.shell import Shell

_BANNER_WIDTH = 38


def format_banner(config: HeapConfig) -> str:
    """Return the start-up banner describing the heap."""
    border = "=" * _BANNER_WIDTH
    mode = "compacting" if config.compacting else "non-compacting"
    return (
        f"\n  {border}\n            py-heap\n      A simulated heap allocator\n  {border}\n\n"
        f"  {config.capacity} cells, {config.policy}, {mode}\n"
        "\nType 'help' for commands, 'exit' to quit.\n"
    )


def build_prompt(allocator: Allocator) -> str:
    """Return a prompt such as ``best-fit 924/1024 $ `` (free/capacity)."""
    return f"{allocator.policy.name} {allocator.free_cells}/{allocator.capacity} $ "


def complete(shell: Shell, text: str, state: int) -> str | None:
    """Return the *state*-th command name starting with *text*."""
    matches = [name for name in shell.command_names if name.startswith(text)]
    return matches[state] if state < len(matches) else None


def run() -> None:
    """Run the interactive REPL.

    This is the ``py-heap`` console entry point.  Configuration comes
    from ``PY_HEAP_*`` environment variables.
    """
    config = HeapConfig.from_env(os.environ)
    allocator = create_allocator(config, logger=Logger())
    shell = Shell(allocator=allocator)

    readline.set_completer(lambda text, state: complete(shell, text, state))
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")

    print(format_banner(config))  # noqa: T201

    try:
        while True:
            try:
                command = input(build_prompt(allocator))
            except EOFError:
                # Ctrl+D
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        print("\nInterrupted.")  # noqa: T201
