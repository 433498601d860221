"""Tests for the REPL helpers.

The REPL loop itself is I/O; its pure helpers are tested directly and
the loop is driven with patched ``input``.
"""

from unittest.mock import patch

from py_heap.config import HeapConfig, create_allocator
from py_heap.repl import build_prompt, complete, format_banner, run
from py_heap.shell import Shell


class TestHelpers:
    """Verify banner, prompt and completion."""

    def test_banner_describes_heap(self) -> None:
        """The banner names capacity, policy and mode."""
        banner = format_banner(HeapConfig(capacity=64, policy="best-fit", compacting=True))
        assert "64 cells, best-fit, compacting" in banner

    def test_prompt_shows_free_cells(self) -> None:
        """The prompt shows policy and free/capacity."""
        allocator = create_allocator(HeapConfig(capacity=64))
        allocator.allocate(10)
        assert build_prompt(allocator) == "first-fit 54/64 $ "

    def test_complete(self) -> None:
        """Completion walks the matching command names."""
        shell = Shell(allocator=create_allocator(HeapConfig()))
        assert complete(shell, "co", 0) == "compact"
        assert complete(shell, "co", 1) is None
        assert complete(shell, "", 0) == "alloc"


class TestRun:
    """Drive the loop with canned input."""

    def test_runs_until_exit(self, capsys) -> None:  # noqa: ANN001
        """Commands run in order and exit stops the loop."""
        with (
            patch.dict("os.environ", {"PY_HEAP_CAPACITY": "32"}, clear=False),
            patch("builtins.input", side_effect=["alloc 4", "exit", "alloc 4"]),
        ):
            run()
        out = capsys.readouterr().out
        assert "32 cells, first-fit" in out
        assert "Handle 1: 4 cells at 0" in out
        assert "Handle 2" not in out

    def test_eof_exits(self, capsys) -> None:  # noqa: ANN001
        """Ctrl+D ends the session cleanly."""
        with patch("builtins.input", side_effect=EOFError):
            run()
        assert "py-heap" in capsys.readouterr().out
