from __future__ import annotations
"""Monotonic identifier allocation backed by journaled `vars` counters."""

from .state.journal import Journal


class IdAllocator:
    """
    Hands out strictly increasing integer ids starting at `start`.

    The counter lives in the journal, so ids drawn inside an aborted
    transaction are handed out again by the next successful one.
    """

    def __init__(self, journal: Journal, var: str, *, start: int = 1) -> None:
        if start < 0:
            raise ValueError("start must be >= 0")
        self._j = journal
        self._var = var
        self._start = start

    def peek(self) -> int:
        return self._j.get_var(self._var, self._start)

    def next(self) -> int:
        value = self.peek()
        self._j.set_var(self._var, value + 1)
        return value

    def issued(self) -> int:
        """How many ids have been handed out so far."""
        return self.peek() - self._start


__all__ = ["IdAllocator"]
