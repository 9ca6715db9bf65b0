from __future__ import annotations
"""
Block-height sources.

The market never reads wall-clock time: every expiry, start and end block is
expressed in external block heights supplied by a BlockClock.
"""

import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class BlockClock(Protocol):
    def height(self) -> int: ...


class ManualClock:
    """A settable height source for tests, simulations and the CLI."""

    def __init__(self, height: int = 0) -> None:
        if height < 0:
            raise ValueError("height must be >= 0")
        self._height = int(height)
        self._lock = threading.Lock()

    def height(self) -> int:
        with self._lock:
            return self._height

    def advance(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("block heights never go backwards")
        with self._lock:
            self._height += int(blocks)
            return self._height

    def set(self, height: int) -> None:
        with self._lock:
            if height < self._height:
                raise ValueError(f"height {height} is below current height {self._height}")
            self._height = int(height)


__all__ = ["BlockClock", "ManualClock"]
