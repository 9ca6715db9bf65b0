"""
rentmarket.state.journal — staged writes, checkpoints, revert/commit.

This module provides a deterministic, in-memory write journal layered over a
MarketState. It supports nested checkpoints via a stack of overlays. Writes go
to the top overlay; reads consult overlays from top → base. `commit()` merges
the top overlay into the next layer, or into the base state once the root layer
is reached. `revert()` discards the top overlay.

Key properties
--------------
- Pure Python, no I/O; safe for unit tests and simulations.
- Per-(table, key) overlay with explicit deletion markers.
- Nested checkpoints (begin/commit/revert) with O(changes) merge cost.
- Values are treated as immutable; callers store new records instead of
  mutating ones they read.

Intended usage
--------------
    j = Journal(state)
    j.begin()                                   # start a checkpoint
    j.put("listings", 1, listing)
    j.delete("rentals", 1)
    j.commit()                                  # apply to base

    j.begin()
    j.put("vars", "next_listing_id", 2)
    j.revert()                                  # as if never written

Notes
-----
- This journal does not enforce economic rules; callers validate first and
  write afterwards.
- Writes made at depth 1 (no open checkpoint) sit in the root overlay until the
  next `commit()` at depth 1 applies them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterator, List, Optional, Tuple

from .store import TABLES, MarketState


class _Tombstone:
    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return "<deleted>"


_DELETED = _Tombstone()


def _check_table(name: str) -> str:
    if name not in TABLES:
        raise KeyError(f"unknown state table: {name!r}")
    return name


# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    """
    A single journal layer. `writes[table][key]` is either a staged value or
    the deletion marker.
    """

    writes: Dict[str, Dict[Hashable, Any]] = field(default_factory=dict)

    def lookup(self, table: str, key: Hashable) -> Tuple[bool, Any]:
        m = self.writes.get(table)
        if m is None or key not in m:
            return False, None
        return True, m[key]

    def stage(self, table: str, key: Hashable, value: Any) -> None:
        m = self.writes.get(table)
        if m is None:
            m = {}
            self.writes[table] = m
        m[key] = value

    def size(self) -> int:
        return sum(len(m) for m in self.writes.values())


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    A copy-on-write write journal with nested checkpoints over a MarketState.

    API highlights
    --------------
    - begin() / commit() / revert()
    - checkpoint() / commit_to(marker) / revert_to(marker)
    - get(), contains(), put(), delete(), items()
    """

    def __init__(self, state: MarketState) -> None:
        self._base = state
        # Start with a single empty overlay for convenience.
        self._layers: List[_Overlay] = [_Overlay()]

    @property
    def state(self) -> MarketState:
        return self._base

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of overlays (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the depth *before* it was opened."""
        marker = len(self._layers)
        self._layers.append(_Overlay())
        return marker

    def commit(self) -> None:
        """
        Commit the top overlay into its parent. Committing into the root layer
        (or committing the root layer itself) applies the changes to the base.
        """
        if len(self._layers) == 1:
            self._apply_to_base(self._layers[0])
            self._layers[0] = _Overlay()
            return

        top = self._layers.pop()
        self._merge_layers(self._layers[-1], top)
        if len(self._layers) == 1:
            self._apply_to_base(self._layers[0])
            self._layers[0] = _Overlay()

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Overlay()

    # Markers for convenience ------------------------------------------------ #

    def checkpoint(self) -> int:
        """Alias for `begin()` returning a marker token."""
        return self.begin()

    def commit_to(self, marker: int) -> None:
        """Commit repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.commit()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    # --------------------------------------------------------------------- #
    # Read API
    # --------------------------------------------------------------------- #

    def get(self, table: str, key: Hashable, default: Any = None) -> Any:
        """Read with overlay precedence. Returns `default` if absent or deleted."""
        _check_table(table)
        for layer in reversed(self._layers):
            found, value = layer.lookup(table, key)
            if found:
                return default if value is _DELETED else value
        return self._base.table(table).get(key, default)

    def contains(self, table: str, key: Hashable) -> bool:
        return self.get(table, key, _DELETED) is not _DELETED

    def items(self, table: str) -> Iterator[Tuple[Hashable, Any]]:
        """
        Iterate the visible (key, value) pairs of a table. Deletions in overlays
        are respected; iteration order is base insertion order, then staged keys.
        """
        _check_table(table)
        visible: Dict[Hashable, Any] = dict(self._base.table(table))
        # Apply overlays from bottom → top to get the final view.
        for layer in self._layers:
            m = layer.writes.get(table)
            if not m:
                continue
            for k, v in m.items():
                if v is _DELETED:
                    visible.pop(k, None)
                else:
                    visible[k] = v
        return iter(list(visible.items()))

    def count(self, table: str) -> int:
        return sum(1 for _ in self.items(table))

    # --------------------------------------------------------------------- #
    # Write API
    # --------------------------------------------------------------------- #

    def put(self, table: str, key: Hashable, value: Any) -> None:
        """Stage a write in the top overlay."""
        _check_table(table)
        if value is None:
            raise ValueError("use delete() to remove a key; None is not a storable value")
        self._layers[-1].stage(table, key, value)

    def delete(self, table: str, key: Hashable) -> bool:
        """
        Stage a deletion in the top overlay. Returns True if the key was
        visible before the deletion.
        """
        existed = self.contains(table, key)
        self._layers[-1].stage(table, key, _DELETED)
        return existed

    # Scalar helpers for the `vars` table ---------------------------------- #

    def get_var(self, name: str, default: int = 0) -> int:
        return int(self.get("vars", name, default))

    def set_var(self, name: str, value: int) -> None:
        self.put("vars", name, int(value))

    # --------------------------------------------------------------------- #
    # Internal merge/apply
    # --------------------------------------------------------------------- #

    @staticmethod
    def _merge_layers(dst: _Overlay, src: _Overlay) -> None:
        for table, writes in src.writes.items():
            for k, v in writes.items():
                dst.stage(table, k, v)

    def _apply_to_base(self, layer: _Overlay) -> None:
        for table, writes in layer.writes.items():
            base = self._base.table(table)
            for k, v in writes.items():
                if v is _DELETED:
                    base.pop(k, None)
                else:
                    base[k] = v

    # --------------------------------------------------------------------- #
    # Debug/Introspection
    # --------------------------------------------------------------------- #

    def pending_writes(self) -> int:
        """Total number of staged (table, key) entries across layers."""
        return sum(layer.size() for layer in self._layers)

    def pending_tables(self, marker: Optional[int] = None) -> List[str]:
        """Tables touched by overlays above `marker` (default: all overlays)."""
        start = 0 if marker is None else marker
        seen: List[str] = []
        for layer in self._layers[start:]:
            for t in layer.writes:
                if t not in seen:
                    seen.append(t)
        return seen


__all__ = ["Journal"]
