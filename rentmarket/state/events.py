from __future__ import annotations
"""
Append-only market event log kept inside the journaled state.

Events are staged through the same Journal as the rest of the state, so an
aborted operation never leaves an event behind. Sequence numbers start at 1
and are allocated from the `next_event_seq` variable.
"""

from typing import Any, List, Mapping, Optional

from ..rtypes import EventType, MarketEvent
from .journal import Journal
from .store import EVENTS, VAR_NEXT_EVENT_SEQ


class EventLog:
    def __init__(self, journal: Journal) -> None:
        self._j = journal

    def append(self, etype: EventType, height: int, data: Optional[Mapping[str, Any]] = None) -> MarketEvent:
        seq = self._j.get_var(VAR_NEXT_EVENT_SEQ, 1)
        ev = MarketEvent(seq=seq, etype=etype, height=int(height), data=dict(data or {}))
        self._j.put(EVENTS, seq, ev)
        self._j.set_var(VAR_NEXT_EVENT_SEQ, seq + 1)
        return ev

    def list(
        self,
        *,
        since: int = 0,
        etype: Optional[EventType] = None,
        limit: Optional[int] = None,
    ) -> List[MarketEvent]:
        """Events with seq > `since`, oldest first, optionally filtered by type."""
        out = sorted((ev for seq, ev in self._j.items(EVENTS) if seq > since), key=lambda e: e.seq)
        if etype is not None:
            out = [ev for ev in out if ev.etype == etype]
        if limit is not None:
            out = out[: max(0, limit)]
        return out

    def __len__(self) -> int:
        return self._j.count(EVENTS)


__all__ = ["EventLog"]
