from __future__ import annotations
"""Append-only rental history keyed by (user, rental_id, action)."""

from typing import List, Optional

from ..rtypes import HistoryAction, HistoryRecord, Principal
from ..state.journal import Journal
from ..state.store import HISTORY

_ACTION_ORDER = {HistoryAction.RENTED: 0, HistoryAction.RETURNED: 1}


def _sort_key(r: HistoryRecord):
    return (r.rental_id, _ACTION_ORDER[r.action], str(r.user))


class HistoryLog:
    def __init__(self, journal: Journal) -> None:
        self._j = journal

    def append(
        self,
        *,
        user: str,
        rental_id: int,
        listing_id: int,
        action: HistoryAction,
        block_height: int,
        amount: int,
    ) -> HistoryRecord:
        rec = HistoryRecord(
            user=Principal(user),
            rental_id=rental_id,
            listing_id=listing_id,
            action=action,
            block_height=block_height,
            amount=amount,
        )
        if self._j.contains(HISTORY, rec.key):
            raise ValueError(f"history entry already recorded: {rec.key!r}")
        self._j.put(HISTORY, rec.key, rec)
        return rec

    def get(self, user: str, rental_id: int, action: HistoryAction) -> Optional[HistoryRecord]:
        return self._j.get(HISTORY, (str(user), int(rental_id), action.value))

    def all(self) -> List[HistoryRecord]:
        return sorted((v for _, v in self._j.items(HISTORY)), key=_sort_key)

    def for_user(self, user: str) -> List[HistoryRecord]:
        return [r for r in self.all() if r.user == user]

    def for_rental(self, rental_id: int) -> List[HistoryRecord]:
        return [r for r in self.all() if r.rental_id == rental_id]


__all__ = ["HistoryLog"]
