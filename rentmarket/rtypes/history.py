from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

from .listing import Principal


class HistoryAction(str, Enum):
    RENTED = "rented"
    RETURNED = "returned"


HistoryKey = Tuple[str, int, str]  # (user, rental_id, action)


@dataclass(frozen=True)
class HistoryRecord:
    user: Principal
    rental_id: int
    listing_id: int
    action: HistoryAction
    block_height: int
    amount: int

    @property
    def key(self) -> HistoryKey:
        return (str(self.user), self.rental_id, self.action.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user": str(self.user),
            "rental_id": self.rental_id,
            "listing_id": self.listing_id,
            "action": self.action.value,
            "block_height": self.block_height,
            "amount": self.amount,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "HistoryRecord":
        return HistoryRecord(
            user=Principal(str(d["user"])),
            rental_id=int(d["rental_id"]),
            listing_id=int(d["listing_id"]),
            action=HistoryAction(d["action"]),
            block_height=int(d["block_height"]),
            amount=int(d["amount"]),
        )


__all__ = ["HistoryAction", "HistoryKey", "HistoryRecord"]
