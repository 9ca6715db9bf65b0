from __future__ import annotations
"""
Market event records.

Every committed state transition appends one event to the append-only event
log (see rentmarket.state.events). Events are plain frozen dataclasses with
JSON-serializable payloads so indexers and the CLI can consume them directly.
Heights are the external block height at which the transition committed.
"""


from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping


class EventType(str, Enum):
    LISTING_CREATED = "ListingCreated"
    PRICE_UPDATED = "PriceUpdated"
    LISTING_REMOVED = "ListingRemoved"
    RENTAL_STARTED = "RentalStarted"
    RENTAL_RETURNED = "RentalReturned"
    RENTAL_AUTO_RETURNED = "RentalAutoReturned"
    DISPUTE_RESOLVED = "DisputeResolved"
    FEE_RATE_CHANGED = "FeeRateChanged"
    DURATION_LIMITS_CHANGED = "DurationLimitsChanged"
    FEES_WITHDRAWN = "FeesWithdrawn"


@dataclass(frozen=True)
class MarketEvent:
    seq: int
    etype: EventType
    height: int
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "etype": self.etype.value,
            "height": self.height,
            "data": dict(self.data),
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "MarketEvent":
        return MarketEvent(
            seq=int(d["seq"]),
            etype=EventType(d["etype"]),
            height=int(d["height"]),
            data=dict(d.get("data") or {}),
        )


__all__ = ["EventType", "MarketEvent"]
