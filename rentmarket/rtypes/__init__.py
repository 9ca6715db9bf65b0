from __future__ import annotations
"""
Typed records for the rental marketplace: listings, live rentals, history,
per-user stats and market events. All records are frozen dataclasses with
`to_dict()` / `from_dict()` helpers; state transitions build new records with
`dataclasses.replace` instead of mutating in place.
"""

from .events import EventType, MarketEvent
from .history import HistoryAction, HistoryKey, HistoryRecord
from .listing import AssetId, Listing, Principal
from .rental import ActiveRental, RentalReceipt
from .stats import PlatformStats, UserStats

__all__ = [
    "AssetId",
    "Listing",
    "Principal",
    "ActiveRental",
    "RentalReceipt",
    "HistoryAction",
    "HistoryKey",
    "HistoryRecord",
    "UserStats",
    "PlatformStats",
    "EventType",
    "MarketEvent",
]
