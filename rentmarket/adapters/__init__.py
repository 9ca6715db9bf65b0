"""Collaborator interfaces (value transfer, asset ownership) and persistence adapters."""

from .assets import AssetRegistry, InMemoryAssets
from .state_db import MarketStateDB
from .value import LedgerBank, ValueTransfer

__all__ = ["AssetRegistry", "InMemoryAssets", "LedgerBank", "ValueTransfer", "MarketStateDB"]
