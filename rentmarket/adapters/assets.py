from __future__ import annotations
"""
External asset ownership.

The market only escrows payment; it never takes custody of the rented asset.
An `AssetRegistry` collaborator answers who owns an asset and can move it.
The market consults `owner_of` at listing time when
`MarketConfig.verify_asset_ownership` is on, and never calls `transfer`.
"""

import threading
from typing import Dict, Optional, Protocol, runtime_checkable

from ..rtypes import AssetId


@runtime_checkable
class AssetRegistry(Protocol):
    def owner_of(self, asset: AssetId) -> Optional[str]: ...

    def transfer(self, asset: AssetId, src: str, dst: str) -> bool: ...


class InMemoryAssets:
    """Simple owner map. Good enough for tests and local runs."""

    def __init__(self, owners: Optional[Dict[AssetId, str]] = None) -> None:
        self._owners: Dict[AssetId, str] = dict(owners or {})
        self._lock = threading.Lock()

    def mint(self, asset: AssetId, owner: str) -> None:
        with self._lock:
            if asset in self._owners:
                raise ValueError(f"asset {asset} already exists")
            self._owners[asset] = owner

    def owner_of(self, asset: AssetId) -> Optional[str]:
        with self._lock:
            return self._owners.get(asset)

    def transfer(self, asset: AssetId, src: str, dst: str) -> bool:
        with self._lock:
            if self._owners.get(asset) != src:
                return False
            self._owners[asset] = dst
            return True


__all__ = ["AssetRegistry", "InMemoryAssets"]
