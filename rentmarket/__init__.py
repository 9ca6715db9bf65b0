from __future__ import annotations
"""
rentmarket - rental marketplace ledger.

Owners publish rentable assets with a per-block price and duration bounds;
renters prepay rent plus refundable collateral; the market governs each rental
until it is returned, expires or a dispute is resolved, and keeps custody of
collateral and undistributed platform fees in between.

Public surface (lazily loaded):
- RentalMarket, MarketConfig
- config, errors, metrics, economics, registry, treasury, reputation
- state, adapters, cli
"""

import importlib
from typing import List

from .version import __version__

__all__: List[str] = [
    "__version__",
    "RentalMarket",
    "MarketConfig",
    # lazily importable subpackages/modules
    "config",
    "errors",
    "metrics",
    "economics",
    "registry",
    "treasury",
    "reputation",
    "state",
    "adapters",
    "cli",
]

_lazy_attrs = {
    "RentalMarket": ".market",
    "MarketConfig": ".config",
}
_lazy_modules = set(__all__) - {"__version__"} - set(_lazy_attrs)


def __getattr__(name: str):
    if name in _lazy_attrs:
        return getattr(importlib.import_module(_lazy_attrs[name], __name__), name)
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules | set(_lazy_attrs))
