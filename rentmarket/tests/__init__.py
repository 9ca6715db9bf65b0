from __future__ import annotations
"""
rentmarket test suite package.

Shared constants for the tests. Nothing here mutates global randomness on
import; tests opt in to determinism by calling `reseed_random()`.
"""

from rentmarket.rtypes import AssetId


TEST_SEED: int = 0x7E47A1

ADMIN = "admin"
OWNER = "alice"
RENTER = "bob"
OTHER = "carol"

START_HEIGHT = 1_000
PUNK = AssetId("nft.punks", 7)


def reseed_random() -> None:
    import random
    random.seed(TEST_SEED)


__all__ = ["TEST_SEED", "reseed_random", "ADMIN", "OWNER", "RENTER", "OTHER", "START_HEIGHT", "PUNK"]
