from __future__ import annotations
"""
Listing registry: listing records plus the asset → listing index.

The registry enforces listing-level rules only:
- at most one listing per asset (the index has an entry iff the listing exists),
- price/duration validation at creation and price updates,
- owner-only mutation, and no mutation while a rental is live.

Rental transitions flip `available` through `save()`; they are orchestrated by
`rentmarket.machine.RentalStateMachine`.
"""

import logging
from typing import Iterable, Iterator, List, Optional

from ..adapters.assets import AssetRegistry
from ..economics.pricing import U128_MAX
from ..errors import AlreadyListed, InvalidAmount, InvalidDuration, NotFound, RentalActive, Unauthorized
from ..ids import IdAllocator
from ..policy import PolicySurface
from ..rtypes import AssetId, Listing, Principal
from ..state.journal import Journal
from ..state.store import ASSET_INDEX, LISTINGS, RENTALS

log = logging.getLogger(__name__)


def _check_price(price: int) -> None:
    if not isinstance(price, int) or isinstance(price, bool) or price <= 0 or price > U128_MAX:
        raise InvalidAmount("price_per_block must be a positive integer", details={"price_per_block": repr(price)})


class ListingRegistry:
    def __init__(
        self,
        journal: Journal,
        ids: IdAllocator,
        policy: PolicySurface,
        *,
        assets: Optional[AssetRegistry] = None,
        verify_ownership: bool = False,
        reserved: Iterable[str] = (),
    ) -> None:
        self._j = journal
        self._ids = ids
        self._policy = policy
        self._assets = assets
        self._verify = verify_ownership and assets is not None
        # accounts that may never own a listing (market custody)
        self._reserved = frozenset(reserved)

    # ---- reads ----

    def get(self, listing_id: int) -> Optional[Listing]:
        return self._j.get(LISTINGS, int(listing_id))

    def require(self, listing_id: int) -> Listing:
        listing = self.get(listing_id)
        if listing is None:
            raise NotFound("listing not found", listing_id=listing_id)
        return listing

    def by_asset(self, asset: AssetId) -> Optional[Listing]:
        lid = self._j.get(ASSET_INDEX, asset)
        return None if lid is None else self.get(lid)

    def all(self) -> List[Listing]:
        return sorted((v for _, v in self._j.items(LISTINGS)), key=lambda l: l.listing_id)

    def __iter__(self) -> Iterator[Listing]:
        return iter(self.all())

    def total_created(self) -> int:
        """Listings ever created, including removed ones."""
        return self._ids.issued()

    def has_rental(self, listing_id: int) -> bool:
        return self._j.contains(RENTALS, int(listing_id))

    # ---- writes ----

    def create(
        self,
        *,
        asset: AssetId,
        owner: str,
        price_per_block: int,
        min_duration: int,
        max_duration: int,
        created_at: int,
    ) -> Listing:
        if owner in self._reserved:
            raise Unauthorized("reserved account cannot list assets", caller=owner)
        _check_price(price_per_block)
        bounds = self._policy.duration_bounds()
        if min_duration > max_duration or not bounds.contains(min_duration, max_duration):
            raise InvalidDuration(
                "listing durations outside allowed bounds",
                details={
                    "min_duration": min_duration,
                    "max_duration": max_duration,
                    "floor": bounds.min_blocks,
                    "ceiling": bounds.max_blocks,
                },
            )
        if self._j.contains(ASSET_INDEX, asset):
            raise AlreadyListed(
                "asset already listed",
                details={"asset": str(asset), "listing_id": self._j.get(ASSET_INDEX, asset)},
            )
        if self._verify:
            holder = self._assets.owner_of(asset)  # type: ignore[union-attr]
            if holder != owner:
                raise Unauthorized("caller does not own the asset", caller=owner, details={"asset": str(asset)})

        listing = Listing(
            listing_id=self._ids.next(),
            asset=asset,
            owner=Principal(owner),
            price_per_block=price_per_block,
            min_duration=min_duration,
            max_duration=max_duration,
            available=True,
            total_earned=0,
            rental_count=0,
            created_at=created_at,
        )
        self._j.put(LISTINGS, listing.listing_id, listing)
        self._j.put(ASSET_INDEX, asset, listing.listing_id)
        return listing

    def _require_owned_idle(self, listing_id: int, caller: str) -> Listing:
        listing = self.require(listing_id)
        if listing.owner != caller:
            raise Unauthorized("only the listing owner may do this", caller=caller, details={"listing_id": listing_id})
        if self.has_rental(listing_id):
            raise RentalActive("listing has an active rental", details={"listing_id": listing_id})
        return listing

    def update_price(self, listing_id: int, caller: str, new_price: int) -> Listing:
        listing = self._require_owned_idle(listing_id, caller)
        _check_price(new_price)
        updated = listing.with_price(new_price)
        self._j.put(LISTINGS, listing_id, updated)
        return updated

    def remove(self, listing_id: int, caller: str) -> Listing:
        listing = self._require_owned_idle(listing_id, caller)
        self._j.delete(LISTINGS, listing_id)
        self._j.delete(ASSET_INDEX, listing.asset)
        return listing

    def save(self, listing: Listing) -> None:
        self._j.put(LISTINGS, listing.listing_id, listing)


__all__ = ["ListingRegistry"]
