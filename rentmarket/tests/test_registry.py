from __future__ import annotations

import pytest

from rentmarket.adapters.assets import InMemoryAssets
from rentmarket.clock import ManualClock
from rentmarket.config import MarketConfig
from rentmarket.errors import AlreadyListed, InvalidAmount, InvalidDuration, NotFound, RentalActive, Unauthorized
from rentmarket.market import RentalMarket
from rentmarket.rtypes import AssetId

from . import OTHER, OWNER, PUNK, RENTER, START_HEIGHT


def test_list_creates_available_listing(market, listing_id):
    assert listing_id == 1
    listing = market.get_listing(listing_id)
    assert listing.owner == OWNER
    assert listing.asset == PUNK
    assert listing.available is True
    assert (listing.total_earned, listing.rental_count) == (0, 0)
    assert listing.created_at == START_HEIGHT
    assert market.get_listing_by_asset(PUNK) == listing
    assert market.get_listing_by_asset(("nft.punks", 7)) == listing
    assert market.get_listing_by_asset("nft.punks#7") == listing
    assert market.get_total_listings() == 1


def test_ids_are_monotonic_and_never_reused(market, listing_id):
    market.remove_listing(OWNER, listing_id)
    again = market.list_for_rental(OWNER, PUNK, 100, 144, 1_000)
    assert again == 2
    assert market.get_listing(listing_id) is None
    assert market.get_total_listings() == 2


@pytest.mark.parametrize("price", [0, -5])
def test_non_positive_price_rejected(market, price):
    with pytest.raises(InvalidAmount):
        market.list_for_rental(OWNER, PUNK, price, 144, 1_000)
    assert market.get_total_listings() == 0


@pytest.mark.parametrize(
    "lo, hi",
    [
        (143, 1_000),   # below global floor
        (144, 52_561),  # above global ceiling
        (500, 400),     # min > max
    ],
)
def test_duration_bounds_enforced(market, lo, hi):
    with pytest.raises(InvalidDuration):
        market.list_for_rental(OWNER, PUNK, 100, lo, hi)


def test_min_equal_max_accepted(market):
    lid = market.list_for_rental(OWNER, PUNK, 100, 144, 144)
    assert market.get_listing(lid).max_duration == 144


def test_double_listing_same_asset(market, listing_id):
    with pytest.raises(AlreadyListed) as ei:
        market.list_for_rental(OTHER, PUNK, 50, 144, 1_000)
    assert ei.value.details["listing_id"] == listing_id
    # a different token of the same contract is fine
    assert market.list_for_rental(OWNER, AssetId("nft.punks", 8), 50, 144, 1_000) == 2


def test_failed_listing_does_not_consume_id(market):
    with pytest.raises(InvalidAmount):
        market.list_for_rental(OWNER, PUNK, 0, 144, 1_000)
    assert market.list_for_rental(OWNER, PUNK, 10, 144, 1_000) == 1


def test_update_price(market, listing_id):
    market.update_rental_price(OWNER, listing_id, 250)
    assert market.get_listing(listing_id).price_per_block == 250
    assert market.get_rental_quote(listing_id, 200).rental_cost == 50_000


def test_update_price_guards(market, listing_id):
    with pytest.raises(NotFound):
        market.update_rental_price(OWNER, 99, 10)
    with pytest.raises(Unauthorized):
        market.update_rental_price(OTHER, listing_id, 10)
    with pytest.raises(InvalidAmount):
        market.update_rental_price(OWNER, listing_id, 0)
    market.rent_nft(RENTER, listing_id, 200)
    with pytest.raises(RentalActive):
        market.update_rental_price(OWNER, listing_id, 10)
    assert market.get_listing(listing_id).price_per_block == 100


def test_remove_deletes_listing_and_index(market, listing_id):
    market.remove_listing(OWNER, listing_id)
    assert market.get_listing(listing_id) is None
    assert market.get_listing_by_asset(PUNK) is None
    assert market.check_invariants() == []


def test_remove_guards(market, listing_id):
    with pytest.raises(NotFound):
        market.remove_listing(OWNER, 42)
    with pytest.raises(Unauthorized):
        market.remove_listing(RENTER, listing_id)
    market.rent_nft(RENTER, listing_id, 200)
    with pytest.raises(RentalActive):
        market.remove_listing(OWNER, listing_id)
    assert market.get_listing_by_asset(PUNK) is not None


def test_ownership_check_when_enabled():
    assets = InMemoryAssets()
    assets.mint(PUNK, OWNER)
    m = RentalMarket(
        MarketConfig(verify_asset_ownership=True),
        clock=ManualClock(START_HEIGHT),
        assets=assets,
    )
    with pytest.raises(Unauthorized):
        m.list_for_rental(OTHER, PUNK, 100, 144, 1_000)
    assert m.list_for_rental(OWNER, PUNK, 100, 144, 1_000) == 1


def test_ownership_not_checked_by_default():
    assets = InMemoryAssets()
    assets.mint(PUNK, OWNER)
    m = RentalMarket(MarketConfig(), clock=ManualClock(START_HEIGHT), assets=assets)
    assert m.list_for_rental(OTHER, PUNK, 100, 144, 1_000) == 1
