from __future__ import annotations

import pytest

from rentmarket.errors import InsufficientPayment, InvalidDuration, NotAvailable, NotFound, RentalActive, Unauthorized
from rentmarket.rtypes import EventType, HistoryAction

from . import OTHER, OWNER, RENTER, START_HEIGHT

CUSTODY = "rentmarket.custody"


def test_rent_then_return_reference_scenario(market, listing_id):
    receipt = market.rent_nft(RENTER, listing_id, 200)
    assert receipt.rental_id == 1
    assert receipt.end_block == START_HEIGHT + 200
    assert receipt.collateral == 4_000

    # renter paid 24000, owner got 19000 immediately, custody keeps 4000 + 1000
    assert market.balance_of(RENTER) == 100_000 - 24_000
    assert market.balance_of(OWNER) == 19_000
    assert market.balance_of(CUSTODY) == 5_000
    stats = market.get_platform_stats()
    assert stats.total_platform_revenue == 1_000
    assert stats.active_rentals == 1
    assert stats.total_rentals == 1

    listing = market.get_listing(listing_id)
    assert listing.available is False
    assert listing.total_earned == 19_000
    assert listing.rental_count == 1

    rental = market.get_active_rental(listing_id)
    assert rental.renter == RENTER
    assert (rental.start_block, rental.end_block) == (START_HEIGHT, START_HEIGHT + 200)
    assert rental.total_paid == 20_000
    assert rental.collateral_amount == 4_000
    assert market.check_invariants() == []

    market.return_nft(RENTER, listing_id)
    assert market.balance_of(RENTER) == 100_000 - 20_000
    assert market.balance_of(CUSTODY) == 1_000
    assert market.get_active_rental(listing_id) is None
    assert market.get_listing(listing_id).available is True
    assert market.check_invariants() == []


def test_history_entries_for_rent_and_return(market, rented):
    market.return_nft(RENTER, rented)
    hist = market.get_history(RENTER)
    assert [(h.action, h.amount) for h in hist] == [
        (HistoryAction.RENTED, 24_000),
        (HistoryAction.RETURNED, 0),
    ]
    assert all(h.rental_id == 1 and h.listing_id == rented for h in hist)
    assert market.get_history(OWNER) == []


def test_owner_cannot_rent_own_listing(market, listing_id):
    market.fund(OWNER, 50_000)
    with pytest.raises(Unauthorized):
        market.rent_nft(OWNER, listing_id, 200)


@pytest.mark.parametrize("duration", [143, 1_001, 0])
def test_duration_must_fit_listing(market, listing_id, duration):
    with pytest.raises(InvalidDuration):
        market.rent_nft(RENTER, listing_id, duration)


def test_missing_listing(market):
    with pytest.raises(NotFound):
        market.rent_nft(RENTER, 7, 200)


def test_double_rent_rejected_without_touching_rental(market, rented):
    before = market.get_active_rental(rented)
    with pytest.raises((NotAvailable, RentalActive)):
        market.rent_nft(OTHER, rented, 300)
    assert market.get_active_rental(rented) == before
    assert market.balance_of(OTHER) == 100_000


def test_insufficient_payment_leaves_no_trace(market, listing_id):
    market.fund("dave", 23_999)
    events_before = len(market.get_events())
    with pytest.raises(InsufficientPayment) as ei:
        market.rent_nft("dave", listing_id, 200)
    assert ei.value.details["required"] == 24_000
    assert ei.value.details["available"] == 23_999

    assert market.balance_of("dave") == 23_999
    assert market.balance_of(OWNER) == 0
    assert market.get_listing(listing_id).available is True
    assert market.get_active_rental(listing_id) is None
    assert market.get_user_stats("dave") is None
    assert market.get_platform_stats().total_platform_revenue == 0
    assert len(market.get_events()) == events_before
    # the aborted rental did not burn a rental id
    assert market.rent_nft(RENTER, listing_id, 200).rental_id == 1


def test_only_renter_can_return(market, rented):
    with pytest.raises(Unauthorized):
        market.return_nft(OTHER, rented)
    with pytest.raises(Unauthorized):
        market.return_nft(OWNER, rented)


def test_return_without_rental(market, listing_id):
    with pytest.raises(NotFound):
        market.return_nft(RENTER, listing_id)


def test_auto_return_expiry_gate(market, clock, rented):
    clock.set(START_HEIGHT + 199)
    assert market.is_rental_expired(rented) is False
    with pytest.raises(RentalActive):
        market.auto_return_expired(OTHER, rented)

    clock.set(START_HEIGHT + 200)
    assert market.is_rental_expired(rented) is True
    market.auto_return_expired(OTHER, rented)  # any caller
    assert market.balance_of(RENTER) == 100_000 - 20_000
    assert market.balance_of(OTHER) == 100_000
    assert market.get_listing(rented).available is True
    assert market.get_history(RENTER)[-1].action == HistoryAction.RETURNED


def test_auto_return_without_rental(market, listing_id):
    with pytest.raises(NotFound):
        market.auto_return_expired(OTHER, listing_id)
    assert market.is_rental_expired(listing_id) is False


def test_rerent_after_return(market, clock, rented):
    market.return_nft(RENTER, rented)
    clock.advance(10)
    receipt = market.rent_nft(OTHER, rented, 144)
    assert receipt.rental_id == 2
    assert receipt.end_block == START_HEIGHT + 10 + 144
    listing = market.get_listing(rented)
    assert listing.rental_count == 2
    assert listing.total_earned == 19_000 + 13_680
    assert market.check_invariants() == []


def test_quote_matches_rent(market, listing_id):
    q = market.get_rental_quote(listing_id, 200)
    assert (q.rental_cost, q.collateral_required, q.platform_fee, q.total_payment) == (20_000, 4_000, 1_000, 24_000)
    with pytest.raises(NotFound):
        market.get_rental_quote(99, 200)


def test_events_record_each_commit(market, rented):
    market.return_nft(RENTER, rented)
    evs = market.get_events()
    assert [e.etype for e in evs] == [
        EventType.LISTING_CREATED,
        EventType.RENTAL_STARTED,
        EventType.RENTAL_RETURNED,
    ]
    assert [e.seq for e in evs] == [1, 2, 3]
    started = evs[1]
    assert started.data["rental_id"] == 1
    assert started.data["platform_fee"] == 1_000
    assert market.get_events(since_seq=2) == [evs[2]]
    assert market.get_events(etype=EventType.RENTAL_STARTED) == [started]
