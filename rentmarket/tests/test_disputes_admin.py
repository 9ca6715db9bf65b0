from __future__ import annotations

import pytest

from rentmarket.errors import InvalidAmount, InvalidDuration, NotFound, OwnerOnly
from rentmarket.rtypes import EventType, HistoryAction

from . import ADMIN, OTHER, OWNER, PUNK, RENTER

CUSTODY = "rentmarket.custody"


# ---------------------------------------------------------------- disputes


def test_dispute_against_renter_pays_owner(market, rented):
    market.resolve_dispute(ADMIN, rented, return_collateral_to_renter=False)
    assert market.balance_of(OWNER) == 19_000 + 4_000
    assert market.balance_of(RENTER) == 100_000 - 24_000
    assert market.get_active_rental(rented) is None
    assert market.get_listing(rented).available is True
    assert market.balance_of(CUSTODY) == 1_000
    assert market.check_invariants() == []


def test_dispute_for_renter_refunds_collateral(market, rented):
    market.resolve_dispute(ADMIN, rented, return_collateral_to_renter=True)
    assert market.balance_of(RENTER) == 100_000 - 20_000
    assert market.balance_of(OWNER) == 19_000
    assert market.get_active_rental(rented) is None


def test_dispute_adds_no_history_and_keeps_stats(market, rented):
    renter_stats = market.get_user_stats(RENTER)
    market.resolve_dispute(ADMIN, rented, False)
    assert [h.action for h in market.get_history(RENTER)] == [HistoryAction.RENTED]
    assert market.get_user_stats(RENTER) == renter_stats
    ev = market.get_events()[-1]
    assert ev.etype == EventType.DISPUTE_RESOLVED
    assert ev.data["recipient"] == OWNER


def test_dispute_guards(market, listing_id):
    with pytest.raises(OwnerOnly):
        market.resolve_dispute(OWNER, listing_id, True)
    with pytest.raises(NotFound):
        market.resolve_dispute(ADMIN, listing_id, True)


def test_non_admin_dispute_checked_before_lookup(market):
    with pytest.raises(OwnerOnly):
        market.resolve_dispute(RENTER, 999, True)


# ---------------------------------------------------------------- fee rate


@pytest.mark.parametrize("rate", [0, 2_000, 750])
def test_fee_rate_accepted(market, listing_id, rate):
    market.set_platform_fee_rate(ADMIN, rate)
    assert market.get_platform_stats().platform_fee_rate == rate
    assert market.get_rental_quote(listing_id, 200).platform_fee == 20_000 * rate // 10_000


@pytest.mark.parametrize("rate", [2_001, -1, 10_000])
def test_fee_rate_rejected(market, rate):
    with pytest.raises(InvalidAmount):
        market.set_platform_fee_rate(ADMIN, rate)
    assert market.get_platform_stats().platform_fee_rate == 500


def test_fee_rate_admin_only(market):
    with pytest.raises(OwnerOnly):
        market.set_platform_fee_rate(OWNER, 100)


def test_fee_change_does_not_touch_existing_rental(market, rented):
    market.set_platform_fee_rate(ADMIN, 0)
    market.return_nft(RENTER, rented)
    assert market.get_platform_stats().total_platform_revenue == 1_000


# ---------------------------------------------------------------- durations


def test_duration_limits(market):
    market.set_duration_limits(ADMIN, 10, 20)
    stats = market.get_platform_stats()
    assert (stats.min_rental_duration, stats.max_rental_duration) == (10, 20)
    assert market.list_for_rental(OWNER, PUNK, 5, 10, 20) == 1


@pytest.mark.parametrize("lo, hi", [(20, 20), (30, 20), (0, 20)])
def test_duration_limits_rejected(market, lo, hi):
    with pytest.raises(InvalidDuration):
        market.set_duration_limits(ADMIN, lo, hi)


def test_duration_limits_admin_only(market):
    with pytest.raises(OwnerOnly):
        market.set_duration_limits(OTHER, 10, 20)


# ---------------------------------------------------------------- withdrawals


def test_withdraw_platform_fees(market, rented):
    market.withdraw_platform_fees(ADMIN, 600)
    assert market.balance_of(ADMIN) == 600
    assert market.get_platform_stats().total_platform_revenue == 400
    assert market.balance_of(CUSTODY) == 4_000 + 400
    assert market.check_invariants() == []
    # collateral stays untouchable by withdrawals
    with pytest.raises(InvalidAmount):
        market.withdraw_platform_fees(ADMIN, 401)
    market.withdraw_platform_fees(ADMIN, 400)
    market.return_nft(RENTER, rented)
    assert market.balance_of(CUSTODY) == 0


@pytest.mark.parametrize("amount", [0, -10])
def test_withdraw_rejects_non_positive(market, rented, amount):
    with pytest.raises(InvalidAmount):
        market.withdraw_platform_fees(ADMIN, amount)


def test_withdraw_admin_only(market, rented):
    with pytest.raises(OwnerOnly):
        market.withdraw_platform_fees(OWNER, 100)
    assert market.get_platform_stats().total_platform_revenue == 1_000
