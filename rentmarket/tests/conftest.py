from __future__ import annotations

import logging

import pytest

from rentmarket.clock import ManualClock
from rentmarket.config import MarketConfig
from rentmarket.market import RentalMarket
from . import ADMIN, OTHER, OWNER, PUNK, RENTER, START_HEIGHT


@pytest.fixture(autouse=True)
def _reset_market_logger():
    # the CLI configures the package logger; keep tests independent of that
    yield
    lg = logging.getLogger("rentmarket")
    for h in list(lg.handlers):
        lg.removeHandler(h)
    lg.setLevel(logging.NOTSET)
    lg.propagate = True


@pytest.fixture
def cfg() -> MarketConfig:
    return MarketConfig(admin=ADMIN)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START_HEIGHT)


@pytest.fixture
def market(cfg: MarketConfig, clock: ManualClock) -> RentalMarket:
    m = RentalMarket(cfg, clock=clock)
    m.fund(RENTER, 100_000)
    m.fund(OTHER, 100_000)
    return m


@pytest.fixture
def listing_id(market: RentalMarket) -> int:
    """A listing at 100/block, durations [144, 1000], owned by alice."""
    return market.list_for_rental(OWNER, PUNK, 100, 144, 1_000)


@pytest.fixture
def rented(market: RentalMarket, listing_id: int) -> int:
    """The listing above, rented by bob for 200 blocks at START_HEIGHT."""
    market.rent_nft(RENTER, listing_id, 200)
    return listing_id
