from __future__ import annotations

import io
import json
import logging

from rentmarket import logging as mlog
from rentmarket import metrics
from rentmarket.errors import NotFound

import pytest

from . import RENTER


def _sample(name, labels=None):
    return metrics.REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_metrics_move_only_on_commit(market, listing_id):
    started = _sample("rentmarket_rentals_started_total")
    fees = _sample("rentmarket_platform_fees_accrued_total")
    rejected = _sample("rentmarket_rejected_operations_total", {"op": "rent_nft", "error": "NotFound"})

    market.rent_nft(RENTER, listing_id, 200)
    with pytest.raises(NotFound):
        market.rent_nft(RENTER, 404, 200)

    assert _sample("rentmarket_rentals_started_total") == started + 1
    assert _sample("rentmarket_platform_fees_accrued_total") == fees + 1_000
    assert _sample("rentmarket_rejected_operations_total", {"op": "rent_nft", "error": "NotFound"}) == rejected + 1
    assert _sample("rentmarket_active_rentals") == 1
    assert _sample("rentmarket_held_collateral") == 4_000


def test_rental_close_metrics(market, rented):
    closed = _sample("rentmarket_rentals_closed_total", {"path": "return"})
    released = _sample("rentmarket_collateral_released_total", {"recipient": "renter"})
    market.return_nft(RENTER, rented)
    assert _sample("rentmarket_rentals_closed_total", {"path": "return"}) == closed + 1
    assert _sample("rentmarket_collateral_released_total", {"recipient": "renter"}) == released + 4_000


def test_render_exposition():
    body = metrics.render().decode()
    assert "rentmarket_listings_created_total" in body


def test_json_formatter_includes_context():
    buf = io.StringIO()
    logger = mlog.configure(json=True, level="DEBUG", stream=buf)
    with mlog.trace_scope("t-1", op="rent_nft"):
        logging.getLogger("rentmarket.test").info("hello %s", "world")
    line = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert line["msg"] == "hello world"
    assert line["trace_id"] == "t-1"
    assert line["op"] == "rent_nft"
    assert logger.name == "rentmarket"
    assert "op" not in mlog.context()


def test_text_formatter_and_bind():
    buf = io.StringIO()
    mlog.configure(json=False, level="INFO", stream=buf)
    mlog.bind(component="test")
    try:
        logging.getLogger("rentmarket.test").warning("careful")
    finally:
        mlog.unbind("component")
    out = buf.getvalue()
    assert "WARNING" in out
    assert "component=test" in out
    assert out.rstrip().endswith("careful")


def test_operations_log_info(market, listing_id, caplog):
    with caplog.at_level(logging.INFO, logger="rentmarket"):
        market.rent_nft(RENTER, listing_id, 200)
    assert any("rental 1 started" in r.getMessage() for r in caplog.records)
