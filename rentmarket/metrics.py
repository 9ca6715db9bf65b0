from __future__ import annotations

"""
Prometheus metrics for the rental marketplace.

We expose counters and gauges covering:
- listings: created / removed
- rentals: started, closed by path (return | auto | dispute)
- collateral: amounts released by recipient role (renter | owner)
- platform revenue: fees accrued and withdrawn
- rejections: failed operations by error name

Metrics are only touched after an operation commits, so aborted operations
never show up here except in REJECTED_OPS.
"""

from typing import Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, generate_latest)

# Dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   path: "return" | "auto" | "dispute"
#   recipient: "renter" | "owner"
#   error: MarketError.name ("NotFound", "InsufficientPayment", ...)
# ────────────────────────────────────────────────────────────────────────────────

LISTINGS_CREATED = Counter(
    "rentmarket_listings_created_total",
    "Total listings created.",
    registry=REGISTRY,
)

LISTINGS_REMOVED = Counter(
    "rentmarket_listings_removed_total",
    "Total listings removed by their owner.",
    registry=REGISTRY,
)

RENTALS_STARTED = Counter(
    "rentmarket_rentals_started_total",
    "Total rentals started.",
    registry=REGISTRY,
)

RENTALS_CLOSED = Counter(
    "rentmarket_rentals_closed_total",
    "Total rentals closed, by path.",
    labelnames=("path",),
    registry=REGISTRY,
)

COLLATERAL_RELEASED = Counter(
    "rentmarket_collateral_released_total",
    "Collateral paid out of custody, by recipient role.",
    labelnames=("recipient",),
    registry=REGISTRY,
)

FEES_ACCRUED = Counter(
    "rentmarket_platform_fees_accrued_total",
    "Platform fees accrued into the revenue accumulator.",
    registry=REGISTRY,
)

FEES_WITHDRAWN = Counter(
    "rentmarket_platform_fees_withdrawn_total",
    "Platform fees withdrawn by the admin.",
    registry=REGISTRY,
)

REJECTED_OPS = Counter(
    "rentmarket_rejected_operations_total",
    "Operations that failed and were rolled back, by operation and error.",
    labelnames=("op", "error"),
    registry=REGISTRY,
)

# Gauges
ACTIVE_RENTALS = Gauge(
    "rentmarket_active_rentals",
    "Current number of active rentals.",
    registry=REGISTRY,
)

HELD_COLLATERAL = Gauge(
    "rentmarket_held_collateral",
    "Collateral currently held in custody.",
    registry=REGISTRY,
)

# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_listing_created() -> None:
    LISTINGS_CREATED.inc()


def record_listing_removed() -> None:
    LISTINGS_REMOVED.inc()


def record_rental_started(platform_fee: int) -> None:
    RENTALS_STARTED.inc()
    if platform_fee > 0:
        FEES_ACCRUED.inc(platform_fee)


def record_rental_closed(path: str, recipient: str, collateral: int) -> None:
    RENTALS_CLOSED.labels(path=path).inc()
    if collateral > 0:
        COLLATERAL_RELEASED.labels(recipient=recipient).inc(collateral)


def record_withdrawal(amount: int) -> None:
    FEES_WITHDRAWN.inc(amount)


def record_rejection(op: str, error: str) -> None:
    REJECTED_OPS.labels(op=op, error=error).inc()


def set_custody_gauges(active_rentals: int, held_collateral: int) -> None:
    ACTIVE_RENTALS.set(active_rentals)
    HELD_COLLATERAL.set(held_collateral)


def render(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Prometheus text exposition of the registry."""
    return generate_latest(registry or REGISTRY)


__all__ = [
    "REGISTRY",
    "CONTENT_TYPE_LATEST",
    "LISTINGS_CREATED",
    "LISTINGS_REMOVED",
    "RENTALS_STARTED",
    "RENTALS_CLOSED",
    "COLLATERAL_RELEASED",
    "FEES_ACCRUED",
    "FEES_WITHDRAWN",
    "REJECTED_OPS",
    "ACTIVE_RENTALS",
    "HELD_COLLATERAL",
    "record_listing_created",
    "record_listing_removed",
    "record_rental_started",
    "record_rental_closed",
    "record_withdrawal",
    "record_rejection",
    "set_custody_gauges",
    "render",
]
