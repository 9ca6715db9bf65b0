from __future__ import annotations
"""
Pricing: rental cost, collateral, platform fee and owner payment.

Pure integer functions, no floating point. Every basis-point product uses
truncating integer division (floor for the non-negative values admitted here),
so the owner payment is defined as the *remainder* of the cost after the fee:

    cost           = price_per_block * duration
    collateral     = floor(cost * collateral_bps / 10_000)      (20% by default)
    platform_fee   = floor(cost * fee_rate_bps / 10_000)
    owner_payment  = cost - platform_fee
    total_payment  = cost + collateral

which makes `owner_payment + platform_fee == cost` hold for every input.

Amounts are bounded to unsigned 128-bit values; anything larger (inputs or
intermediate products) raises InvalidAmount before it can reach the ledger.

Example
-------
>>> q = quote(price_per_block=100, duration=200, fee_rate_bps=500)
>>> (q.rental_cost, q.collateral_required, q.platform_fee, q.owner_payment, q.total_payment)
(20000, 4000, 1000, 19000, 24000)
"""


from dataclasses import asdict, dataclass
from typing import Any, Dict, Final

from ..config import BPS_DENOM
from ..errors import InvalidAmount

Amount = int

U128_MAX: Final[int] = (1 << 128) - 1
DEFAULT_COLLATERAL_BPS: Final[int] = 2_000


def _require_u128(value: int, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an integer", details={name: repr(value)})
    if value < 0 or value > U128_MAX:
        raise InvalidAmount(f"{name} out of range", details={name: value})
    return value


def _require_bps(bps: int, name: str) -> int:
    _require_u128(bps, name)
    if bps > BPS_DENOM:
        raise InvalidAmount(f"{name} must be <= {BPS_DENOM}", details={name: bps})
    return bps


def _mul(a: int, b: int, what: str) -> int:
    out = a * b
    if out > U128_MAX:
        raise InvalidAmount(f"{what} overflows u128", details={"lhs": a, "rhs": b})
    return out


def apply_bps(amount: Amount, bps: int) -> Amount:
    """floor(amount * bps / 10_000), overflow-checked."""
    _require_u128(amount, "amount")
    _require_bps(bps, "bps")
    return _mul(amount, bps, "bps product") // BPS_DENOM


def rental_cost(price_per_block: Amount, duration: int) -> Amount:
    _require_u128(price_per_block, "price_per_block")
    _require_u128(duration, "duration")
    return _mul(price_per_block, duration, "rental cost")


def collateral_for(cost: Amount, collateral_bps: int = DEFAULT_COLLATERAL_BPS) -> Amount:
    return apply_bps(cost, collateral_bps)


def platform_fee(cost: Amount, fee_rate_bps: int) -> Amount:
    return apply_bps(cost, fee_rate_bps)


def owner_payment(cost: Amount, fee: Amount) -> Amount:
    _require_u128(cost, "cost")
    _require_u128(fee, "fee")
    if fee > cost:
        raise InvalidAmount("platform fee exceeds cost", details={"cost": cost, "fee": fee})
    return cost - fee


def total_payment(cost: Amount, collateral: Amount) -> Amount:
    _require_u128(cost, "cost")
    _require_u128(collateral, "collateral")
    out = cost + collateral
    if out > U128_MAX:
        raise InvalidAmount("total payment overflows u128", details={"cost": cost, "collateral": collateral})
    return out


@dataclass(frozen=True)
class Quote:
    """Full price breakdown for renting a listing for `duration` blocks."""
    rental_cost: Amount
    collateral_required: Amount
    platform_fee: Amount
    owner_payment: Amount
    total_payment: Amount

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def quote(
    *,
    price_per_block: Amount,
    duration: int,
    fee_rate_bps: int,
    collateral_bps: int = DEFAULT_COLLATERAL_BPS,
) -> Quote:
    """
    Compute the complete split before any value moves. The returned Quote
    always satisfies owner_payment + platform_fee == rental_cost.
    """
    cost = rental_cost(price_per_block, duration)
    collateral = collateral_for(cost, collateral_bps)
    fee = platform_fee(cost, fee_rate_bps)
    return Quote(
        rental_cost=cost,
        collateral_required=collateral,
        platform_fee=fee,
        owner_payment=owner_payment(cost, fee),
        total_payment=total_payment(cost, collateral),
    )


__all__ = [
    "Amount",
    "U128_MAX",
    "DEFAULT_COLLATERAL_BPS",
    "apply_bps",
    "rental_cost",
    "collateral_for",
    "platform_fee",
    "owner_payment",
    "total_payment",
    "Quote",
    "quote",
]
