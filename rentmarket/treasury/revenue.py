from __future__ import annotations
"""Undistributed platform revenue and the admin withdrawal path."""

from ..access import AdminGuard
from ..errors import InvalidAmount
from ..state.journal import Journal
from ..state.store import VAR_TOTAL_PLATFORM_REVENUE
from .escrow import EscrowLedger


class RevenueAccumulator:
    """
    Platform fees stay in custody until withdrawn. `total()` is the amount of
    custody that belongs to the platform rather than to collateral holds.
    """

    def __init__(self, journal: Journal, escrow: EscrowLedger, guard: AdminGuard) -> None:
        self._j = journal
        self._escrow = escrow
        self._guard = guard

    def total(self) -> int:
        return self._j.get_var(VAR_TOTAL_PLATFORM_REVENUE, 0)

    def accrue(self, fee: int) -> int:
        if fee < 0:
            raise InvalidAmount("fee must be non-negative", details={"fee": fee})
        new = self.total() + fee
        self._j.set_var(VAR_TOTAL_PLATFORM_REVENUE, new)
        return new

    def withdraw(self, caller: str, amount: int) -> int:
        """Pay `amount` of revenue to the admin. Returns the remaining revenue."""
        self._guard.require_admin(caller, "withdraw_platform_fees")
        available = self.total()
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0 or amount > available:
            raise InvalidAmount(
                "withdrawal must be positive and within accumulated revenue",
                details={"amount": amount, "available": available},
            )
        remaining = available - amount
        self._j.set_var(VAR_TOTAL_PLATFORM_REVENUE, remaining)
        self._escrow.pay(self._guard.admin, amount)
        return remaining


__all__ = ["RevenueAccumulator"]
