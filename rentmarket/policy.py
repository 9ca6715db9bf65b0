from __future__ import annotations
"""
Mutable market policy: platform fee rate and global duration bounds.

Values live in the journaled `vars` table so admin changes commit or roll back
with the surrounding operation. `MarketConfig` only provides the values a
fresh state starts with.
"""

from dataclasses import dataclass

from .access import AdminGuard
from .config import MarketConfig
from .errors import InvalidAmount, InvalidDuration
from .state.journal import Journal
from .state.store import (
    VAR_MAX_RENTAL_DURATION,
    VAR_MIN_RENTAL_DURATION,
    VAR_PLATFORM_FEE_RATE,
)


@dataclass(frozen=True)
class DurationBounds:
    min_blocks: int
    max_blocks: int

    def contains(self, lo: int, hi: int) -> bool:
        return self.min_blocks <= lo and hi <= self.max_blocks


class PolicySurface:
    def __init__(self, journal: Journal, guard: AdminGuard, config: MarketConfig) -> None:
        self._j = journal
        self._guard = guard
        self._cfg = config

    def initialize(self) -> None:
        """Seed policy vars that are not yet present in state."""
        defaults = (
            (VAR_PLATFORM_FEE_RATE, self._cfg.fees.platform_fee_bps),
            (VAR_MIN_RENTAL_DURATION, self._cfg.durations.min_blocks),
            (VAR_MAX_RENTAL_DURATION, self._cfg.durations.max_blocks),
        )
        for name, value in defaults:
            if not self._j.contains("vars", name):
                self._j.set_var(name, value)

    # ---- reads ----

    @property
    def max_fee_rate(self) -> int:
        return self._cfg.fees.max_fee_bps

    @property
    def collateral_bps(self) -> int:
        return self._cfg.fees.collateral_bps

    def fee_rate(self) -> int:
        return self._j.get_var(VAR_PLATFORM_FEE_RATE, self._cfg.fees.platform_fee_bps)

    def duration_bounds(self) -> DurationBounds:
        return DurationBounds(
            min_blocks=self._j.get_var(VAR_MIN_RENTAL_DURATION, self._cfg.durations.min_blocks),
            max_blocks=self._j.get_var(VAR_MAX_RENTAL_DURATION, self._cfg.durations.max_blocks),
        )

    # ---- admin writes ----

    def set_fee_rate(self, caller: str, rate: int) -> int:
        """Set the platform fee in bps. Returns the previous rate."""
        self._guard.require_admin(caller, "set_platform_fee_rate")
        if not isinstance(rate, int) or isinstance(rate, bool) or rate < 0 or rate > self.max_fee_rate:
            raise InvalidAmount(
                f"fee rate must be within [0, {self.max_fee_rate}] bps",
                details={"rate": rate},
            )
        old = self.fee_rate()
        self._j.set_var(VAR_PLATFORM_FEE_RATE, rate)
        return old

    def set_duration_limits(self, caller: str, min_blocks: int, max_blocks: int) -> DurationBounds:
        """Set global listing duration bounds. Returns the previous bounds."""
        self._guard.require_admin(caller, "set_duration_limits")
        if min_blocks < 1 or min_blocks >= max_blocks:
            raise InvalidDuration(
                "duration limits require 1 <= min < max",
                details={"min": min_blocks, "max": max_blocks},
            )
        old = self.duration_bounds()
        self._j.set_var(VAR_MIN_RENTAL_DURATION, min_blocks)
        self._j.set_var(VAR_MAX_RENTAL_DURATION, max_blocks)
        return old


__all__ = ["DurationBounds", "PolicySurface"]
