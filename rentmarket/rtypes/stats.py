from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping

from .listing import Principal


@dataclass(frozen=True)
class UserStats:
    user: Principal
    total_rentals: int = 0
    total_spent: int = 0
    total_earned: int = 0
    reputation_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "UserStats":
        return UserStats(
            user=Principal(str(d["user"])),
            total_rentals=int(d["total_rentals"]),
            total_spent=int(d["total_spent"]),
            total_earned=int(d["total_earned"]),
            reputation_score=int(d["reputation_score"]),
        )


@dataclass(frozen=True)
class PlatformStats:
    total_listings: int
    total_rentals: int
    active_rentals: int
    platform_fee_rate: int
    total_platform_revenue: int
    min_rental_duration: int
    max_rental_duration: int
    custody_balance: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["UserStats", "PlatformStats"]
