from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping

from .listing import Principal


@dataclass(frozen=True)
class ActiveRental:
    """
    The single live rental of a listing. Exists exactly while the listing is
    unavailable; `collateral_amount + total_paid` sits in custody until the
    rental closes (minus the owner payment, which leaves custody at rent time).
    """
    listing_id: int
    rental_id: int
    renter: Principal
    start_block: int
    end_block: int
    total_paid: int
    collateral_amount: int

    def is_expired(self, height: int) -> bool:
        return height >= self.end_block

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ActiveRental":
        return ActiveRental(
            listing_id=int(d["listing_id"]),
            rental_id=int(d["rental_id"]),
            renter=Principal(str(d["renter"])),
            start_block=int(d["start_block"]),
            end_block=int(d["end_block"]),
            total_paid=int(d["total_paid"]),
            collateral_amount=int(d["collateral_amount"]),
        )


@dataclass(frozen=True)
class RentalReceipt:
    """Returned by a successful rent."""
    rental_id: int
    end_block: int
    collateral: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["ActiveRental", "RentalReceipt"]
