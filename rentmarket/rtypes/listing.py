from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping, NewType

Principal = NewType("Principal", str)


@dataclass(frozen=True, order=True)
class AssetId:
    """External asset identity: the asset contract plus the token id inside it."""
    asset_contract: str
    token_id: int

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.asset_contract}#{self.token_id}"

    @staticmethod
    def parse(s: str) -> "AssetId":
        contract, sep, token = s.rpartition("#")
        if not sep or not contract:
            raise ValueError(f"asset id must look like '<contract>#<token_id>', got {s!r}")
        return AssetId(asset_contract=contract, token_id=int(token))


@dataclass(frozen=True)
class Listing:
    listing_id: int
    asset: AssetId
    owner: Principal
    price_per_block: int
    min_duration: int
    max_duration: int
    available: bool
    total_earned: int
    rental_count: int
    created_at: int

    def with_price(self, price_per_block: int) -> "Listing":
        return replace(self, price_per_block=price_per_block)

    def rented(self, owner_payment: int) -> "Listing":
        return replace(
            self,
            available=False,
            total_earned=self.total_earned + owner_payment,
            rental_count=self.rental_count + 1,
        )

    def released(self) -> "Listing":
        return replace(self, available=True)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["asset"] = {"asset_contract": self.asset.asset_contract, "token_id": self.asset.token_id}
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Listing":
        a = d["asset"]
        return Listing(
            listing_id=int(d["listing_id"]),
            asset=AssetId(str(a["asset_contract"]), int(a["token_id"])),
            owner=Principal(str(d["owner"])),
            price_per_block=int(d["price_per_block"]),
            min_duration=int(d["min_duration"]),
            max_duration=int(d["max_duration"]),
            available=bool(d["available"]),
            total_earned=int(d["total_earned"]),
            rental_count=int(d["rental_count"]),
            created_at=int(d["created_at"]),
        )


__all__ = ["Principal", "AssetId", "Listing"]
