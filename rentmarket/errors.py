from __future__ import annotations
# rentmarket/errors.py
"""
Error taxonomy for the rental marketplace ledger.

Every failure surfaced by a public market operation is a `MarketError` subclass
carrying a stable numeric code. The codes form the wire-level error surface a
caller must interpret; they never change meaning once assigned.

    200 OwnerOnly            privileged operation by a non-admin caller
    201 NotFound             missing listing or rental
    202 Unauthorized         caller lacks the role for a per-listing operation
    203 InvalidAmount        non-positive price, fee rate above ceiling, over-withdrawal
    204 AlreadyListed        asset already indexed
    205 NotAvailable         listing inactive at rent time
    206 RentalActive         conflicting live rental (or premature auto-return)
    207 RentalNotExpired     reserved for premature expiry checks
    208 InsufficientPayment  value collection from the payer failed
    209 InvalidDuration      outside configured bounds or min > max
    210 TransferFailed       the value-transfer primitive refused a movement
"""


from typing import Any, Dict, Mapping, Optional, Type
import json


class MarketError(Exception):
    """Base class for marketplace domain errors."""

    code: int = 0
    name: str = "MarketError"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.name
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            except Exception:
                packed = str(self.details)
            return f"{self.name}({self.code}): {self.message} [{packed}]"
        return f"{self.name}({self.code}): {self.message}"


class OwnerOnly(MarketError):
    """A privileged operation was attempted by someone other than the admin."""
    code = 200
    name = "OwnerOnly"


class NotFound(MarketError):
    code = 201
    name = "NotFound"

    def __init__(
        self,
        message: str = "not found",
        *,
        listing_id: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if listing_id is not None:
            d.setdefault("listing_id", int(listing_id))
        super().__init__(message, details=d)


class Unauthorized(MarketError):
    code = 202
    name = "Unauthorized"

    def __init__(
        self,
        message: str = "caller not authorized",
        *,
        caller: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if caller is not None:
            d.setdefault("caller", caller)
        super().__init__(message, details=d)


class InvalidAmount(MarketError):
    code = 203
    name = "InvalidAmount"


class AlreadyListed(MarketError):
    code = 204
    name = "AlreadyListed"


class NotAvailable(MarketError):
    code = 205
    name = "NotAvailable"


class RentalActive(MarketError):
    code = 206
    name = "RentalActive"


class RentalNotExpired(MarketError):
    code = 207
    name = "RentalNotExpired"


class InsufficientPayment(MarketError):
    """The payer could not cover the amount being collected into custody."""
    code = 208
    name = "InsufficientPayment"

    def __init__(
        self,
        *,
        required: int,
        available: int,
        payer: Optional[str] = None,
        message: str = "insufficient payment",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"required": int(required), "available": int(available)})
        if payer is not None:
            d.setdefault("payer", payer)
        super().__init__(message, details=d)


class InvalidDuration(MarketError):
    code = 209
    name = "InvalidDuration"


class TransferFailed(MarketError):
    code = 210
    name = "TransferFailed"


_BY_CODE: Dict[int, Type[MarketError]] = {
    cls.code: cls
    for cls in (
        OwnerOnly,
        NotFound,
        Unauthorized,
        InvalidAmount,
        AlreadyListed,
        NotAvailable,
        RentalActive,
        RentalNotExpired,
        InsufficientPayment,
        InvalidDuration,
        TransferFailed,
    )
}


def error_for_code(code: int) -> Type[MarketError]:
    """Map a wire code (200..210) back to its error class."""
    try:
        return _BY_CODE[int(code)]
    except KeyError:
        raise ValueError(f"unknown market error code: {code!r}") from None


__all__ = [
    "MarketError",
    "OwnerOnly",
    "NotFound",
    "Unauthorized",
    "InvalidAmount",
    "AlreadyListed",
    "NotAvailable",
    "RentalActive",
    "RentalNotExpired",
    "InsufficientPayment",
    "InvalidDuration",
    "TransferFailed",
    "error_for_code",
]
