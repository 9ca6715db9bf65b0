from __future__ import annotations
"""
Rental state machine.

Per listing there are two states:

    Available  (no ActiveRental)  --rent-->          Rented
    Rented     (ActiveRental)     --return-->        Available
                                  --auto_return-->   Available   (anyone, once expired)
                                  --resolve-->       Available   (admin, collateral to renter or owner)

Each transition validates first, then moves value through the EscrowLedger,
then rewrites the listing/rental records together. Callers run transitions
inside a journal checkpoint; a failure at any step leaves no trace once that
checkpoint is reverted.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

from .access import AdminGuard
from .economics.pricing import Quote, quote
from .errors import InvalidDuration, NotAvailable, NotFound, RentalActive, Unauthorized
from .ids import IdAllocator
from .policy import PolicySurface
from .registry.listings import ListingRegistry
from .reputation.history import HistoryLog
from .reputation.tracker import ReputationTracker
from .rtypes import ActiveRental, HistoryAction, Listing, Principal, RentalReceipt
from .state.journal import Journal
from .state.store import RENTALS
from .treasury.escrow import EscrowLedger
from .treasury.revenue import RevenueAccumulator

log = logging.getLogger(__name__)

CLOSE_RETURN = "return"
CLOSE_AUTO = "auto"
CLOSE_DISPUTE = "dispute"


@dataclass(frozen=True)
class Closing:
    """How a rental ended and where its collateral went."""
    listing_id: int
    rental_id: int
    renter: str
    recipient: str
    collateral: int
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RentalStateMachine:
    def __init__(
        self,
        journal: Journal,
        *,
        registry: ListingRegistry,
        escrow: EscrowLedger,
        revenue: RevenueAccumulator,
        tracker: ReputationTracker,
        history: HistoryLog,
        policy: PolicySurface,
        rental_ids: IdAllocator,
        guard: AdminGuard,
    ) -> None:
        self._j = journal
        self.registry = registry
        self.escrow = escrow
        self.revenue = revenue
        self.tracker = tracker
        self.history = history
        self.policy = policy
        self.rental_ids = rental_ids
        self.guard = guard

    # ---- reads ----

    def rental(self, listing_id: int) -> Optional[ActiveRental]:
        return self._j.get(RENTALS, int(listing_id))

    def require_rental(self, listing_id: int) -> ActiveRental:
        r = self.rental(listing_id)
        if r is None:
            raise NotFound("no active rental for listing", listing_id=listing_id)
        return r

    def active_count(self) -> int:
        return self._j.count(RENTALS)

    def quote_for(self, listing: Listing, duration: int) -> Quote:
        return quote(
            price_per_block=listing.price_per_block,
            duration=duration,
            fee_rate_bps=self.policy.fee_rate(),
            collateral_bps=self.policy.collateral_bps,
        )

    # ---- transitions ----

    def rent(self, listing_id: int, renter: str, duration: int, now: int) -> Tuple[RentalReceipt, ActiveRental, Quote]:
        listing = self.registry.require(listing_id)
        if not listing.available:
            raise NotAvailable("listing is not available", details={"listing_id": listing_id})
        if renter == listing.owner:
            raise Unauthorized("owner cannot rent their own listing", caller=renter, details={"listing_id": listing_id})
        if renter == self.escrow.custody:
            raise Unauthorized("custody account cannot rent", caller=renter, details={"listing_id": listing_id})
        if not (listing.min_duration <= duration <= listing.max_duration):
            raise InvalidDuration(
                "duration outside listing bounds",
                details={"duration": duration, "min": listing.min_duration, "max": listing.max_duration},
            )
        if self.registry.has_rental(listing_id):
            raise RentalActive("listing already has an active rental", details={"listing_id": listing_id})

        q = self.quote_for(listing, duration)

        self.escrow.collect(renter, q.total_payment)
        self.escrow.pay(listing.owner, q.owner_payment)
        self.escrow.hold(listing_id, q.collateral_required)

        rental = ActiveRental(
            listing_id=listing_id,
            rental_id=self.rental_ids.next(),
            renter=Principal(renter),
            start_block=now,
            end_block=now + duration,
            total_paid=q.rental_cost,
            collateral_amount=q.collateral_required,
        )
        self._j.put(RENTALS, listing_id, rental)
        self.registry.save(listing.rented(q.owner_payment))
        self.history.append(
            user=renter,
            rental_id=rental.rental_id,
            listing_id=listing_id,
            action=HistoryAction.RENTED,
            block_height=now,
            amount=q.total_payment,
        )
        self.tracker.record_activity(renter, q.rental_cost, is_earning=False)
        self.tracker.record_activity(listing.owner, q.owner_payment, is_earning=True)
        self.revenue.accrue(q.platform_fee)

        receipt = RentalReceipt(
            rental_id=rental.rental_id,
            end_block=rental.end_block,
            collateral=rental.collateral_amount,
        )
        return receipt, rental, q

    def return_rental(self, listing_id: int, caller: str, now: int) -> Closing:
        rental = self.require_rental(listing_id)
        if caller != rental.renter:
            raise Unauthorized("only the renter may return", caller=caller, details={"listing_id": listing_id})
        return self._close(rental, rental.renter, now, CLOSE_RETURN)

    def auto_return_expired(self, listing_id: int, now: int) -> Closing:
        rental = self.require_rental(listing_id)
        if not rental.is_expired(now):
            raise RentalActive(
                "rental has not expired",
                details={"listing_id": listing_id, "height": now, "end_block": rental.end_block},
            )
        return self._close(rental, rental.renter, now, CLOSE_AUTO)

    def resolve_dispute(self, listing_id: int, caller: str, return_to_renter: bool, now: int) -> Closing:
        self.guard.require_admin(caller, "resolve_dispute")
        rental = self.require_rental(listing_id)
        if return_to_renter:
            recipient = rental.renter
        else:
            recipient = self.registry.require(listing_id).owner
        return self._close(rental, recipient, now, CLOSE_DISPUTE)

    def _close(self, rental: ActiveRental, recipient: str, now: int, path: str) -> Closing:
        listing = self.registry.require(rental.listing_id)
        paid = self.escrow.release(rental.listing_id, recipient)
        self._j.delete(RENTALS, rental.listing_id)
        self.registry.save(listing.released())
        # disputes close outside the return path and leave no history entry
        if path != CLOSE_DISPUTE:
            self.history.append(
                user=rental.renter,
                rental_id=rental.rental_id,
                listing_id=rental.listing_id,
                action=HistoryAction.RETURNED,
                block_height=now,
                amount=0,
            )
        return Closing(
            listing_id=rental.listing_id,
            rental_id=rental.rental_id,
            renter=rental.renter,
            recipient=recipient,
            collateral=paid,
            path=path,
        )


__all__ = ["RentalStateMachine", "Closing", "CLOSE_RETURN", "CLOSE_AUTO", "CLOSE_DISPUTE"]
