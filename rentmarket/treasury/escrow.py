from __future__ import annotations
"""
Escrow: the only component that moves value.

Primitives
----------
- collect(payer, amount)     payer → custody, or InsufficientPayment
- pay(recipient, amount)     custody → recipient
- hold(listing_id, amount)   book `amount` of custody as collateral for a listing
- release(listing_id, to)    drop the hold and pay the collateral to `to`

Design notes
------------
- Pure integer math, no floats.
- Holds are bookkeeping inside custody; they never move value on their own.
  The value for a hold was already collected by `collect`.
- Holds and the running `held_collateral` total are journaled, so an aborted
  operation leaves neither a hold nor a transfer behind.

Typical flow
------------
1) collect(renter, total_payment)
2) pay(owner, owner_payment)
3) hold(listing_id, collateral)
4) (later) release(listing_id, renter_or_owner)
"""

import logging
from typing import Dict

from ..adapters.value import ValueTransfer
from ..errors import InsufficientPayment, NotFound, RentalActive, TransferFailed
from ..state.journal import Journal
from ..state.store import HOLDS, VAR_HELD_COLLATERAL

log = logging.getLogger(__name__)

Amount = int


class EscrowLedger:
    def __init__(self, journal: Journal, bank: ValueTransfer, custody_account: str) -> None:
        self._j = journal
        self.bank = bank
        self.custody = custody_account

    # ---- value movement ----

    def collect(self, payer: str, amount: Amount) -> None:
        if amount == 0:
            return
        available = self.bank.balance_of(payer)
        if available < amount:
            raise InsufficientPayment(required=amount, available=available, payer=payer)
        self.bank.transfer(payer, self.custody, amount)

    def pay(self, recipient: str, amount: Amount) -> None:
        if amount == 0:
            return
        if self.bank.balance_of(self.custody) < amount:
            raise TransferFailed(
                "custody cannot cover payout",
                details={"to": recipient, "amount": amount, "custody": self.bank.balance_of(self.custody)},
            )
        self.bank.transfer(self.custody, recipient, amount)

    # ---- collateral bookkeeping ----

    def hold(self, listing_id: int, amount: Amount) -> None:
        if self._j.contains(HOLDS, listing_id):
            raise RentalActive("collateral already held for listing", details={"listing_id": listing_id})
        self._j.put(HOLDS, listing_id, int(amount))
        self._j.set_var(VAR_HELD_COLLATERAL, self.held_total() + amount)

    def release(self, listing_id: int, recipient: str) -> Amount:
        """Release the collateral held for `listing_id` to `recipient`. Returns the amount paid."""
        amount = self._j.get(HOLDS, listing_id)
        if amount is None:
            raise NotFound("no collateral held for listing", listing_id=listing_id)
        self._j.delete(HOLDS, listing_id)
        self._j.set_var(VAR_HELD_COLLATERAL, self.held_total() - amount)
        self.pay(recipient, amount)
        log.debug("collateral released listing=%d to=%s amount=%d", listing_id, recipient, amount)
        return amount

    # ---- reads ----

    def held(self, listing_id: int) -> Amount:
        return int(self._j.get(HOLDS, listing_id, 0))

    def held_total(self) -> Amount:
        return self._j.get_var(VAR_HELD_COLLATERAL, 0)

    def holds(self) -> Dict[int, Amount]:
        return {int(k): int(v) for k, v in self._j.items(HOLDS)}

    def custody_balance(self) -> Amount:
        return self.bank.balance_of(self.custody)


__all__ = ["EscrowLedger"]
