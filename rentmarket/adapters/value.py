from __future__ import annotations
"""
Value-transfer primitive.

The market never owns a currency. It moves value through a `ValueTransfer`
collaborator exposing `balance_of(account)` and `transfer(src, dst, amount)`.
Whatever implementation is plugged in must take part in the market's
transaction: a transfer made during an operation that later aborts has to be
undone together with the rest of that operation.

`LedgerBank` is the bundled implementation. It keeps balances in the journaled
`balances` table, so aborted operations roll transfers back for free. It is
what tests, simulations and the CLI use.
"""

import logging
from typing import Dict, Protocol, runtime_checkable

from ..errors import TransferFailed
from ..state.journal import Journal
from ..state.store import BALANCES

log = logging.getLogger(__name__)


@runtime_checkable
class ValueTransfer(Protocol):
    def balance_of(self, account: str) -> int: ...

    def transfer(self, src: str, dst: str, amount: int) -> None:
        """Move `amount` from `src` to `dst` or raise TransferFailed."""
        ...


class LedgerBank:
    """Integer balances per account, staged through a Journal."""

    def __init__(self, journal: Journal) -> None:
        self._j = journal

    def balance_of(self, account: str) -> int:
        return int(self._j.get(BALANCES, str(account), 0))

    def _set(self, account: str, value: int) -> None:
        if value == 0:
            self._j.delete(BALANCES, account)
        else:
            self._j.put(BALANCES, account, value)

    def transfer(self, src: str, dst: str, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise TransferFailed("transfer amount must be a non-negative integer", details={"amount": repr(amount)})
        if amount == 0:
            return
        if src == dst:
            raise TransferFailed("source and destination are the same account", details={"account": src, "amount": amount})
        have = self.balance_of(src)
        if have < amount:
            raise TransferFailed(
                "insufficient balance",
                details={"from": src, "to": dst, "amount": amount, "balance": have},
            )
        self._set(src, have - amount)
        self._set(dst, self.balance_of(dst) + amount)
        log.debug("transfer %s -> %s amount=%d", src, dst, amount)

    def mint(self, account: str, amount: int) -> int:
        """Credit `amount` out of thin air (funding for devnets/tests). Returns new balance."""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise TransferFailed("mint amount must be a positive integer", details={"amount": repr(amount)})
        new = self.balance_of(account) + amount
        self._set(account, new)
        return new

    def balances(self) -> Dict[str, int]:
        return {str(k): int(v) for k, v in self._j.items(BALANCES)}

    def total_supply(self) -> int:
        return sum(self.balances().values())


__all__ = ["ValueTransfer", "LedgerBank"]
