from __future__ import annotations
"""
RentalMarket — the public operation and query surface.

Wires the components together over one journaled MarketState:

    ListingRegistry → RentalStateMachine → EscrowLedger / pricing
                                         → ReputationTracker / HistoryLog / RevenueAccumulator

Every public operation runs inside `transaction()`: writes are staged in a
journal checkpoint and only committed when the whole operation returns. Any
exception reverts the checkpoint, so a failed operation leaves state, balances
(with the bundled LedgerBank), history and the event log untouched. A coarse
re-entrant lock serializes operations and queries.

Example
-------
    market = RentalMarket(MarketConfig(admin="admin"), clock=ManualClock(1_000))
    market.fund("bob", 50_000)
    lid = market.list_for_rental("alice", AssetId("nft.punks", 7), 100, 144, 1_000)
    receipt = market.rent_nft("bob", lid, 200)
    market.return_nft("bob", lid)
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, TypeVar, Union

from . import metrics
from .access import AdminGuard
from .adapters.assets import AssetRegistry
from .adapters.value import LedgerBank, ValueTransfer
from .clock import BlockClock, ManualClock
from .config import MarketConfig
from .economics.pricing import Quote
from .errors import MarketError, Unauthorized
from .ids import IdAllocator
from .logging import trace_scope
from .machine import Closing, RentalStateMachine
from .policy import PolicySurface
from .registry.listings import ListingRegistry
from .reputation.history import HistoryLog
from .reputation.tracker import ReputationTracker
from .rtypes import (
    ActiveRental,
    AssetId,
    EventType,
    HistoryRecord,
    Listing,
    MarketEvent,
    PlatformStats,
    RentalReceipt,
    UserStats,
)
from .state.events import EventLog
from .state.journal import Journal
from .state.store import ASSET_INDEX, VAR_NEXT_LISTING_ID, VAR_NEXT_RENTAL_ID, MarketState
from .treasury.escrow import EscrowLedger
from .treasury.revenue import RevenueAccumulator

log = logging.getLogger(__name__)

T = TypeVar("T")
AssetLike = Union[AssetId, Tuple[str, int], str]


def _as_asset(asset: AssetLike) -> AssetId:
    if isinstance(asset, AssetId):
        return asset
    if isinstance(asset, str):
        return AssetId.parse(asset)
    contract, token_id = asset
    return AssetId(str(contract), int(token_id))


class RentalMarket:
    def __init__(
        self,
        config: Optional[MarketConfig] = None,
        *,
        clock: Optional[BlockClock] = None,
        bank: Optional[ValueTransfer] = None,
        assets: Optional[AssetRegistry] = None,
        state: Optional[MarketState] = None,
    ) -> None:
        self.config = config or MarketConfig()
        self.config.validate()

        self.state = state if state is not None else MarketState()
        self.journal = Journal(self.state)
        self.clock: BlockClock = clock or ManualClock()
        self.bank: ValueTransfer = bank if bank is not None else LedgerBank(self.journal)
        self._lock = threading.RLock()

        j = self.journal
        self.guard = AdminGuard(self.config.admin)
        self.policy = PolicySurface(j, self.guard, self.config)
        self.listing_ids = IdAllocator(j, VAR_NEXT_LISTING_ID)
        self.rental_ids = IdAllocator(j, VAR_NEXT_RENTAL_ID)
        self.registry = ListingRegistry(
            j,
            self.listing_ids,
            self.policy,
            assets=assets,
            verify_ownership=self.config.verify_asset_ownership,
            reserved=(self.config.custody_account,),
        )
        self.escrow = EscrowLedger(j, self.bank, self.config.custody_account)
        self.revenue = RevenueAccumulator(j, self.escrow, self.guard)
        self.tracker = ReputationTracker(j, self.config.reputation)
        self.history = HistoryLog(j)
        self.events = EventLog(j)
        self.machine = RentalStateMachine(
            j,
            registry=self.registry,
            escrow=self.escrow,
            revenue=self.revenue,
            tracker=self.tracker,
            history=self.history,
            policy=self.policy,
            rental_ids=self.rental_ids,
            guard=self.guard,
        )

        with self.transaction():
            self.policy.initialize()

    @classmethod
    def from_state(cls, state: MarketState, config: Optional[MarketConfig] = None, **kwargs: Any) -> "RentalMarket":
        return cls(config, state=state, **kwargs)

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #

    @contextmanager
    def transaction(self) -> Iterator[Journal]:
        """
        Serializable, all-or-nothing scope. Nested use joins the outer
        transaction: inner commits only become durable with the outer one.
        """
        with self._lock:
            marker = self.journal.begin()
            try:
                yield self.journal
            except BaseException:
                self.journal.revert_to(marker)
                raise
            self.journal.commit_to(marker)

    def _run(self, op: str, caller: str, fn: Callable[[int], T], listing_id: Optional[int] = None) -> T:
        with self._lock:
            height = self.clock.height()
            with trace_scope(op=op, caller=caller, height=height, listing_id=listing_id):
                try:
                    with self.transaction():
                        result = fn(height)
                except MarketError as e:
                    log.debug("%s rejected: %s (%d)", op, e.name, e.code, extra={"details": e.details})
                    metrics.record_rejection(op, e.name)
                    raise
                metrics.set_custody_gauges(self.machine.active_count(), self.escrow.held_total())
                return result

    # ------------------------------------------------------------------ #
    # Listing operations
    # ------------------------------------------------------------------ #

    def list_for_rental(
        self,
        caller: str,
        asset: AssetLike,
        price_per_block: int,
        min_duration: int,
        max_duration: int,
    ) -> int:
        asset_id = _as_asset(asset)

        def op(height: int) -> Listing:
            listing = self.registry.create(
                asset=asset_id,
                owner=caller,
                price_per_block=price_per_block,
                min_duration=min_duration,
                max_duration=max_duration,
                created_at=height,
            )
            self.events.append(
                EventType.LISTING_CREATED,
                height,
                {
                    "listing_id": listing.listing_id,
                    "asset": str(asset_id),
                    "owner": caller,
                    "price_per_block": price_per_block,
                    "min_duration": min_duration,
                    "max_duration": max_duration,
                },
            )
            return listing

        listing = self._run("list_for_rental", caller, op)
        metrics.record_listing_created()
        log.info("listing %d created for %s by %s", listing.listing_id, asset_id, caller)
        return listing.listing_id

    def update_rental_price(self, caller: str, listing_id: int, new_price: int) -> None:
        def op(height: int) -> Tuple[int, int]:
            old = self.registry.require(listing_id).price_per_block
            self.registry.update_price(listing_id, caller, new_price)
            self.events.append(
                EventType.PRICE_UPDATED,
                height,
                {"listing_id": listing_id, "old_price": old, "new_price": new_price},
            )
            return old, new_price

        old, new = self._run("update_rental_price", caller, op, listing_id)
        log.info("listing %d price %d -> %d", listing_id, old, new)

    def remove_listing(self, caller: str, listing_id: int) -> None:
        def op(height: int) -> Listing:
            listing = self.registry.remove(listing_id, caller)
            self.events.append(
                EventType.LISTING_REMOVED,
                height,
                {"listing_id": listing_id, "asset": str(listing.asset), "owner": caller},
            )
            return listing

        self._run("remove_listing", caller, op, listing_id)
        metrics.record_listing_removed()
        log.info("listing %d removed", listing_id)

    # ------------------------------------------------------------------ #
    # Rental transitions
    # ------------------------------------------------------------------ #

    def rent_nft(self, caller: str, listing_id: int, duration: int) -> RentalReceipt:
        def op(height: int) -> Tuple[RentalReceipt, ActiveRental, Quote]:
            receipt, rental, q = self.machine.rent(listing_id, caller, duration, height)
            self.events.append(
                EventType.RENTAL_STARTED,
                height,
                {
                    "listing_id": listing_id,
                    "rental_id": rental.rental_id,
                    "renter": caller,
                    "start_block": rental.start_block,
                    "end_block": rental.end_block,
                    **q.to_dict(),
                },
            )
            return receipt, rental, q

        receipt, rental, q = self._run("rent_nft", caller, op, listing_id)
        metrics.record_rental_started(q.platform_fee)
        log.info(
            "rental %d started on listing %d by %s until block %d (paid=%d collateral=%d)",
            rental.rental_id,
            listing_id,
            caller,
            rental.end_block,
            q.total_payment,
            q.collateral_required,
        )
        return receipt

    def _closed(self, closing: Closing) -> None:
        role = "renter" if closing.recipient == closing.renter else "owner"
        metrics.record_rental_closed(closing.path, role, closing.collateral)
        log.info(
            "rental %d on listing %d closed via %s; collateral %d to %s",
            closing.rental_id,
            closing.listing_id,
            closing.path,
            closing.collateral,
            closing.recipient,
        )

    def return_nft(self, caller: str, listing_id: int) -> None:
        def op(height: int) -> Closing:
            closing = self.machine.return_rental(listing_id, caller, height)
            self.events.append(EventType.RENTAL_RETURNED, height, closing.to_dict())
            return closing

        self._closed(self._run("return_nft", caller, op, listing_id))

    def auto_return_expired(self, caller: str, listing_id: int) -> None:
        def op(height: int) -> Closing:
            closing = self.machine.auto_return_expired(listing_id, height)
            self.events.append(
                EventType.RENTAL_AUTO_RETURNED,
                height,
                {**closing.to_dict(), "triggered_by": caller},
            )
            return closing

        self._closed(self._run("auto_return_expired", caller, op, listing_id))

    def resolve_dispute(self, caller: str, listing_id: int, return_collateral_to_renter: bool) -> None:
        def op(height: int) -> Closing:
            closing = self.machine.resolve_dispute(listing_id, caller, bool(return_collateral_to_renter), height)
            self.events.append(
                EventType.DISPUTE_RESOLVED,
                height,
                {**closing.to_dict(), "return_collateral_to_renter": bool(return_collateral_to_renter)},
            )
            return closing

        self._closed(self._run("resolve_dispute", caller, op, listing_id))

    # ------------------------------------------------------------------ #
    # Admin surface
    # ------------------------------------------------------------------ #

    def set_platform_fee_rate(self, caller: str, new_rate: int) -> None:
        def op(height: int) -> int:
            old = self.policy.set_fee_rate(caller, new_rate)
            self.events.append(EventType.FEE_RATE_CHANGED, height, {"old_rate": old, "new_rate": new_rate})
            return old

        old = self._run("set_platform_fee_rate", caller, op)
        log.info("platform fee rate %d -> %d bps", old, new_rate)

    def set_duration_limits(self, caller: str, min_duration: int, max_duration: int) -> None:
        def op(height: int) -> None:
            old = self.policy.set_duration_limits(caller, min_duration, max_duration)
            self.events.append(
                EventType.DURATION_LIMITS_CHANGED,
                height,
                {
                    "old_min": old.min_blocks,
                    "old_max": old.max_blocks,
                    "new_min": min_duration,
                    "new_max": max_duration,
                },
            )

        self._run("set_duration_limits", caller, op)
        log.info("duration limits set to [%d, %d]", min_duration, max_duration)

    def withdraw_platform_fees(self, caller: str, amount: int) -> None:
        def op(height: int) -> int:
            remaining = self.revenue.withdraw(caller, amount)
            self.events.append(
                EventType.FEES_WITHDRAWN,
                height,
                {"amount": amount, "to": caller, "remaining": remaining},
            )
            return remaining

        remaining = self._run("withdraw_platform_fees", caller, op)
        metrics.record_withdrawal(amount)
        log.info("withdrew %d platform fees; %d remaining", amount, remaining)

    # ------------------------------------------------------------------ #
    # Value helpers (bundled ledger)
    # ------------------------------------------------------------------ #

    def fund(self, account: str, amount: int) -> int:
        """Mint `amount` into `account` on the bundled LedgerBank. Returns the new balance."""
        if not isinstance(self.bank, LedgerBank):
            raise TypeError("fund() is only available with the bundled LedgerBank")
        if account == self.config.custody_account:
            raise Unauthorized("custody account cannot be funded directly", caller=account)
        bank = self.bank
        with self.transaction():
            return bank.mint(account, amount)

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self.bank.balance_of(account)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_listing(self, listing_id: int) -> Optional[Listing]:
        with self._lock:
            return self.registry.get(listing_id)

    def get_listing_by_asset(self, asset: AssetLike) -> Optional[Listing]:
        with self._lock:
            return self.registry.by_asset(_as_asset(asset))

    def get_active_rental(self, listing_id: int) -> Optional[ActiveRental]:
        with self._lock:
            return self.machine.rental(listing_id)

    def get_user_stats(self, user: str) -> Optional[UserStats]:
        with self._lock:
            return self.tracker.get(user)

    def get_rental_quote(self, listing_id: int, duration: int) -> Quote:
        with self._lock:
            return self.machine.quote_for(self.registry.require(listing_id), duration)

    def is_rental_expired(self, listing_id: int) -> bool:
        with self._lock:
            rental = self.machine.rental(listing_id)
            return rental is not None and rental.is_expired(self.clock.height())

    def get_total_listings(self) -> int:
        with self._lock:
            return self.registry.total_created()

    def get_platform_stats(self) -> PlatformStats:
        with self._lock:
            bounds = self.policy.duration_bounds()
            return PlatformStats(
                total_listings=self.registry.total_created(),
                total_rentals=self.rental_ids.issued(),
                active_rentals=self.machine.active_count(),
                platform_fee_rate=self.policy.fee_rate(),
                total_platform_revenue=self.revenue.total(),
                min_rental_duration=bounds.min_blocks,
                max_rental_duration=bounds.max_blocks,
                custody_balance=self.escrow.custody_balance(),
            )

    def get_history(self, user: str) -> List[HistoryRecord]:
        with self._lock:
            return self.history.for_user(user)

    def get_events(
        self,
        since_seq: int = 0,
        *,
        etype: Optional[EventType] = None,
        limit: Optional[int] = None,
    ) -> List[MarketEvent]:
        with self._lock:
            return self.events.list(since=since_seq, etype=etype, limit=limit)

    def snapshot(self) -> MarketState:
        """The committed state (safe to persist between operations)."""
        with self._lock:
            return self.state

    # ------------------------------------------------------------------ #
    # Consistency checks
    # ------------------------------------------------------------------ #

    def check_invariants(self) -> List[str]:
        """
        Return a list of violated consistency rules (empty when healthy):
        listing availability mirrors rental presence, the asset index mirrors
        listings, holds mirror rentals, custody equals held collateral plus
        undistributed revenue, and reputation scores stay within the cap.
        """
        problems: List[str] = []
        with self._lock:
            listings: Dict[int, Listing] = {l.listing_id: l for l in self.registry.all()}
            holds = self.escrow.holds()

            for lid, listing in listings.items():
                rental = self.machine.rental(lid)
                if listing.available == (rental is not None):
                    problems.append(f"listing {lid}: available={listing.available} but rental present={rental is not None}")
                if self.journal.get(ASSET_INDEX, listing.asset) != lid:
                    problems.append(f"listing {lid}: asset index does not point back to it")
                if rental is not None and self.escrow.held(lid) != rental.collateral_amount:
                    problems.append(f"listing {lid}: hold {self.escrow.held(lid)} != collateral {rental.collateral_amount}")
                if lid >= self.listing_ids.peek():
                    problems.append(f"listing {lid}: id not below next_listing_id")

            for asset, lid in self.journal.items(ASSET_INDEX):
                listing = listings.get(lid)
                if listing is None or listing.asset != asset:
                    problems.append(f"asset index entry {asset} -> {lid} has no matching listing")

            for lid in holds:
                if self.machine.rental(lid) is None:
                    problems.append(f"hold for listing {lid} without an active rental")

            held = self.escrow.held_total()
            if held != sum(holds.values()):
                problems.append(f"held collateral total {held} != sum of holds {sum(holds.values())}")
            custody = self.escrow.custody_balance()
            expected = held + self.revenue.total()
            if custody != expected:
                problems.append(f"custody balance {custody} != held collateral + revenue {expected}")

            cap = self.tracker.policy.max_score
            for user, s in self.tracker.all().items():
                if not (0 <= s.reputation_score <= cap):
                    problems.append(f"user {user}: reputation {s.reputation_score} outside [0, {cap}]")

        return problems


__all__ = ["RentalMarket"]
