from __future__ import annotations

"""
rentmarket.state.store — the persisted marketplace state.

State is a handful of named keyed maps plus a `vars` map of scalars:

    listings     listing_id                  -> Listing
    rentals      listing_id                  -> ActiveRental
    asset_index  AssetId                     -> listing_id
    history      (user, rental_id, action)   -> HistoryRecord
    stats        user                        -> UserStats
    holds        listing_id                  -> collateral held in custody
    balances     account                     -> balance (bundled value ledger)
    events       seq                         -> MarketEvent
    vars         name                        -> int

`MarketState` is deliberately dumb: no validation, no economics. Writes go
through `rentmarket.state.journal.Journal`, which stages them and applies them
here only on commit. `dump()` / `load()` round-trip the whole state through a
JSON-friendly dict so adapters can persist snapshots.
"""

from typing import Any, Callable, Dict, Hashable, List, Mapping, Tuple

from ..rtypes import ActiveRental, AssetId, HistoryRecord, Listing, MarketEvent, UserStats

LISTINGS = "listings"
RENTALS = "rentals"
ASSET_INDEX = "asset_index"
HISTORY = "history"
STATS = "stats"
HOLDS = "holds"
BALANCES = "balances"
EVENTS = "events"
VARS = "vars"

TABLES: Tuple[str, ...] = (
    LISTINGS,
    RENTALS,
    ASSET_INDEX,
    HISTORY,
    STATS,
    HOLDS,
    BALANCES,
    EVENTS,
    VARS,
)

# Scalar variable names kept in the `vars` table.
VAR_NEXT_LISTING_ID = "next_listing_id"
VAR_NEXT_RENTAL_ID = "next_rental_id"
VAR_NEXT_EVENT_SEQ = "next_event_seq"
VAR_PLATFORM_FEE_RATE = "platform_fee_rate"
VAR_MIN_RENTAL_DURATION = "min_rental_duration"
VAR_MAX_RENTAL_DURATION = "max_rental_duration"
VAR_TOTAL_PLATFORM_REVENUE = "total_platform_revenue"
VAR_HELD_COLLATERAL = "held_collateral"


# ---- JSON codecs (key_to_json, key_from_json, value_to_json, value_from_json) ----

_Codec = Tuple[
    Callable[[Any], Any],
    Callable[[Any], Hashable],
    Callable[[Any], Any],
    Callable[[Any], Any],
]


def _ident(x: Any) -> Any:
    return x


def _asset_to_json(a: AssetId) -> List[Any]:
    return [a.asset_contract, a.token_id]


def _asset_from_json(v: Any) -> AssetId:
    return AssetId(str(v[0]), int(v[1]))


def _history_key_from_json(v: Any) -> Tuple[str, int, str]:
    return (str(v[0]), int(v[1]), str(v[2]))


_CODECS: Dict[str, _Codec] = {
    LISTINGS: (int, int, lambda v: v.to_dict(), Listing.from_dict),
    RENTALS: (int, int, lambda v: v.to_dict(), ActiveRental.from_dict),
    ASSET_INDEX: (_asset_to_json, _asset_from_json, int, int),
    HISTORY: (list, _history_key_from_json, lambda v: v.to_dict(), HistoryRecord.from_dict),
    STATS: (str, str, lambda v: v.to_dict(), UserStats.from_dict),
    HOLDS: (int, int, int, int),
    BALANCES: (str, str, int, int),
    EVENTS: (int, int, lambda v: v.to_dict(), MarketEvent.from_dict),
    VARS: (str, str, _ident, _ident),
}


class MarketState:
    """Base (committed) state: one dict per table."""

    def __init__(self) -> None:
        self.tables: Dict[str, Dict[Hashable, Any]] = {name: {} for name in TABLES}

    def table(self, name: str) -> Dict[Hashable, Any]:
        try:
            return self.tables[name]
        except KeyError:
            raise KeyError(f"unknown state table: {name!r}") from None

    def __len__(self) -> int:
        return sum(len(t) for t in self.tables.values())

    # --- load/save ---

    def dump(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for name in TABLES:
            k_out, _, v_out, _ = _CODECS[name]
            rows = [[k_out(k), v_out(v)] for k, v in self.tables[name].items()]
            rows.sort(key=lambda r: repr(r[0]))
            out[name] = rows
        return out

    @classmethod
    def load(cls, data: Mapping[str, Any]) -> "MarketState":
        st = cls()
        for name in TABLES:
            _, k_in, _, v_in = _CODECS[name]
            for k, v in data.get(name, []) or []:
                st.tables[name][k_in(k)] = v_in(v)
        return st


__all__ = [
    "MarketState",
    "TABLES",
    "LISTINGS",
    "RENTALS",
    "ASSET_INDEX",
    "HISTORY",
    "STATS",
    "HOLDS",
    "BALANCES",
    "EVENTS",
    "VARS",
    "VAR_NEXT_LISTING_ID",
    "VAR_NEXT_RENTAL_ID",
    "VAR_NEXT_EVENT_SEQ",
    "VAR_PLATFORM_FEE_RATE",
    "VAR_MIN_RENTAL_DURATION",
    "VAR_MAX_RENTAL_DURATION",
    "VAR_TOTAL_PLATFORM_REVENUE",
    "VAR_HELD_COLLATERAL",
]
