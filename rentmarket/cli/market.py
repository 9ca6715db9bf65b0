from __future__ import annotations

"""
rentmarket.cli.market
---------------------

Operate a rental market kept in a SQLite state file.

Every command loads the committed state, runs one market operation and saves
the result. Failures print the error as JSON and exit with status 1 without
touching the file.

Examples
--------
python -m rentmarket.cli --db market.db init
python -m rentmarket.cli --db market.db fund bob 50000
python -m rentmarket.cli --db market.db list --as alice nft.punks#7 100 144 1000
python -m rentmarket.cli --db market.db --height 1000 rent --as bob 1 200
python -m rentmarket.cli --db market.db --height 1200 auto-return --as carol 1
python -m rentmarket.cli --db market.db events --since 0
"""

import json
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import typer

from .. import logging as mlog
from ..adapters.state_db import MarketStateDB
from ..clock import ManualClock
from ..config import MarketConfig, from_env, from_file, load
from ..errors import MarketError
from ..market import RentalMarket
from ..rtypes import AssetId
from ..version import __version__

DB_ENV = "RENTMARKET_DB"
HEIGHT_META = "height"

app = typer.Typer(
    name="rentmarket",
    add_completion=False,
    no_args_is_help=True,
    help="Rental marketplace ledger: listings, rentals, collateral and platform fees.",
)


@dataclass
class _Opts:
    db: Path
    height: Optional[int]
    config_file: Optional[Path]


# -------------------- helpers --------------------


def _echo_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True, default=str))


def _opts(ctx: typer.Context) -> _Opts:
    return ctx.obj


def _config(opts: _Opts) -> MarketConfig:
    if opts.config_file is not None:
        return from_env(base=from_file(opts.config_file))
    return load()


@contextmanager
def _session(ctx: typer.Context, *, write: bool = True) -> Iterator[RentalMarket]:
    opts = _opts(ctx)
    if not opts.db.exists():
        typer.echo(f"state file {opts.db} not found; run `init` first", err=True)
        raise typer.Exit(code=1)
    db = MarketStateDB(str(opts.db))
    try:
        stored = int(db.get_meta(HEIGHT_META, "0") or 0)
        clock = ManualClock(stored)
        if opts.height is not None:
            try:
                clock.set(opts.height)
            except ValueError:
                typer.echo(f"--height {opts.height} is below the recorded height {stored}", err=True)
                raise typer.Exit(code=1)
        height = clock.height()
        market = RentalMarket.from_state(db.load(), _config(opts), clock=clock)
        try:
            yield market
        except MarketError as e:
            typer.echo(json.dumps({"error": e.to_dict()}, sort_keys=True, default=str), err=True)
            raise typer.Exit(code=1)
        if write:
            db.save(market.snapshot())
            if height != stored:
                db.set_meta(HEIGHT_META, str(height))
    finally:
        db.close()


def _asset(value: str) -> AssetId:
    try:
        return AssetId.parse(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


# -------------------- wiring --------------------


@app.callback()
def _configure(
    ctx: typer.Context,
    db: Path = typer.Option(Path("rentmarket.db"), "--db", envvar=DB_ENV, help="SQLite state file."),
    height: Optional[int] = typer.Option(
        None, "--height", min=0, help="Current block height (persisted for later commands)."
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", help="JSON/YAML config file."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level for stderr."),
    log_json: bool = typer.Option(False, "--log-json", help="Emit JSON log lines."),
) -> None:
    mlog.configure(json=log_json, level=log_level, stream=sys.stderr)
    ctx.obj = _Opts(db=db, height=height, config_file=config_file)


@app.command()
def version() -> None:
    """Print the package version."""
    typer.echo(__version__)


@app.command()
def init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite existing state."),
) -> None:
    """Create a fresh market state file."""
    opts = _opts(ctx)
    cfg = _config(opts)
    with MarketStateDB(str(opts.db)) as db:
        if not db.is_empty() and not force:
            typer.echo(f"{opts.db} already holds market state (use --force)", err=True)
            raise typer.Exit(code=1)
        market = RentalMarket(cfg, clock=ManualClock(opts.height or 0))
        db.save(market.snapshot())
        db.set_meta(HEIGHT_META, str(opts.height or 0))
    _echo_json({"db": str(opts.db), "config": cfg.to_dict()})


@app.command()
def fund(ctx: typer.Context, account: str, amount: int) -> None:
    """Mint AMOUNT into ACCOUNT on the bundled ledger."""
    with _session(ctx) as market:
        _echo_json({"account": account, "balance": market.fund(account, amount)})


@app.command()
def balance(ctx: typer.Context, account: str) -> None:
    """Show an account balance."""
    with _session(ctx, write=False) as market:
        _echo_json({"account": account, "balance": market.balance_of(account)})


@app.command("list")
def list_(
    ctx: typer.Context,
    asset: str = typer.Argument(..., help="Asset as <contract>#<token_id>."),
    price_per_block: int = typer.Argument(...),
    min_duration: int = typer.Argument(...),
    max_duration: int = typer.Argument(...),
    caller: str = typer.Option(..., "--as", help="Listing owner."),
) -> None:
    """List an asset for rent."""
    asset_id = _asset(asset)
    with _session(ctx) as market:
        lid = market.list_for_rental(caller, asset_id, price_per_block, min_duration, max_duration)
        _echo_json({"listing_id": lid})


@app.command("update-price")
def update_price(
    ctx: typer.Context,
    listing_id: int,
    new_price: int,
    caller: str = typer.Option(..., "--as"),
) -> None:
    """Change a listing's price per block."""
    with _session(ctx) as market:
        market.update_rental_price(caller, listing_id, new_price)
        _echo_json({"listing_id": listing_id, "price_per_block": new_price})


@app.command()
def remove(ctx: typer.Context, listing_id: int, caller: str = typer.Option(..., "--as")) -> None:
    """Remove an idle listing."""
    with _session(ctx) as market:
        market.remove_listing(caller, listing_id)
        _echo_json({"listing_id": listing_id, "removed": True})


@app.command()
def rent(
    ctx: typer.Context,
    listing_id: int,
    duration: int,
    caller: str = typer.Option(..., "--as", help="Renter."),
) -> None:
    """Rent a listing for DURATION blocks."""
    with _session(ctx) as market:
        _echo_json(market.rent_nft(caller, listing_id, duration).to_dict())


@app.command("return")
def return_(ctx: typer.Context, listing_id: int, caller: str = typer.Option(..., "--as")) -> None:
    """Return a rental early; collateral goes back to the renter."""
    with _session(ctx) as market:
        market.return_nft(caller, listing_id)
        _echo_json({"listing_id": listing_id, "returned": True})


@app.command("auto-return")
def auto_return(ctx: typer.Context, listing_id: int, caller: str = typer.Option(..., "--as")) -> None:
    """Close an expired rental; anyone may call this."""
    with _session(ctx) as market:
        market.auto_return_expired(caller, listing_id)
        _echo_json({"listing_id": listing_id, "returned": True})


@app.command()
def resolve(
    ctx: typer.Context,
    listing_id: int,
    to_renter: bool = typer.Option(True, "--to-renter/--to-owner", help="Who receives the collateral."),
    caller: str = typer.Option(..., "--as"),
) -> None:
    """Resolve a dispute (admin only)."""
    with _session(ctx) as market:
        market.resolve_dispute(caller, listing_id, to_renter)
        _echo_json({"listing_id": listing_id, "collateral_to": "renter" if to_renter else "owner"})


@app.command()
def quote(ctx: typer.Context, listing_id: int, duration: int) -> None:
    """Price breakdown for renting a listing."""
    with _session(ctx, write=False) as market:
        _echo_json(market.get_rental_quote(listing_id, duration).to_dict())


@app.command()
def show(ctx: typer.Context, listing_id: int) -> None:
    """Show a listing and its active rental, if any."""
    with _session(ctx, write=False) as market:
        listing = market.get_listing(listing_id)
        if listing is None:
            raise typer.BadParameter(f"listing {listing_id} not found")
        rental = market.get_active_rental(listing_id)
        _echo_json(
            {
                "listing": listing.to_dict(),
                "rental": rental.to_dict() if rental else None,
                "expired": market.is_rental_expired(listing_id),
            }
        )


@app.command()
def stats(ctx: typer.Context, user: Optional[str] = typer.Option(None, "--user")) -> None:
    """Platform stats, or one user's stats with --user."""
    with _session(ctx, write=False) as market:
        if user is None:
            _echo_json(market.get_platform_stats().to_dict())
            return
        s = market.get_user_stats(user)
        out: Dict[str, Any] = s.to_dict() if s else {"user": user}
        out["history"] = [r.to_dict() for r in market.get_history(user)]
        _echo_json(out)


@app.command("set-fee")
def set_fee(ctx: typer.Context, rate_bps: int, caller: str = typer.Option(..., "--as")) -> None:
    """Set the platform fee rate in basis points (admin only)."""
    with _session(ctx) as market:
        market.set_platform_fee_rate(caller, rate_bps)
        _echo_json({"platform_fee_rate": rate_bps})


@app.command("set-durations")
def set_durations(
    ctx: typer.Context,
    min_blocks: int,
    max_blocks: int,
    caller: str = typer.Option(..., "--as"),
) -> None:
    """Set global listing duration bounds (admin only)."""
    with _session(ctx) as market:
        market.set_duration_limits(caller, min_blocks, max_blocks)
        _echo_json({"min_rental_duration": min_blocks, "max_rental_duration": max_blocks})


@app.command()
def withdraw(ctx: typer.Context, amount: int, caller: str = typer.Option(..., "--as")) -> None:
    """Withdraw accumulated platform fees to the admin (admin only)."""
    with _session(ctx) as market:
        market.withdraw_platform_fees(caller, amount)
        _echo_json({"withdrawn": amount, "remaining": market.get_platform_stats().total_platform_revenue})


@app.command()
def events(
    ctx: typer.Context,
    since: int = typer.Option(0, "--since", help="Only events with seq greater than this."),
    limit: Optional[int] = typer.Option(None, "--limit"),
) -> None:
    """Dump the market event log."""
    with _session(ctx, write=False) as market:
        _echo_json([ev.to_dict() for ev in market.get_events(since, limit=limit)])


def main() -> None:
    app()


if __name__ == "__main__":
    main()
