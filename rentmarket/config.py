from __future__ import annotations
"""
rentmarket.config — configuration for the rental marketplace ledger

Covers:
- Platform fee (basis points, 10_000 = 100%) and its hard ceiling
- Collateral ratio (basis points of the rental cost)
- Global duration bounds for listings (blocks)
- Reputation scoring knobs
- The privileged admin identity and the custody account

Environment overrides (all optional; sensible defaults provided):

  RENTMARKET_ADMIN=admin
  RENTMARKET_CUSTODY_ACCOUNT=rentmarket.custody

  # Fees (basis points)
  RENTMARKET_PLATFORM_FEE_BPS=500
  RENTMARKET_MAX_FEE_BPS=2000
  RENTMARKET_COLLATERAL_BPS=2000

  # Duration bounds (blocks)
  RENTMARKET_MIN_DURATION_BLOCKS=144
  RENTMARKET_MAX_DURATION_BLOCKS=52560

  # Reputation
  RENTMARKET_REPUTATION_INITIAL=100
  RENTMARKET_REPUTATION_STEP=10
  RENTMARKET_REPUTATION_MAX=1000

  RENTMARKET_VERIFY_ASSET_OWNERSHIP=0

You can also load from a JSON or YAML file via
`RENTMARKET_CONFIG_FILE=/path/to/config.(json|yaml|yml)`. File values override
defaults; environment overrides the file.

The fee rate and duration bounds here are *initial* values. Once a market is
running they live in state and are changed through the admin surface.
"""


from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional
import json
import os
from pathlib import Path

try:
    import yaml  # type: ignore
except ImportError:  # pragma: no cover - yaml is optional
    yaml = None  # type: ignore


BPS_DENOM = 10_000
FEE_CEILING_BPS = 2_000


# -------------------------- Data classes --------------------------


@dataclass
class FeePolicy:
    """
    Platform fee and collateral ratio in basis points.

    `max_fee_bps` may be lowered but never raised above 20%. The collateral
    ratio defaults to 20% of the rental cost; deployments may tune it, and it
    stays fixed for the life of a market instance.
    """
    platform_fee_bps: int = 500       # 5% of the rental cost
    max_fee_bps: int = 2_000          # admin may never set more than 20%
    collateral_bps: int = 2_000       # refundable deposit, 20% of the rental cost

    def validate(self) -> None:
        for name, v in (("platform_fee_bps", self.platform_fee_bps),
                        ("max_fee_bps", self.max_fee_bps),
                        ("collateral_bps", self.collateral_bps)):
            if not (0 <= v <= BPS_DENOM):
                raise ValueError(f"{name} must be between 0 and 10000 (got {v}).")
        if self.max_fee_bps > FEE_CEILING_BPS:
            raise ValueError(f"max_fee_bps ({self.max_fee_bps}) exceeds the {FEE_CEILING_BPS} bps ceiling.")
        if self.platform_fee_bps > self.max_fee_bps:
            raise ValueError(
                f"platform_fee_bps ({self.platform_fee_bps}) exceeds max_fee_bps ({self.max_fee_bps})."
            )


@dataclass
class DurationLimits:
    """Global bounds every listing's [min_duration, max_duration] must sit inside."""
    min_blocks: int = 144             # ~1 day of 10-minute blocks
    max_blocks: int = 52_560          # ~1 year

    def validate(self) -> None:
        if self.min_blocks <= 0:
            raise ValueError("min_blocks must be positive.")
        if self.min_blocks >= self.max_blocks:
            raise ValueError(
                f"min_blocks ({self.min_blocks}) must be below max_blocks ({self.max_blocks})."
            )


@dataclass
class ReputationPolicy:
    initial_score: int = 100
    step: int = 10
    max_score: int = 1_000

    def validate(self) -> None:
        if not (0 <= self.initial_score <= self.max_score):
            raise ValueError("initial_score must be in [0, max_score].")
        if self.step < 0:
            raise ValueError("step must be non-negative.")


@dataclass
class MarketConfig:
    """Top-level configuration container."""
    admin: str = "admin"
    custody_account: str = "rentmarket.custody"
    fees: FeePolicy = field(default_factory=FeePolicy)
    durations: DurationLimits = field(default_factory=DurationLimits)
    reputation: ReputationPolicy = field(default_factory=ReputationPolicy)
    verify_asset_ownership: bool = False

    def validate(self) -> None:
        if not self.admin:
            raise ValueError("admin identity must be set.")
        if not self.custody_account:
            raise ValueError("custody_account must be set.")
        if self.admin == self.custody_account:
            raise ValueError("admin and custody_account must differ.")
        self.fees.validate()
        self.durations.validate()
        self.reputation.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


_BOOL_TRUE = {"1", "true", "t", "yes", "y", "on"}


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except Exception as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def _getenv_bps(name: str, default: int) -> int:
    bps = _getenv_int(name, default)
    if not (0 <= bps <= BPS_DENOM):
        raise ValueError(f"{name} must be between 0 and 10000 bps (got {bps}).")
    return bps


def _getenv_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    return v.strip().lower() in _BOOL_TRUE


def from_env(base: Optional[MarketConfig] = None, prefix: str = "RENTMARKET_") -> MarketConfig:
    """
    Build a MarketConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or MarketConfig()

    new_cfg = MarketConfig(
        admin=os.getenv(f"{prefix}ADMIN") or cfg.admin,
        custody_account=os.getenv(f"{prefix}CUSTODY_ACCOUNT") or cfg.custody_account,
        fees=FeePolicy(
            platform_fee_bps=_getenv_bps(f"{prefix}PLATFORM_FEE_BPS", cfg.fees.platform_fee_bps),
            max_fee_bps=_getenv_bps(f"{prefix}MAX_FEE_BPS", cfg.fees.max_fee_bps),
            collateral_bps=_getenv_bps(f"{prefix}COLLATERAL_BPS", cfg.fees.collateral_bps),
        ),
        durations=DurationLimits(
            min_blocks=_getenv_int(f"{prefix}MIN_DURATION_BLOCKS", cfg.durations.min_blocks),
            max_blocks=_getenv_int(f"{prefix}MAX_DURATION_BLOCKS", cfg.durations.max_blocks),
        ),
        reputation=ReputationPolicy(
            initial_score=_getenv_int(f"{prefix}REPUTATION_INITIAL", cfg.reputation.initial_score),
            step=_getenv_int(f"{prefix}REPUTATION_STEP", cfg.reputation.step),
            max_score=_getenv_int(f"{prefix}REPUTATION_MAX", cfg.reputation.max_score),
        ),
        verify_asset_ownership=_getenv_bool(
            f"{prefix}VERIFY_ASSET_OWNERSHIP", cfg.verify_asset_ownership
        ),
    )
    new_cfg.validate()
    return new_cfg


def from_file(path: str | os.PathLike[str]) -> MarketConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        if yaml is None:
            raise RuntimeError("YAML config requested but PyYAML is not installed.")
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")

    fees = data.get("fees", {})
    durations = data.get("durations", {})
    reputation = data.get("reputation", {})
    defaults = MarketConfig()

    cfg = MarketConfig(
        admin=data.get("admin", defaults.admin),
        custody_account=data.get("custody_account", defaults.custody_account),
        fees=FeePolicy(
            platform_fee_bps=int(fees.get("platform_fee_bps", defaults.fees.platform_fee_bps)),
            max_fee_bps=int(fees.get("max_fee_bps", defaults.fees.max_fee_bps)),
            collateral_bps=int(fees.get("collateral_bps", defaults.fees.collateral_bps)),
        ),
        durations=DurationLimits(
            min_blocks=int(durations.get("min_blocks", defaults.durations.min_blocks)),
            max_blocks=int(durations.get("max_blocks", defaults.durations.max_blocks)),
        ),
        reputation=ReputationPolicy(
            initial_score=int(reputation.get("initial_score", defaults.reputation.initial_score)),
            step=int(reputation.get("step", defaults.reputation.step)),
            max_score=int(reputation.get("max_score", defaults.reputation.max_score)),
        ),
        verify_asset_ownership=bool(data.get("verify_asset_ownership", defaults.verify_asset_ownership)),
    )
    cfg.validate()
    return cfg


def load() -> MarketConfig:
    """
    Load configuration using the following precedence:
      1) File at $RENTMARKET_CONFIG_FILE (JSON/YAML)
      2) Environment variables (RENTMARKET_*), applied on top of defaults or file values
    """
    file_path = os.getenv("RENTMARKET_CONFIG_FILE")
    base = from_file(file_path) if file_path else MarketConfig()
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[MarketConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "BPS_DENOM",
    "FEE_CEILING_BPS",
    "FeePolicy",
    "DurationLimits",
    "ReputationPolicy",
    "MarketConfig",
    "from_env",
    "from_file",
    "load",
    "pretty",
]
