"""Custody: escrow primitives and the platform revenue accumulator."""

from .escrow import EscrowLedger
from .revenue import RevenueAccumulator

__all__ = ["EscrowLedger", "RevenueAccumulator"]
