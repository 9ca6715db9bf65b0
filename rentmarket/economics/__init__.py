"""Market economics: integer-only fee, collateral and payment arithmetic."""

from .pricing import Quote, quote

__all__ = ["Quote", "quote"]
