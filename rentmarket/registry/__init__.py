from .listings import ListingRegistry

__all__ = ["ListingRegistry"]
