"""Command-line surface for the rental market (`python -m rentmarket.cli`)."""

from .market import app, main

__all__ = ["app", "main"]
