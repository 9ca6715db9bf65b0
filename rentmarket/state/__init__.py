"""Journaled marketplace state: base tables, overlay journal and event log."""

from .events import EventLog
from .journal import Journal
from .store import MarketState, TABLES

__all__ = ["EventLog", "Journal", "MarketState", "TABLES"]
