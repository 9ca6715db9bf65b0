from .history import HistoryLog
from .tracker import ReputationTracker

__all__ = ["HistoryLog", "ReputationTracker"]
