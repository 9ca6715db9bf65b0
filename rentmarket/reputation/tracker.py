from __future__ import annotations
"""
Per-user counters and a bounded reputation score.

Stats are created lazily on a user's first activity with the configured
initial score. Every activity bumps the score by a fixed step up to the cap;
the score never goes down.
"""

from dataclasses import replace
from typing import Dict, Optional

from ..config import ReputationPolicy
from ..rtypes import Principal, UserStats
from ..state.journal import Journal
from ..state.store import STATS


class ReputationTracker:
    def __init__(self, journal: Journal, policy: Optional[ReputationPolicy] = None) -> None:
        self._j = journal
        self.policy = policy or ReputationPolicy()

    def get(self, user: str) -> Optional[UserStats]:
        return self._j.get(STATS, str(user))

    def record_activity(self, user: str, amount: int, is_earning: bool) -> UserStats:
        cur = self.get(user) or UserStats(user=Principal(user), reputation_score=self.policy.initial_score)
        if is_earning:
            cur = replace(cur, total_earned=cur.total_earned + amount)
        else:
            cur = replace(cur, total_spent=cur.total_spent + amount)
        cur = replace(
            cur,
            total_rentals=cur.total_rentals + 1,
            reputation_score=min(cur.reputation_score + self.policy.step, self.policy.max_score),
        )
        self._j.put(STATS, cur.user, cur)
        return cur

    def all(self) -> Dict[str, UserStats]:
        return {str(k): v for k, v in self._j.items(STATS)}


__all__ = ["ReputationTracker"]
