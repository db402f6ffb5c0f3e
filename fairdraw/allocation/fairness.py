"""
Coarse fairness score of a completed allocation.

This is a transparency signal about gross proportionality between the number
of winners and the eligible pool, not a statistical test of the randomness:

    rate = len(results) * 100 // total_entries

    no results or no entries   → 100  (vacuously fair)
    0 < rate <= 100            → 100
    rate > 100                 → 100 - min(rate - 100, 100)   (weighted repeats)
    otherwise (rate == 0)      → 50
"""

from __future__ import annotations

from typing import Sequence

from ..constants import FAIRNESS_FALLBACK, FAIRNESS_MAX
from ..types.core import AllocationResult, AllocationStrategy


def compute_fairness_score(results: Sequence[AllocationResult], total_entries: int) -> int:
    if not results or total_entries <= 0:
        return FAIRNESS_MAX
    rate = len(results) * 100 // total_entries
    if 0 < rate <= 100:
        return FAIRNESS_MAX
    if rate > 100:
        return max(0, FAIRNESS_MAX - min(rate - 100, 100))
    return FAIRNESS_FALLBACK


def eligible_pool_size(strategy: AllocationStrategy, entries: int, whitelist: int) -> int:
    """Size of the pool a strategy draws from, used as `total_entries`."""
    strategy = AllocationStrategy(strategy)
    if strategy is AllocationStrategy.WHITELIST:
        return whitelist
    if strategy is AllocationStrategy.HYBRID_WHITELIST_LOTTERY:
        return entries + whitelist
    return entries


__all__ = ["compute_fairness_score", "eligible_pool_size"]
