"""
fairdraw.allocation
-------------------

Winner selection: the anti-sniping guard, the five allocation strategies,
the fairness score and the round lifecycle that ties them to entropy and
verifiable randomness.
"""

from __future__ import annotations

from .anti_sniping import DEFAULT_ANTI_SNIPING, check_anti_sniping, entries_in_window
from .engine import (
    allocate,
    allocate_fcfs,
    allocate_hybrid_whitelist_lottery,
    allocate_lottery,
    allocate_time_weighted,
    allocate_whitelist,
    is_randomized,
    time_weights,
)
from .fairness import compute_fairness_score, eligible_pool_size
from .round import AllocationRound, RoundConfig, RoundRegistry

__all__ = [
    "DEFAULT_ANTI_SNIPING",
    "check_anti_sniping",
    "entries_in_window",
    "allocate",
    "allocate_fcfs",
    "allocate_hybrid_whitelist_lottery",
    "allocate_lottery",
    "allocate_time_weighted",
    "allocate_whitelist",
    "is_randomized",
    "time_weights",
    "compute_fairness_score",
    "eligible_pool_size",
    "AllocationRound",
    "RoundConfig",
    "RoundRegistry",
]
