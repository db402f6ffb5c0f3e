# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Anti-sniping rate limit.

A participant may hold at most `max_entries_per_address` entries whose
`entry_time` falls inside the rolling window

    [ now - rate_limit_window , now ]      (start clamped at 0)

The check is a pure predicate over an entry log: it is used at registration
time to decide admission and can be replayed later to audit a round's log.
Rejection is a normal outcome, not an error.
"""

from __future__ import annotations

from typing import Iterable

from ..constants import (
    DEFAULT_MAX_ENTRIES_PER_ADDRESS,
    DEFAULT_MINIMUM_LOCK_PERIOD,
    DEFAULT_RANDOMIZATION_DELAY_LEDGERS,
    DEFAULT_RATE_LIMIT_WINDOW_S,
)
from ..types.core import AntiSnipingConfig, LotteryEntry
from ..utils.ints import sat_sub

DEFAULT_ANTI_SNIPING = AntiSnipingConfig(
    minimum_lock_period=DEFAULT_MINIMUM_LOCK_PERIOD,
    max_entries_per_address=DEFAULT_MAX_ENTRIES_PER_ADDRESS,
    rate_limit_window=DEFAULT_RATE_LIMIT_WINDOW_S,
    randomization_delay_ledgers=DEFAULT_RANDOMIZATION_DELAY_LEDGERS,
)


def entries_in_window(
    participant: str,
    config: AntiSnipingConfig,
    recent_entries: Iterable[LotteryEntry],
    now: int,
) -> int:
    """Number of *participant*'s entries with `entry_time >= now - window`."""
    window_start = sat_sub(now, config.rate_limit_window)
    return sum(
        1
        for e in recent_entries
        if e.participant == participant and e.entry_time >= window_start
    )


def check_anti_sniping(
    participant: str,
    config: AntiSnipingConfig,
    recent_entries: Iterable[LotteryEntry],
    now: int,
) -> bool:
    """True if *participant* may add another entry at time *now*."""
    return entries_in_window(participant, config, recent_entries, now) < config.max_entries_per_address


__all__ = ["DEFAULT_ANTI_SNIPING", "check_anti_sniping", "entries_in_window"]
