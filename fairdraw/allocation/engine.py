# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Allocation strategies.

Every function here is pure: it reads entries (and randomness values, and a
whitelist where relevant) and returns a list of `AllocationResult`s. Nothing
is mutated; recording whitelist allocations and storing results is the job of
the round (see `round.py`).

Strategies
----------
FCFS
    First `min(quantity, len(entries))` entries in arrival order; no
    randomness (`randomness_value == 0`), weight 1.

LOTTERY
    One draw per randomness value (up to `quantity`). Each draw reduces its
    value onto the *remaining* pool and maps that rank back onto the entry
    array by skipping already selected positions in ascending order, i.e.
    uniform sampling without replacement.

WHITELIST
    Whitelist entries in stored order, skipping those at their allocation
    limit (0 = unlimited), one slot per entry, until `quantity` winners.
    `weight_applied` reports the entry's configured weight.

HYBRID_WHITELIST_LOTTERY
    WHITELIST first, then LOTTERY for the remaining quantity over the
    lottery-eligible entries: every lottery entry whose participant did not
    already win a whitelist slot. Lottery slots are offset so indices stay
    dense (whitelist winners first).

TIME_WEIGHTED
    Each entry gets a weight in [1, 100] that decays with its age relative to
    the spread of entry times in the pool (100 for everyone when all entries
    share one timestamp). Each draw picks the first entry whose cumulative
    weight is >= `r mod total_weight`; draws are independent, so repeats are
    possible.

Short inputs are not errors: quantity 0, empty pools or fewer randomness
values than requested winners simply produce fewer results.
"""

from __future__ import annotations

import bisect
from typing import Callable, Dict, List, Sequence

from ..constants import MAX_TIME_WEIGHT, MIN_TIME_WEIGHT
from ..errors import UnsupportedStrategy
from ..types.core import AllocationResult, AllocationStrategy, LotteryEntry, WhitelistEntry
from ..utils.ints import require_uint, sat_add, sat_sub
from ..vrf.engine import compute_selection_index


# ---- FCFS --------------------------------------------------------------------


def allocate_fcfs(entries: Sequence[LotteryEntry], quantity: int) -> List[AllocationResult]:
    require_uint("quantity", quantity, 32)
    return [
        AllocationResult(
            winner=entry.participant,
            allocation_index=i,
            randomness_value=0,
            weight_applied=1,
        )
        for i, entry in enumerate(entries[: min(quantity, len(entries))])
    ]


# ---- Lottery -----------------------------------------------------------------


def allocate_lottery(
    entries: Sequence[LotteryEntry],
    randomness_values: Sequence[int],
    quantity: int,
) -> List[AllocationResult]:
    require_uint("quantity", quantity, 32)
    results: List[AllocationResult] = []
    selected: List[int] = []  # ascending

    for draw, randomness in enumerate(randomness_values[: min(quantity, len(randomness_values))]):
        pool_size = len(entries) - len(selected)
        if pool_size <= 0:
            break
        index = compute_selection_index(randomness, pool_size)
        for taken in selected:
            if index >= taken:
                index += 1
            else:
                break
        bisect.insort(selected, index)
        results.append(
            AllocationResult(
                winner=entries[index].participant,
                allocation_index=draw,
                randomness_value=randomness,
                weight_applied=1,
            )
        )
    return results


# ---- Whitelist ---------------------------------------------------------------


def allocate_whitelist(whitelist: Sequence[WhitelistEntry], quantity: int) -> List[AllocationResult]:
    require_uint("quantity", quantity, 32)
    results: List[AllocationResult] = []
    for entry in whitelist:
        if len(results) >= quantity:
            break
        if not entry.has_capacity:
            continue
        results.append(
            AllocationResult(
                winner=entry.address,
                allocation_index=len(results),
                randomness_value=0,
                weight_applied=entry.weight,
            )
        )
    return results


def allocate_hybrid_whitelist_lottery(
    whitelist: Sequence[WhitelistEntry],
    lottery_entries: Sequence[LotteryEntry],
    randomness_values: Sequence[int],
    quantity: int,
) -> List[AllocationResult]:
    """Whitelist slots first; whitelist winners are not drawn again in the lottery."""
    results = allocate_whitelist(whitelist, quantity)
    offset = len(results)
    remaining = sat_sub(quantity, offset)
    won = {r.winner for r in results}
    eligible = [e for e in lottery_entries if e.participant not in won]
    for r in allocate_lottery(eligible, randomness_values, remaining):
        results.append(
            AllocationResult(
                winner=r.winner,
                allocation_index=offset + r.allocation_index,
                randomness_value=r.randomness_value,
                weight_applied=r.weight_applied,
            )
        )
    return results


# ---- Time-weighted -----------------------------------------------------------


def time_weights(entries: Sequence[LotteryEntry], now: int) -> List[int]:
    """Per-entry weights in [MIN_TIME_WEIGHT, MAX_TIME_WEIGHT]."""
    if not entries:
        return []
    earliest = min(e.entry_time for e in entries)
    latest = max(e.entry_time for e in entries)
    time_span = latest - earliest
    if time_span == 0:
        return [MAX_TIME_WEIGHT] * len(entries)

    weights: List[int] = []
    for e in entries:
        age = sat_sub(now, e.entry_time)
        age_fraction = age * 100 // (time_span + 1)
        weights.append(max(MIN_TIME_WEIGHT, MAX_TIME_WEIGHT - min(age_fraction, MAX_TIME_WEIGHT)))
    return weights


def allocate_time_weighted(
    entries: Sequence[LotteryEntry],
    randomness_values: Sequence[int],
    quantity: int,
    now: int,
) -> List[AllocationResult]:
    require_uint("quantity", quantity, 32)
    weights = time_weights(entries, now)
    total_weight = 0
    for w in weights:
        total_weight = sat_add(total_weight, w, 32)
    if total_weight == 0:
        return []

    results: List[AllocationResult] = []
    for draw, randomness in enumerate(randomness_values[: min(quantity, len(randomness_values))]):
        selection_value = randomness % total_weight
        cumulative = 0
        for entry, weight in zip(entries, weights):
            cumulative = sat_add(cumulative, weight, 32)
            # inclusive boundary
            if selection_value <= cumulative:
                results.append(
                    AllocationResult(
                        winner=entry.participant,
                        allocation_index=draw,
                        randomness_value=randomness,
                        weight_applied=weight,
                    )
                )
                break
    return results


# ---- Dispatch ----------------------------------------------------------------

_Handler = Callable[
    [Sequence[LotteryEntry], Sequence[int], int, Sequence[WhitelistEntry], int],
    List[AllocationResult],
]

_HANDLERS: Dict[AllocationStrategy, _Handler] = {
    AllocationStrategy.FCFS: lambda entries, rnd, qty, wl, now: allocate_fcfs(entries, qty),
    AllocationStrategy.LOTTERY: lambda entries, rnd, qty, wl, now: allocate_lottery(entries, rnd, qty),
    AllocationStrategy.WHITELIST: lambda entries, rnd, qty, wl, now: allocate_whitelist(wl, qty),
    AllocationStrategy.HYBRID_WHITELIST_LOTTERY: lambda entries, rnd, qty, wl, now: (
        allocate_hybrid_whitelist_lottery(wl, entries, rnd, qty)
    ),
    AllocationStrategy.TIME_WEIGHTED: lambda entries, rnd, qty, wl, now: (
        allocate_time_weighted(entries, rnd, qty, now)
    ),
}


def allocate(
    strategy: AllocationStrategy,
    *,
    quantity: int,
    entries: Sequence[LotteryEntry] = (),
    randomness_values: Sequence[int] = (),
    whitelist: Sequence[WhitelistEntry] = (),
    now: int = 0,
) -> List[AllocationResult]:
    """Run *strategy* with the inputs it needs; unused inputs are ignored."""
    try:
        handler = _HANDLERS[AllocationStrategy(strategy)]
    except (KeyError, ValueError):
        raise UnsupportedStrategy(str(getattr(strategy, "value", strategy))) from None
    return handler(entries, randomness_values, quantity, whitelist, now)


def is_randomized(strategy: AllocationStrategy) -> bool:
    """Whether *strategy* consumes randomness values."""
    return AllocationStrategy(strategy) in (
        AllocationStrategy.LOTTERY,
        AllocationStrategy.HYBRID_WHITELIST_LOTTERY,
        AllocationStrategy.TIME_WEIGHTED,
    )


__all__ = [
    "allocate",
    "allocate_fcfs",
    "allocate_lottery",
    "allocate_whitelist",
    "allocate_hybrid_whitelist_lottery",
    "allocate_time_weighted",
    "time_weights",
    "is_randomized",
]
