import pytest

from fairdraw.allocation import engine
from fairdraw.allocation.anti_sniping import DEFAULT_ANTI_SNIPING, check_anti_sniping, entries_in_window
from fairdraw.allocation.engine import (
    allocate,
    allocate_fcfs,
    allocate_hybrid_whitelist_lottery,
    allocate_lottery,
    allocate_time_weighted,
    allocate_whitelist,
    is_randomized,
    time_weights,
)
from fairdraw.allocation.fairness import compute_fairness_score
from fairdraw.errors import AllocationLimitExceeded, UnsupportedStrategy
from fairdraw.types.core import (
    AllocationResult,
    AllocationStrategy,
    AntiSnipingConfig,
    LotteryEntry,
    WhitelistEntry,
)


def mk_entries(n: int, start: int = 1_000, step: int = 10) -> list[LotteryEntry]:
    return [LotteryEntry(participant=f"p{i}", entry_time=start + i * step, nonce=i) for i in range(n)]


def mk_results(n: int) -> list[AllocationResult]:
    return [AllocationResult(winner=f"p{i}", allocation_index=i) for i in range(n)]


# --------------------------- FCFS ---------------------------


def test_fcfs_preserves_arrival_order():
    entries = mk_entries(4)
    results = allocate_fcfs(entries, 2)
    assert [r.winner for r in results] == ["p0", "p1"]
    assert [r.allocation_index for r in results] == [0, 1]
    assert all(r.randomness_value == 0 and r.weight_applied == 1 for r in results)


def test_fcfs_caps_at_pool_size_and_handles_zero():
    entries = mk_entries(3)
    assert len(allocate_fcfs(entries, 10)) == 3
    assert allocate_fcfs(entries, 0) == []
    assert allocate_fcfs([], 5) == []


# --------------------------- Lottery ---------------------------


def test_lottery_never_selects_twice():
    entries = mk_entries(20)
    values = [(i * 7919) ** 3 for i in range(10)]
    results = allocate_lottery(entries, values, 10)
    winners = [r.winner for r in results]
    assert len(winners) == 10
    assert len(set(winners)) == 10
    assert [r.allocation_index for r in results] == list(range(10))
    assert [r.randomness_value for r in results] == values


def test_lottery_remaps_over_already_selected_positions():
    entries = mk_entries(5)
    # every draw reduces to rank 0 of the remaining pool
    results = allocate_lottery(entries, [0] * 5, 5)
    assert [r.winner for r in results] == ["p0", "p1", "p2", "p3", "p4"]

    # rank 1 of 3, rank 1 of 2, rank 0 of 1
    results = allocate_lottery(mk_entries(3), [7, 7, 7], 3)
    assert [r.winner for r in results] == ["p1", "p2", "p0"]

    # a later, lower selection must still skip every earlier pick
    results = allocate_lottery(mk_entries(4), [2, 0, 0], 3)
    assert [r.winner for r in results] == ["p2", "p0", "p1"]


def test_lottery_stops_when_pool_or_values_run_out():
    assert len(allocate_lottery(mk_entries(3), [1, 2, 3, 4, 5], 5)) == 3
    assert len(allocate_lottery(mk_entries(5), [1, 2], 4)) == 2
    assert allocate_lottery([], [1, 2, 3], 3) == []
    assert allocate_lottery(mk_entries(3), [1, 2, 3], 0) == []


# --------------------------- Whitelist ---------------------------


def test_whitelist_respects_allocation_limit():
    whitelist = [
        WhitelistEntry(address="A", allocation_limit=1, allocated=1),
        WhitelistEntry(address="B"),
        WhitelistEntry(address="C", weight=5, allocation_limit=2, allocated=1),
    ]
    results = allocate_whitelist(whitelist, 5)
    assert [r.winner for r in results] == ["B", "C"]
    assert [r.allocation_index for r in results] == [0, 1]
    assert [r.weight_applied for r in results] == [1, 5]
    assert all(r.randomness_value == 0 for r in results)


def test_whitelist_stops_at_quantity():
    whitelist = [WhitelistEntry(address=a) for a in "ABCD"]
    assert [r.winner for r in allocate_whitelist(whitelist, 2)] == ["A", "B"]


def test_record_allocation_enforces_cap():
    entry = WhitelistEntry(address="A", allocation_limit=2)
    entry = entry.record_allocation().record_allocation()
    assert entry.allocated == 2
    assert entry.has_capacity is False
    with pytest.raises(AllocationLimitExceeded):
        entry.record_allocation()
    # 0 = unlimited
    assert WhitelistEntry(address="B", allocated=99).record_allocation().allocated == 100


# --------------------------- Hybrid ---------------------------


def test_hybrid_places_whitelist_first():
    whitelist = [WhitelistEntry(address="W1"), WhitelistEntry(address="W2")]
    lottery = [LotteryEntry(participant=p, entry_time=0) for p in ("L1", "L2", "L3")]
    results = allocate_hybrid_whitelist_lottery(whitelist, lottery, [5, 9], 3)
    assert [r.winner for r in results] == ["W1", "W2", "L3"]
    assert [r.allocation_index for r in results] == [0, 1, 2]
    assert results[2].randomness_value == 5


def test_hybrid_whitelist_can_fill_everything():
    whitelist = [WhitelistEntry(address="W1"), WhitelistEntry(address="W2")]
    lottery = mk_entries(3)
    results = allocate_hybrid_whitelist_lottery(whitelist, lottery, [1, 2, 3], 2)
    assert [r.winner for r in results] == ["W1", "W2"]


def test_hybrid_two_whitelist_slots_then_lottery_pool_of_five():
    whitelist = [WhitelistEntry(address="W1"), WhitelistEntry(address="W2")]
    lottery = [LotteryEntry(participant=f"L{i}", entry_time=0) for i in range(5)]
    results = allocate_hybrid_whitelist_lottery(whitelist, lottery, [7, 3], 4)
    # 7 % 5 -> L2; 3 % 4 -> rank 3, shifted past L2 -> L4
    assert [r.winner for r in results] == ["W1", "W2", "L2", "L4"]
    assert [r.allocation_index for r in results] == [0, 1, 2, 3]
    assert [r.randomness_value for r in results] == [0, 0, 7, 3]


def test_hybrid_lottery_skips_whitelist_winners():
    lottery = [LotteryEntry(participant=p, entry_time=0) for p in ("alice", "bob")]
    results = allocate_hybrid_whitelist_lottery([WhitelistEntry(address="alice")], lottery, [0], 2)
    assert [r.winner for r in results] == ["alice", "bob"]

    # a whitelisted address without capacity stays in the lottery pool
    full = WhitelistEntry(address="alice", allocation_limit=1, allocated=1)
    results = allocate_hybrid_whitelist_lottery([full], lottery, [0], 2)
    assert [r.winner for r in results] == ["alice"]


# --------------------------- Time-weighted ---------------------------


def test_time_weights_decay_with_age():
    entries = [LotteryEntry(participant=f"t{i}", entry_time=t) for i, t in enumerate((100, 150, 200))]
    # span 100: age fractions 99, 49, 0
    assert time_weights(entries, now=200) == [1, 51, 100]


def test_time_weights_single_timestamp_is_flat():
    entries = [LotteryEntry(participant=f"t{i}", entry_time=500) for i in range(3)]
    assert time_weights(entries, now=10_000) == [100, 100, 100]


def test_time_weights_future_entries_saturate_age():
    entries = [LotteryEntry(participant="old", entry_time=100), LotteryEntry(participant="new", entry_time=300)]
    assert time_weights(entries, now=200) == [51, 100]


@pytest.mark.parametrize(
    "randomness,winner",
    [
        (0, "t0"),
        (1, "t0"),    # inclusive boundary: r == cumulative weight of t0
        (2, "t1"),
        (52, "t1"),
        (53, "t2"),
        (152, "t0"),  # wraps: total weight is 152
    ],
)
def test_time_weighted_selection(randomness, winner):
    entries = [LotteryEntry(participant=f"t{i}", entry_time=t) for i, t in enumerate((100, 150, 200))]
    results = allocate_time_weighted(entries, [randomness], 1, now=200)
    assert [r.winner for r in results] == [winner]
    assert results[0].randomness_value == randomness


def test_time_weighted_allows_repeats_and_empty_pool():
    entries = mk_entries(3)
    results = allocate_time_weighted(entries, [0, 0], 2, now=2_000)
    assert [r.winner for r in results] == ["p0", "p0"]
    assert [r.allocation_index for r in results] == [0, 1]
    assert allocate_time_weighted([], [1, 2], 2, now=0) == []


# --------------------------- Dispatch ---------------------------


def test_dispatch_matches_direct_calls():
    entries = mk_entries(6)
    values = [11, 22, 33]
    assert allocate(AllocationStrategy.FCFS, quantity=2, entries=entries) == allocate_fcfs(entries, 2)
    assert allocate("lottery", quantity=3, entries=entries, randomness_values=values) == allocate_lottery(
        entries, values, 3
    )
    assert allocate(
        AllocationStrategy.TIME_WEIGHTED, quantity=3, entries=entries, randomness_values=values, now=1_100
    ) == allocate_time_weighted(entries, values, 3, 1_100)


def test_dispatch_unknown_strategy():
    with pytest.raises(UnsupportedStrategy):
        allocate("dutch_auction", quantity=1)


def test_dispatch_missing_handler(monkeypatch):
    # every strategy dispatches through the one handler table; a member
    # missing from it must surface as UnsupportedStrategy, not a KeyError
    monkeypatch.delitem(engine._HANDLERS, AllocationStrategy.FCFS)
    with pytest.raises(UnsupportedStrategy):
        allocate(AllocationStrategy.FCFS, quantity=1, entries=mk_entries(1))


def test_is_randomized():
    assert is_randomized(AllocationStrategy.LOTTERY)
    assert is_randomized(AllocationStrategy.TIME_WEIGHTED)
    assert is_randomized(AllocationStrategy.HYBRID_WHITELIST_LOTTERY)
    assert not is_randomized(AllocationStrategy.FCFS)
    assert not is_randomized(AllocationStrategy.WHITELIST)


# --------------------------- Anti-sniping ---------------------------

TWO_PER_HOUR = AntiSnipingConfig(
    minimum_lock_period=0,
    max_entries_per_address=2,
    rate_limit_window=3600,
    randomization_delay_ledgers=0,
)


def test_rate_limit_two_entries_per_window():
    log = [
        LotteryEntry(participant="alice", entry_time=1_000),
        LotteryEntry(participant="alice", entry_time=2_000),
        LotteryEntry(participant="bob", entry_time=2_000),
    ]
    assert check_anti_sniping("alice", TWO_PER_HOUR, log, now=2_500) is False
    assert check_anti_sniping("bob", TWO_PER_HOUR, log, now=2_500) is True
    assert check_anti_sniping("carol", TWO_PER_HOUR, log, now=2_500) is True


def test_rate_limit_window_edges():
    log = [
        LotteryEntry(participant="alice", entry_time=1_000),
        LotteryEntry(participant="alice", entry_time=2_000),
    ]
    # window start == 1_000 still counts the first entry
    assert entries_in_window("alice", TWO_PER_HOUR, log, now=4_600) == 2
    assert check_anti_sniping("alice", TWO_PER_HOUR, log, now=4_600) is False
    # one second later it has aged out
    assert entries_in_window("alice", TWO_PER_HOUR, log, now=4_601) == 1
    assert check_anti_sniping("alice", TWO_PER_HOUR, log, now=4_601) is True


def test_rate_limit_window_start_saturates():
    log = [LotteryEntry(participant="alice", entry_time=50)]
    assert entries_in_window("alice", TWO_PER_HOUR, log, now=100) == 1


def test_default_anti_sniping_values():
    assert DEFAULT_ANTI_SNIPING.minimum_lock_period == 10
    assert DEFAULT_ANTI_SNIPING.max_entries_per_address == 5
    assert DEFAULT_ANTI_SNIPING.rate_limit_window == 3600
    assert DEFAULT_ANTI_SNIPING.randomization_delay_ledgers == 3


# --------------------------- Fairness ---------------------------


@pytest.mark.parametrize(
    "winners,total,expected",
    [
        (0, 10, 100),   # nothing allocated
        (3, 0, 100),    # empty pool
        (5, 10, 100),
        (10, 10, 100),
        (15, 10, 50),   # weighted repeats above the pool size
        (30, 10, 0),
        (1, 200, 50),   # rate rounds down to 0
    ],
)
def test_fairness_score(winners, total, expected):
    assert compute_fairness_score(mk_results(winners), total) == expected


def test_fairness_score_is_bounded():
    for winners in range(0, 40):
        for total in range(0, 25):
            assert 0 <= compute_fairness_score(mk_results(winners), total) <= 100
