import hashlib

import pytest

from fairdraw.adapters.ledger import LedgerOracle, SimulatedLedger
from fairdraw.constants import U32_MAX
from fairdraw.entropy.manager import EntropyManager
from fairdraw.types.core import EntropySource, EntropyState


def _sha(*parts: bytes) -> bytes:
    return hashlib.sha256(b"".join(parts)).digest()


# --------------------------- ledger adapter ---------------------------


def test_simulated_ledger_satisfies_protocol(ledger):
    assert isinstance(ledger, LedgerOracle)
    assert ledger.height() == 100
    assert ledger.now() == 1_700_000_000
    assert len(ledger.chain_hash()) == 32


def test_simulated_ledger_hash_changes_per_height(ledger):
    h0 = ledger.chain_hash()
    ledger.advance(blocks=1, seconds=5)
    assert ledger.height() == 101
    assert ledger.now() == 1_700_000_005
    assert ledger.chain_hash() != h0
    # deterministic replay
    assert SimulatedLedger(sequence=101).chain_hash() == ledger.chain_hash()


def test_simulated_ledger_rejects_moving_backwards(ledger):
    with pytest.raises(ValueError):
        ledger.advance(blocks=-1)
    with pytest.raises(ValueError):
        ledger.advance_to(99)


def test_pinned_hash_is_dropped_on_advance(ledger):
    pinned = b"\x07" * 32
    ledger.pin_hash(pinned)
    assert ledger.chain_hash() == pinned
    ledger.advance()
    assert ledger.chain_hash() != pinned
    with pytest.raises(ValueError):
        ledger.pin_hash(b"\x01" * 31)


# --------------------------- derivation ---------------------------


def test_ledger_hash_source_is_raw_chain_hash(ledger):
    mgr = EntropyManager(ledger)
    assert mgr.derive(EntropySource.LEDGER_HASH) == ledger.chain_hash()


def test_ledger_hash_with_timestamp(ledger):
    mgr = EntropyManager(ledger)
    expected = _sha(ledger.chain_hash(), ledger.now().to_bytes(8, "little"))
    assert mgr.derive(EntropySource.LEDGER_HASH_WITH_TIMESTAMP) == expected


def test_multi_source_binds_height_and_counter(ledger):
    mgr = EntropyManager(ledger)
    expected = _sha(
        ledger.chain_hash(),
        ledger.now().to_bytes(8, "little"),
        ledger.height().to_bytes(4, "little"),
        (7).to_bytes(4, "little"),
    )
    assert mgr.derive(EntropySource.MULTI_SOURCE, counter=7) == expected
    # same block, different counter → different value
    assert mgr.derive(counter=7) != mgr.derive(counter=8)


def test_mix_pads_and_truncates_to_digest_width():
    short = b"\x01\x02"
    long = bytes(range(40))
    expected = _sha(short + b"\x00" * 30, long[:32])
    assert EntropyManager.mix([short, long]) == expected


def test_mix_is_order_sensitive():
    a, b = b"\xaa" * 32, b"\xbb" * 32
    assert EntropyManager.mix([a, b]) != EntropyManager.mix([b, a])


def test_oracle_with_bad_hash_width_is_rejected():
    class ShortHashOracle:
        def now(self) -> int:
            return 0

        def height(self) -> int:
            return 0

        def chain_hash(self) -> bytes:
            return b"\x00" * 31

    with pytest.raises(ValueError):
        EntropyManager(ShortHashOracle()).initialize()


# --------------------------- state / freshness ---------------------------


def test_initialize_snapshots_oracle(ledger):
    state = EntropyManager(ledger).initialize()
    assert state.ready is True
    assert state.counter == 0
    assert state.last_hash == ledger.chain_hash()
    assert state.last_timestamp == ledger.now()


def test_counter_strictly_increases_across_updates(ledger):
    mgr = EntropyManager(ledger)
    state = mgr.initialize()
    counters = []
    for _ in range(5):
        ledger.advance()
        state = mgr.update(state)
        counters.append(state.counter)
    assert counters == [1, 2, 3, 4, 5]
    assert state.last_hash == ledger.chain_hash()


def test_counter_saturates(ledger):
    mgr = EntropyManager(ledger)
    state = EntropyState(last_hash=b"\x00" * 32, last_timestamp=0, counter=U32_MAX, ready=True)
    assert mgr.update(state).counter == U32_MAX


def test_next_seed_uses_state_counter_and_advances_it(ledger):
    mgr = EntropyManager(ledger)
    state = mgr.initialize()
    seed, new_state = mgr.next_seed(state)
    assert seed == mgr.derive(counter=0)
    assert new_state.counter == 1

    extra = [b"\x11" * 32, b"\x22" * 5]
    seed2, newer = mgr.next_seed(new_state, extra=extra)
    assert seed2 == EntropyManager.mix([mgr.derive(counter=1), *extra])
    assert newer.counter == 2


def test_verify_freshness(ledger):
    mgr = EntropyManager(ledger)
    state = mgr.initialize()
    assert mgr.verify_freshness(state, state.last_hash) is False
    ledger.advance()
    assert mgr.verify_freshness(state, ledger.chain_hash()) is True


@pytest.mark.parametrize(
    "current,last,max_reuse,expected",
    [
        (0, 0, 8, 100),
        (4, 0, 8, 50),
        (7, 0, 8, 12),
        (8, 0, 8, 0),
        (20, 0, 8, 0),
        (0, 5, 8, 100),  # distance saturates at 0
    ],
)
def test_freshness_percentage(current, last, max_reuse, expected):
    assert EntropyManager.freshness_percentage(current, last, max_reuse) == expected


def test_validate_width():
    assert EntropyManager.validate(b"\x00" * 32) is True
    assert EntropyManager.validate(b"\x00" * 31) is False
    assert EntropyManager.validate(b"\x00" * 33) is False
