# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Entropy derivation for allocation rounds.

Sources
-------
The ledger oracle exposes a block hash that nobody (including the round
operator) knows before the block is finalized. Three derivations are offered:

    LEDGER_HASH                 h
    LEDGER_HASH_WITH_TIMESTAMP  SHA-256( h || ts_le64 )
    MULTI_SOURCE                SHA-256( h || ts_le64 || height_le32 || counter_le32 )

The counter in MULTI_SOURCE keeps repeated derivations within the same block
distinct. Additional, independently produced 32-byte values (oracle feeds,
revealed participant seeds) can be folded in with :meth:`EntropyManager.mix`,
which raises the cost for an adversary who controls a single source.

Freshness
---------
`EntropyState` remembers the last hash seen and counts updates. A candidate
equal to the remembered hash is stale; :meth:`freshness_percentage` converts a
counter distance into a linear 100→0 score so callers can refuse entropy that
has been reused across too many rounds.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional, Sequence, Tuple

from ..adapters.ledger import LedgerOracle
from ..constants import DIGEST_SIZE
from ..types.core import EntropySource, EntropyState
from ..utils.bytes import BytesLike, as_bytes, ensure_len, fit32
from ..utils.hash import sha256_concat
from ..utils.ints import require_uint, sat_add, sat_sub, u32_le, u64_le

logger = logging.getLogger(__name__)


class EntropyManager:
    """
    Derives unpredictable 32-byte values from a `LedgerOracle`.

    The manager holds no mutable state of its own; `EntropyState` values are
    passed in and returned by the caller that owns them.
    """

    __slots__ = ("_oracle", "default_source")

    def __init__(
        self,
        oracle: LedgerOracle,
        *,
        default_source: EntropySource = EntropySource.MULTI_SOURCE,
    ) -> None:
        self._oracle = oracle
        self.default_source = EntropySource(default_source)

    # ---- State lifecycle ----

    def initialize(self) -> EntropyState:
        """Snapshot the oracle; counter starts at 0."""
        return EntropyState(
            last_hash=self._ledger_hash(),
            last_timestamp=self._oracle.now(),
            counter=0,
            ready=True,
        )

    def update(self, state: EntropyState) -> EntropyState:
        """Refresh hash/timestamp from the oracle and bump the counter (saturating)."""
        return replace(
            state,
            last_hash=self._ledger_hash(),
            last_timestamp=self._oracle.now(),
            counter=sat_add(state.counter, 1, 32),
        )

    # ---- Derivation ----

    def derive(self, source: Optional[EntropySource] = None, counter: int = 0) -> bytes:
        """Derive 32 bytes of entropy from the oracle using *source*."""
        src = self.default_source if source is None else EntropySource(source)
        require_uint("counter", counter, 32)
        h = self._ledger_hash()
        if src is EntropySource.LEDGER_HASH:
            return h
        ts = u64_le(self._oracle.now())
        if src is EntropySource.LEDGER_HASH_WITH_TIMESTAMP:
            return sha256_concat(h, ts)
        return sha256_concat(h, ts, u32_le(self._oracle.height()), u32_le(counter))

    @staticmethod
    def mix(sources: Iterable[BytesLike]) -> bytes:
        """Fit every source to 32 bytes, concatenate in order and digest."""
        return sha256_concat(*(fit32(s) for s in sources))

    def next_seed(
        self,
        state: EntropyState,
        source: Optional[EntropySource] = None,
        extra: Sequence[BytesLike] = (),
    ) -> Tuple[bytes, EntropyState]:
        """
        Derive a seed with the state's counter, fold in *extra* contributions
        and return it together with the updated state.

        Without *extra* the derived value is returned unmixed.
        """
        base = self.derive(source, state.counter)
        seed = self.mix([base, *extra]) if extra else base
        new_state = self.update(state)
        logger.debug(
            "derived seed counter=%d extra=%d source=%s",
            state.counter,
            len(extra),
            (self.default_source if source is None else EntropySource(source)).value,
        )
        return seed, new_state

    # ---- Checks ----

    @staticmethod
    def validate(entropy: BytesLike) -> bool:
        """True iff *entropy* has the digest width."""
        return len(as_bytes(entropy)) == DIGEST_SIZE

    @staticmethod
    def verify_freshness(state: EntropyState, candidate: BytesLike) -> bool:
        """True iff *candidate* differs from the last hash recorded in *state*."""
        return as_bytes(candidate) != state.last_hash

    @staticmethod
    def freshness_percentage(current_counter: int, last_counter: int, max_reuse: int) -> int:
        """100 when just derived, decaying linearly to 0 after *max_reuse* updates."""
        age = sat_sub(current_counter, last_counter)
        if age >= max_reuse:
            return 0
        return (max_reuse - age) * 100 // max_reuse

    # ---- Internals ----

    def _ledger_hash(self) -> bytes:
        return ensure_len(self._oracle.chain_hash(), DIGEST_SIZE, name="ledger hash")


__all__ = ["EntropyManager"]
