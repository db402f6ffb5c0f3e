"""
Ledger ⇄ fairdraw adapter (read-only oracle).

The allocation core needs three signals from its host: the current timestamp,
the current block/sequence height and the current block hash. The hash is
treated as unknown before the enclosing block is finalized and fixed after,
which is what makes entropy derived from it unpredictable at commit time and
auditable afterwards.

Contract expected from any implementation
-----------------------------------------
- `now()` and `height()` never decrease between calls.
- `chain_hash()` returns exactly 32 bytes.
- None of the three is chosen by the party calling into the core.

`SimulatedLedger` is a deterministic in-memory implementation used by tests,
the CLI and offline simulations. It derives its hash from a genesis tag and the
current height so that replays with the same parameters are bit-identical.

Typical usage
-------------
    ledger = SimulatedLedger(timestamp=1_700_000_000, sequence=100)
    manager = EntropyManager(ledger)
    ledger.advance(blocks=3, seconds=15)
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from ..constants import DIGEST_SIZE
from ..utils.bytes import ensure_len
from ..utils.hash import sha256_concat
from ..utils.ints import require_uint, u32_le

logger = logging.getLogger(__name__)


@runtime_checkable
class LedgerOracle(Protocol):
    """Time/height/hash oracle satisfied by a real chain binding or a test double."""

    def now(self) -> int: ...

    def height(self) -> int: ...

    def chain_hash(self) -> bytes: ...


class SimulatedLedger:
    """
    Deterministic, monotonic oracle.

    The hash at height h is SHA-256(genesis || h_le32) unless a hash has been
    pinned with :meth:`pin_hash`; a pinned hash is dropped on the next
    :meth:`advance`.
    """

    __slots__ = ("_timestamp", "_sequence", "_genesis", "_pinned")

    def __init__(
        self,
        *,
        timestamp: int = 0,
        sequence: int = 0,
        genesis: bytes = b"fairdraw.simulated",
    ) -> None:
        self._timestamp = require_uint("timestamp", timestamp, 64)
        self._sequence = require_uint("sequence", sequence, 32)
        self._genesis = bytes(genesis)
        self._pinned: Optional[bytes] = None

    # ---------- LedgerOracle ----------

    def now(self) -> int:
        return self._timestamp

    def height(self) -> int:
        return self._sequence

    def chain_hash(self) -> bytes:
        if self._pinned is not None:
            return self._pinned
        return sha256_concat(self._genesis, u32_le(self._sequence))

    # ---------- Driving the simulation ----------

    def advance(self, blocks: int = 1, seconds: int = 5) -> None:
        """Move height and time forward. Negative deltas are rejected."""
        if blocks < 0 or seconds < 0:
            raise ValueError("ledger cannot move backwards")
        self._sequence = require_uint("sequence", self._sequence + blocks, 32)
        self._timestamp = require_uint("timestamp", self._timestamp + seconds, 64)
        self._pinned = None
        logger.debug("ledger advanced to height=%d ts=%d", self._sequence, self._timestamp)

    def advance_to(self, height: int, *, seconds_per_block: int = 5) -> None:
        """Advance until `height()` equals *height* (no-op if already there)."""
        if height < self._sequence:
            raise ValueError(f"target height {height} is behind current {self._sequence}")
        blocks = height - self._sequence
        self.advance(blocks=blocks, seconds=blocks * seconds_per_block)

    def pin_hash(self, h: bytes) -> None:
        """Force `chain_hash()` to *h* until the next advance."""
        self._pinned = ensure_len(h, DIGEST_SIZE, name="chain hash")

    def __repr__(self) -> str:
        return f"SimulatedLedger(height={self._sequence}, timestamp={self._timestamp})"


__all__ = ["LedgerOracle", "SimulatedLedger"]
