from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, NewType, Optional

from ..constants import DIGEST_SIZE
from ..errors import AllocationLimitExceeded, AlreadyRevealed
from ..utils.bytes import to_hex
from ..utils.ints import require_uint, sat_add

"""
Core typed records for the allocation core.

Every record is a frozen dataclass that validates its own field widths, so a
value that made it into a record is known to be well-formed. Records that
change over their lifetime (Commitment, WhitelistEntry) expose a method that
returns the updated copy instead of mutating in place.

Types provided:
  • ParticipantId        — opaque participant identifier (str)
  • EntropySource        — which oracle signals are mixed into entropy
  • EntropyState         — last snapshot + monotonically increasing counter
  • Commitment / Reveal  — commit→reveal records
  • VRFProof             — output bound to (input, ledger sequence, nonce)
  • RandomnessOutput     — one element of a finalization batch
  • LotteryEntry         — a registration in a round
  • WhitelistEntry       — a privileged address with an allocation cap
  • AntiSnipingConfig    — rate-limit and timing knobs of a round
  • AllocationResult     — one winner slot
  • AllocationStrategy   — the five selection strategies
"""

ParticipantId = NewType("ParticipantId", str)


def participant_bytes(p: str) -> bytes:
    """Canonical identity bytes of a participant, as used in hashing."""
    return p.encode("utf-8")


def _require_participant(name: str, p: Any) -> None:
    if not isinstance(p, str) or not p:
        raise TypeError(f"{name} must be a non-empty str")


def _require_digest(name: str, b: Any) -> None:
    if not isinstance(b, (bytes, bytearray)):
        raise TypeError(f"{name} must be bytes")
    if len(b) != DIGEST_SIZE:
        raise ValueError(f"{name} must be exactly {DIGEST_SIZE} bytes (got {len(b)})")


# ---- Enums -------------------------------------------------------------------


class EntropySource(str, Enum):
    """Which oracle signals feed a derivation."""

    LEDGER_HASH = "ledger_hash"
    LEDGER_HASH_WITH_TIMESTAMP = "ledger_hash_with_timestamp"
    MULTI_SOURCE = "multi_source"


class AllocationStrategy(str, Enum):
    """Winner selection strategies."""

    FCFS = "fcfs"
    LOTTERY = "lottery"
    WHITELIST = "whitelist"
    HYBRID_WHITELIST_LOTTERY = "hybrid_whitelist_lottery"
    TIME_WEIGHTED = "time_weighted"


# ---- Entropy -----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EntropyState:
    """
    Snapshot of the last derivation.

    Fields:
      last_hash       — oracle hash seen at the last update (32 bytes)
      last_timestamp  — oracle timestamp at the last update (u64)
      counter         — number of updates since initialization (u32, saturating)
      ready           — whether the state was initialized
    """

    last_hash: bytes
    last_timestamp: int
    counter: int
    ready: bool

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_digest("last_hash", self.last_hash)
        require_uint("last_timestamp", self.last_timestamp, 64)
        require_uint("counter", self.counter, 32)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_hash": to_hex(self.last_hash),
            "last_timestamp": self.last_timestamp,
            "counter": self.counter,
            "ready": self.ready,
        }


# ---- Commit / reveal ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Commitment:
    """
    A participant's commitment to a secret seed.

    Fields:
      committer        — participant that produced the commitment
      commitment_hash  — SHA-256(seed || nonce_le32 || committer)
      committed_at     — oracle timestamp of the commit (u64)
      revealed         — flips to True once, on a matching reveal
    """

    committer: str
    commitment_hash: bytes
    committed_at: int = 0
    revealed: bool = False

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_participant("committer", self.committer)
        _require_digest("commitment_hash", self.commitment_hash)
        require_uint("committed_at", self.committed_at, 64)

    def mark_revealed(self) -> "Commitment":
        if self.revealed:
            raise AlreadyRevealed(self.committer)
        return replace(self, revealed=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "committer": self.committer,
            "commitment_hash": to_hex(self.commitment_hash),
            "committed_at": self.committed_at,
            "revealed": self.revealed,
        }


@dataclass(frozen=True, slots=True)
class Reveal:
    """Opening of a commitment: the secret seed and the nonce used at commit time."""

    seed: bytes
    nonce: int
    revealed_at: int = 0

    def __post_init__(self) -> None:  # type: ignore[override]
        if not isinstance(self.seed, (bytes, bytearray)):
            raise TypeError("seed must be bytes")
        require_uint("nonce", self.nonce, 32)
        require_uint("revealed_at", self.revealed_at, 64)


# ---- VRF ---------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VRFProof:
    """
    Verifiable randomness output.

    Fields:
      output           — SHA-256(input || nonce_le32 || ledger_sequence_le32)
      proof            — opaque blob binding output to input and context
      input            — the seed the output was derived from
      ledger_sequence  — oracle height at derivation time (u32)
      nonce            — per-output nonce (batch index for batches, u32)
    """

    output: bytes
    proof: bytes
    input: bytes
    ledger_sequence: int
    nonce: int

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_digest("output", self.output)
        if not isinstance(self.proof, (bytes, bytearray)):
            raise TypeError("proof must be bytes")
        if not isinstance(self.input, (bytes, bytearray)):
            raise TypeError("input must be bytes")
        require_uint("ledger_sequence", self.ledger_sequence, 32)
        require_uint("nonce", self.nonce, 32)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output": to_hex(self.output),
            "proof": to_hex(self.proof),
            "input": to_hex(self.input),
            "ledger_sequence": self.ledger_sequence,
            "nonce": self.nonce,
        }


@dataclass(frozen=True, slots=True)
class RandomnessOutput:
    """One element of a finalization batch; its position is its allocation slot."""

    value: int
    proof: VRFProof

    def __post_init__(self) -> None:  # type: ignore[override]
        require_uint("value", self.value, 128)
        if not isinstance(self.proof, VRFProof):
            raise TypeError("proof must be a VRFProof")

    def to_dict(self) -> Dict[str, Any]:
        return {"value": str(self.value), "proof": self.proof.to_dict()}


# ---- Entries -----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LotteryEntry:
    """A registration. Immutable once created."""

    participant: str
    entry_time: int
    nonce: int = 0
    commitment_hash: Optional[bytes] = None

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_participant("participant", self.participant)
        require_uint("entry_time", self.entry_time, 64)
        require_uint("nonce", self.nonce, 32)
        if self.commitment_hash is not None:
            _require_digest("commitment_hash", self.commitment_hash)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participant": self.participant,
            "entry_time": self.entry_time,
            "nonce": self.nonce,
            "commitment_hash": None if self.commitment_hash is None else to_hex(self.commitment_hash),
        }


@dataclass(frozen=True, slots=True)
class WhitelistEntry:
    """
    A whitelisted address.

    Fields:
      address           — participant receiving priority allocation
      weight            — reported on results for transparency (u32)
      allocation_limit  — cap on `allocated`; 0 means unlimited (u32)
      allocated         — allocations recorded so far (u32, non-decreasing)
    """

    address: str
    weight: int = 1
    allocation_limit: int = 0
    allocated: int = 0

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_participant("address", self.address)
        require_uint("weight", self.weight, 32)
        require_uint("allocation_limit", self.allocation_limit, 32)
        require_uint("allocated", self.allocated, 32)
        if self.allocation_limit and self.allocated > self.allocation_limit:
            raise ValueError("allocated must not exceed a non-zero allocation_limit")

    @property
    def has_capacity(self) -> bool:
        return self.allocation_limit == 0 or self.allocated < self.allocation_limit

    def record_allocation(self) -> "WhitelistEntry":
        """Return a copy with one more allocation recorded."""
        if not self.has_capacity:
            raise AllocationLimitExceeded(self.address, self.allocated, self.allocation_limit)
        return replace(self, allocated=sat_add(self.allocated, 1, 32))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "weight": self.weight,
            "allocation_limit": self.allocation_limit,
            "allocated": self.allocated,
        }


@dataclass(frozen=True, slots=True)
class AntiSnipingConfig:
    """
    Rate-limit and timing knobs, fixed once per round.

    Fields:
      minimum_lock_period         — ledgers required between the last entry and finalization (u32)
      max_entries_per_address     — entries allowed per participant inside the window (u32)
      rate_limit_window           — look-back window in seconds (u64)
      randomization_delay_ledgers — ledgers added after the finalization ledger (u32)
    """

    minimum_lock_period: int
    max_entries_per_address: int
    rate_limit_window: int
    randomization_delay_ledgers: int

    def __post_init__(self) -> None:  # type: ignore[override]
        require_uint("minimum_lock_period", self.minimum_lock_period, 32)
        require_uint("max_entries_per_address", self.max_entries_per_address, 32)
        require_uint("rate_limit_window", self.rate_limit_window, 64)
        require_uint("randomization_delay_ledgers", self.randomization_delay_ledgers, 32)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minimum_lock_period": self.minimum_lock_period,
            "max_entries_per_address": self.max_entries_per_address,
            "rate_limit_window": self.rate_limit_window,
            "randomization_delay_ledgers": self.randomization_delay_ledgers,
        }


# ---- Results -----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AllocationResult:
    """
    One winner slot of an allocation round.

    Fields:
      winner            — selected participant
      allocation_index  — dense 0-based slot number within the round (u32)
      randomness_value  — raw randomness consumed by the draw, 0 if non-random (u128)
      weight_applied    — weight of the selected entry (u32)
    """

    winner: str
    allocation_index: int
    randomness_value: int = 0
    weight_applied: int = 1

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_participant("winner", self.winner)
        require_uint("allocation_index", self.allocation_index, 32)
        require_uint("randomness_value", self.randomness_value, 128)
        require_uint("weight_applied", self.weight_applied, 32)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winner": self.winner,
            "allocation_index": self.allocation_index,
            "randomness_value": str(self.randomness_value),
            "weight_applied": self.weight_applied,
        }


__all__ = [
    "ParticipantId",
    "participant_bytes",
    "EntropySource",
    "AllocationStrategy",
    "EntropyState",
    "Commitment",
    "Reveal",
    "VRFProof",
    "RandomnessOutput",
    "LotteryEntry",
    "WhitelistEntry",
    "AntiSnipingConfig",
    "AllocationResult",
]
