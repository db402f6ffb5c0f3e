"""
Fairdraw errors.

A small, typed hierarchy of exceptions for *precondition violations* and
structural problems. Callers can catch the base `FairdrawError` to handle
everything raised by this package, or the concrete subclasses for finer
control.

Verification failures (bad reveal, bad proof, stale entropy) and rate-limit
rejections are NOT exceptions: those are normal outcomes and are returned as
booleans by the functions that evaluate them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class FairdrawError(Exception):
    """Base class for all fairdraw errors."""
    pass


@dataclass(eq=False)
class EmptyPool(FairdrawError):
    """
    Raised when a selection index is requested over a pool of size zero.

    Attributes:
        randomness: The randomness value the caller tried to reduce.
    """
    randomness: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"EmptyPool: cannot select with randomness={self.randomness} from an empty pool"


@dataclass(eq=False)
class PhaseError(FairdrawError):
    """
    Raised when a round operation is invoked in the wrong lifecycle phase
    (register after finalization began, allocate before finalize, reveal
    outside the reveal window, ...).
    """
    tier: str
    operation: str
    phase: str
    reason: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        base = f"PhaseError: tier={self.tier} op={self.operation} phase={self.phase}"
        return f"{base} reason={self.reason}" if self.reason else base


@dataclass(eq=False)
class PrematureFinalization(FairdrawError):
    """
    Raised when finalization is requested before the ledger reached the
    height required by the round (finalization ledger + randomization delay,
    or the minimum lock period after the last entry).
    """
    tier: str
    height: int
    required_height: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return (
            f"PrematureFinalization: tier={self.tier} height={self.height} "
            f"< required={self.required_height}"
        )


@dataclass(eq=False)
class InsufficientRandomness(FairdrawError):
    """Raised when a round demands a full batch and fewer values were supplied."""
    tier: str
    supplied: int
    required: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return (
            f"InsufficientRandomness: tier={self.tier} supplied={self.supplied} "
            f"required={self.required}"
        )


@dataclass(eq=False)
class StaleEntropy(FairdrawError):
    """
    Raised when a round is finalized on the same ledger hash it snapshotted
    when it was opened, i.e. the hash was already public at registration time.
    """
    tier: str
    height: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"StaleEntropy: tier={self.tier} ledger hash at height={self.height} is unchanged since the round opened"


@dataclass(eq=False)
class InvalidRoundConfig(FairdrawError):
    """Raised when a round is opened with an inconsistent configuration."""
    tier: str
    reason: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"InvalidRoundConfig: tier={self.tier} reason={self.reason}"


@dataclass(eq=False)
class UnknownRound(FairdrawError):
    tier: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"UnknownRound: tier={self.tier}"


@dataclass(eq=False)
class DuplicateRound(FairdrawError):
    tier: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"DuplicateRound: tier={self.tier} already has an open round"


@dataclass(eq=False)
class UnknownCommitment(FairdrawError):
    committer: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"UnknownCommitment: no commitment recorded for {self.committer}"


@dataclass(eq=False)
class DuplicateCommitment(FairdrawError):
    committer: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"DuplicateCommitment: {self.committer} already committed"


@dataclass(eq=False)
class AlreadyRevealed(FairdrawError):
    committer: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"AlreadyRevealed: commitment of {self.committer} was already revealed"


@dataclass(eq=False)
class AllocationLimitExceeded(FairdrawError):
    """
    Raised when recording an allocation would push a whitelist entry past its
    non-zero allocation limit.
    """
    address: str
    allocated: int
    allocation_limit: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return (
            f"AllocationLimitExceeded: address={self.address} allocated={self.allocated} "
            f"limit={self.allocation_limit}"
        )


@dataclass(eq=False)
class UnsupportedStrategy(FairdrawError):
    strategy: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"UnsupportedStrategy: no handler registered for {self.strategy}"


__all__ = [
    "FairdrawError",
    "EmptyPool",
    "PhaseError",
    "PrematureFinalization",
    "InsufficientRandomness",
    "StaleEntropy",
    "InvalidRoundConfig",
    "UnknownRound",
    "DuplicateRound",
    "UnknownCommitment",
    "DuplicateCommitment",
    "AlreadyRevealed",
    "AllocationLimitExceeded",
    "UnsupportedStrategy",
]
