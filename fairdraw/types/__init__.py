"""
fairdraw.types
--------------

Typed records shared across the package. Commonly used symbols are
re-exported here:

    from fairdraw.types import LotteryEntry, VRFProof, AllocationStrategy
"""

from __future__ import annotations

from .core import (
    AllocationResult,
    AllocationStrategy,
    AntiSnipingConfig,
    Commitment,
    EntropySource,
    EntropyState,
    LotteryEntry,
    ParticipantId,
    RandomnessOutput,
    Reveal,
    VRFProof,
    WhitelistEntry,
    participant_bytes,
)
from .state import RoundPhase, RoundSnapshot

__all__ = [
    "AllocationResult",
    "AllocationStrategy",
    "AntiSnipingConfig",
    "Commitment",
    "EntropySource",
    "EntropyState",
    "LotteryEntry",
    "ParticipantId",
    "RandomnessOutput",
    "Reveal",
    "VRFProof",
    "WhitelistEntry",
    "participant_bytes",
    "RoundPhase",
    "RoundSnapshot",
]
