from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.bytes import to_hex


class RoundPhase(str, Enum):
    """Lifecycle phases of an allocation round."""

    OPEN = "open"              # entries accepted
    FINALIZING = "finalizing"  # randomness generated, allocation pending
    FINALIZED = "finalized"    # results immutable


_NEXT_PHASE = {
    RoundPhase.OPEN: RoundPhase.FINALIZING,
    RoundPhase.FINALIZING: RoundPhase.FINALIZED,
}


def next_phase(phase: RoundPhase) -> Optional[RoundPhase]:
    """The only phase reachable from *phase*, or None for the terminal phase."""
    return _NEXT_PHASE.get(phase)


@dataclass(frozen=True, slots=True)
class RoundSnapshot:
    """
    Read-only summary of a round, for instrumentation and the JSON surface.

    Fields:
      tier              — round identifier
      phase             — current lifecycle phase
      entries           — number of admitted entries
      allocated         — number of results (0 until finalized)
      randomness_hash   — digest of the finalization batch, once generated
      seed              — finalization seed, once generated
      finalized_height  — oracle height at which the batch was generated
    """

    tier: str
    phase: RoundPhase
    entries: int
    allocated: int
    randomness_hash: Optional[bytes] = None
    seed: Optional[bytes] = None
    finalized_height: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier,
            "phase": self.phase.value,
            "entries": self.entries,
            "allocated": self.allocated,
            "randomness_hash": None if self.randomness_hash is None else to_hex(self.randomness_hash),
            "seed": None if self.seed is None else to_hex(self.seed),
            "finalized_height": self.finalized_height,
        }


__all__ = ["RoundPhase", "RoundSnapshot", "next_phase"]
