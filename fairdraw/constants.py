"""
Fairdraw constants.

This module centralizes:
- digest width and integer bounds used by the data model,
- the tag that binds VRF proof blobs to their context,
- default anti-sniping parameters for a freshly opened round.

Operational knobs may be overridden through `fairdraw.config.FairdrawConfig`,
but code that needs stable compile-time defaults imports from here.
"""

from __future__ import annotations

# -----------------------------
# Widths and integer bounds
# -----------------------------
DIGEST_SIZE: int = 32  # SHA-256 output, bytes
VALUE_SIZE: int = 16   # bytes of a VRF output folded into a u128 value

U32_MAX: int = (1 << 32) - 1
U64_MAX: int = (1 << 64) - 1
U128_MAX: int = (1 << 128) - 1

# -----------------------------
# Proof binding
# -----------------------------
# Keep stable; changing it invalidates every proof produced so far.
VRF_PROOF_TAG: bytes = b"fairdraw.vrf.proof.v1"

# -----------------------------
# Anti-sniping defaults
# -----------------------------
DEFAULT_MINIMUM_LOCK_PERIOD: int = 10          # ledgers between last entry and finalization
DEFAULT_MAX_ENTRIES_PER_ADDRESS: int = 5
DEFAULT_RATE_LIMIT_WINDOW_S: int = 3600
DEFAULT_RANDOMIZATION_DELAY_LEDGERS: int = 3

# -----------------------------
# Time-weighted strategy
# -----------------------------
MAX_TIME_WEIGHT: int = 100
MIN_TIME_WEIGHT: int = 1

# -----------------------------
# Fairness score
# -----------------------------
FAIRNESS_MAX: int = 100
FAIRNESS_FALLBACK: int = 50

__all__ = [
    "DIGEST_SIZE",
    "VALUE_SIZE",
    "U32_MAX",
    "U64_MAX",
    "U128_MAX",
    "VRF_PROOF_TAG",
    "DEFAULT_MINIMUM_LOCK_PERIOD",
    "DEFAULT_MAX_ENTRIES_PER_ADDRESS",
    "DEFAULT_RATE_LIMIT_WINDOW_S",
    "DEFAULT_RANDOMIZATION_DELAY_LEDGERS",
    "MAX_TIME_WEIGHT",
    "MIN_TIME_WEIGHT",
    "FAIRNESS_MAX",
    "FAIRNESS_FALLBACK",
]
