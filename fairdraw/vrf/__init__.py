"""
fairdraw.vrf
------------

Verifiable randomness: single and batch generation, proof verification and
reduction of a random value onto a bounded pool. See `engine.py`.
"""

from __future__ import annotations

from .engine import VRFEngine, compute_selection_index, hash_randomness_batch, verify_vrf_proof

__all__ = [
    "VRFEngine",
    "compute_selection_index",
    "hash_randomness_batch",
    "verify_vrf_proof",
]
