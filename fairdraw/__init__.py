"""
Fairdraw: verifiable ticket allocation.

This package provides the fairness/randomness core used to hand out a fixed
number of tickets among competing participants:
- entropy derivation from an injected ledger oracle,
- commit→reveal for participant-supplied seeds,
- VRF-style randomness with recomputable proofs,
- anti-sniping rate limits and the allocation strategies.

Only light, stable exports are surfaced here to avoid import cycles.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
