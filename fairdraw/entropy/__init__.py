"""
fairdraw.entropy
----------------

Entropy derivation from the ledger oracle, source mixing and freshness
tracking. See `manager.py`.
"""

from __future__ import annotations

from .manager import EntropyManager

__all__ = ["EntropyManager"]
