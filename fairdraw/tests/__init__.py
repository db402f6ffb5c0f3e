"""
fairdraw.tests
--------------
Test package for the allocation core.

Notes:
- Every test drives a `SimulatedLedger`; no wall clock or network is used.
- Expected digests are recomputed with hashlib inside the tests rather than
  pinned as literals.
"""

from __future__ import annotations

__all__: tuple[str, ...] = ()
