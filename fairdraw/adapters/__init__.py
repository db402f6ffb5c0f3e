"""
fairdraw.adapters
-----------------

Boundary with the host environment. The core never reads a clock or a chain
on its own; it is handed a `LedgerOracle` (see `ledger.py`) by the embedding
application, a test harness, or the CLI.
"""

from __future__ import annotations

from .ledger import LedgerOracle, SimulatedLedger

__all__ = ["LedgerOracle", "SimulatedLedger"]
