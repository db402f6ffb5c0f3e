"""
fairdraw.api
------------

Dict-in/dict-out method shims (pydantic-validated) used by the CLI and by
embedders that expose the core over their own transport.
"""

from __future__ import annotations

from .methods import METHODS, dispatch

__all__ = ["METHODS", "dispatch"]
