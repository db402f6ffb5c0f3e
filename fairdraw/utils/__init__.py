"""
fairdraw.utils
--------------

Small shared helpers: byte/hex handling, SHA-256 wrappers with fixed-width
little-endian integer encodings, and saturating integer arithmetic.

This package file deliberately avoids eager imports.
"""

__all__: list[str] = []
