"""
fairdraw.utils.hash
===================

SHA-256 helpers used by every derivation in the package.

All derivations hash a plain concatenation of fixed-width fields, so the
encoding of each part is decided by the caller: byte strings are taken
verbatim and integers are encoded with :func:`fairdraw.utils.ints.u32_le` /
:func:`fairdraw.utils.ints.u64_le` before being passed in.

Key pieces
----------
- :func:`sha256`: one-shot digest of a single bytes-like value.
- :func:`sha256_concat`: digest of ``parts[0] || parts[1] || ...``.
- :func:`digest_to_u128`: fold a 32-byte digest into the u128 value space.
"""

from __future__ import annotations

import hashlib

from ..constants import VALUE_SIZE
from .bytes import BytesLike, as_bytes

__all__ = [
    "sha256",
    "sha256_concat",
    "digest_to_u128",
]


def sha256(data: BytesLike) -> bytes:
    """Return SHA-256(data)."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError("sha256 expects a bytes-like object")
    return hashlib.sha256(bytes(data)).digest()


def sha256_concat(*parts: BytesLike) -> bytes:
    """SHA-256 over the concatenation of *parts* (streamed, no copy)."""
    h = hashlib.sha256()
    for p in parts:
        h.update(as_bytes(p))
    return h.digest()


def digest_to_u128(digest: BytesLike) -> int:
    """Interpret the first 16 bytes of *digest* as a big-endian u128."""
    d = as_bytes(digest)
    if len(d) < VALUE_SIZE:
        raise ValueError(f"digest must be at least {VALUE_SIZE} bytes")
    return int.from_bytes(d[:VALUE_SIZE], "big", signed=False)

