"""
fairdraw.utils.bytes
====================

Hex/bytes conversion plus strict width guards.

- :func:`to_hex` / :func:`from_hex` with strict validation (0x prefix optional).
- :func:`as_bytes` to normalize bytes-like values.
- :func:`ensure_len` for fixed-width fields (digests, hashes).
- :func:`fit32` pads or truncates to the digest width, used when mixing
  caller-supplied entropy of arbitrary length.
- :func:`consteq` timing-safe equality.
"""

from __future__ import annotations

import hmac
import re
from typing import Union

from ..constants import DIGEST_SIZE

BytesLike = Union[bytes, bytearray, memoryview]

__all__ = [
    "BytesLike",
    "to_hex",
    "from_hex",
    "is_hex",
    "as_bytes",
    "ensure_len",
    "fit32",
    "consteq",
]

_HEX_RE = re.compile(r"^(?:0[xX])?[0-9a-fA-F]*$")


def is_hex(s: str) -> bool:
    """True if *s* is even-length hex with an optional ``0x`` prefix."""
    if not isinstance(s, str) or not _HEX_RE.match(s):
        return False
    body = s[2:] if s.startswith(("0x", "0X")) else s
    return len(body) % 2 == 0


def from_hex(s: str) -> bytes:
    """
    Decode a hex string (optional ``0x``) to bytes.

    No whitespace, only hex digits, even nibble count.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a str")
    if not is_hex(s):
        raise ValueError(f"invalid hex string: {s!r}")
    body = s[2:] if s.startswith(("0x", "0X")) else s
    return bytes.fromhex(body)


def to_hex(b: BytesLike, *, prefix: str = "0x") -> str:
    """Lowercase hex, ``0x``-prefixed by default."""
    return (prefix or "") + as_bytes(b).hex()


def as_bytes(x: BytesLike) -> bytes:
    """Normalize bytes-like to immutable :class:`bytes`."""
    if isinstance(x, bytes):
        return x
    if isinstance(x, (bytearray, memoryview)):
        return bytes(x)
    raise TypeError(f"expected bytes-like, got {type(x)!r}")


def ensure_len(b: BytesLike, expected: int, *, name: str = "value") -> bytes:
    """Return *b* as bytes if ``len(b) == expected``; raise ValueError otherwise."""
    bb = as_bytes(b)
    if len(bb) != expected:
        raise ValueError(f"{name} must be {expected} bytes, got {len(bb)}")
    return bb


def fit32(b: BytesLike) -> bytes:
    """Right-pad with zeros or truncate to exactly DIGEST_SIZE bytes."""
    bb = as_bytes(b)
    if len(bb) >= DIGEST_SIZE:
        return bb[:DIGEST_SIZE]
    return bb + b"\x00" * (DIGEST_SIZE - len(bb))


def consteq(a: BytesLike, b: BytesLike) -> bool:
    """Timing-safe equality for two bytes-like values."""
    return hmac.compare_digest(as_bytes(a), as_bytes(b))
