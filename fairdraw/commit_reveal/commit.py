# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Commitment construction for participant-supplied seeds.

Definition
----------
C = SHA-256( seed || nonce_le32 || committer )

- `seed` is the secret the participant will disclose later. Only C is
  published at commit time.
- `nonce` lets a participant commit several times with the same seed.
- `committer` is the participant identifier (UTF-8), so a commitment cannot
  be replayed under another identity.

This module provides `commit(...)`, which returns the hash together with a
fresh `Commitment` record, plus the raw `build_commitment(...)` and a hex
convenience wrapper.
"""

from __future__ import annotations

from typing import Tuple

from ..types.core import Commitment, participant_bytes
from ..utils.bytes import BytesLike, as_bytes
from ..utils.hash import sha256_concat
from ..utils.ints import require_uint, u32_le

_MAX_SEED_LEN = 1 << 16  # guardrail, not a protocol limit


def _validate(seed: BytesLike, nonce: int, committer: str) -> bytes:
    seed_b = as_bytes(seed)
    if len(seed_b) > _MAX_SEED_LEN:
        raise ValueError(f"seed too large (>{_MAX_SEED_LEN} bytes)")
    require_uint("nonce", nonce, 32)
    if not isinstance(committer, str) or not committer:
        raise TypeError("committer must be a non-empty str")
    return seed_b


def build_commitment(seed: BytesLike, nonce: int, committer: str) -> bytes:
    """
    Compute C = SHA-256(seed || nonce_le32 || committer).

    Returns
    -------
    bytes
        32-byte digest.
    """
    seed_b = _validate(seed, nonce, committer)
    return sha256_concat(seed_b, u32_le(nonce), participant_bytes(committer))


def build_commitment_hex(seed: BytesLike, nonce: int, committer: str) -> str:
    """0x-hex convenience wrapper for `build_commitment`."""
    return "0x" + build_commitment(seed, nonce, committer).hex()


def commit(
    seed: BytesLike,
    nonce: int,
    committer: str,
    committed_at: int = 0,
) -> Tuple[bytes, Commitment]:
    """Return the commitment hash and an unrevealed `Commitment` record."""
    h = build_commitment(seed, nonce, committer)
    return h, Commitment(committer=committer, commitment_hash=h, committed_at=committed_at)


__all__ = [
    "build_commitment",
    "build_commitment_hex",
    "commit",
]
