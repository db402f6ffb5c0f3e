# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Verify that a reveal matches a prior commitment.

Given a stored commitment C and a reveal (seed, nonce) from `committer`:

    C' = SHA-256( seed || nonce_le32 || committer )

and the reveal is valid iff C' == C (constant-time comparison).

Verification is a pure boolean: a mismatch is a user error the participant
can retry with the correct data, and is never raised. Structural problems
(no commitment on record, double reveal) belong to the caller's bookkeeping,
see `book.py`.
"""

from __future__ import annotations

import hmac
from typing import Union

from ..constants import DIGEST_SIZE
from ..types.core import Reveal
from ..utils.bytes import BytesLike, as_bytes, from_hex
from .commit import build_commitment


def normalize_commitment(commitment: Union[BytesLike, str]) -> bytes:
    """
    Normalize a commitment into 32 raw bytes.

    Accepts bytes-like values or hex strings with/without 0x; raises
    ValueError if the result is not exactly 32 bytes.
    """
    c = from_hex(commitment) if isinstance(commitment, str) else as_bytes(commitment)
    if len(c) != DIGEST_SIZE:
        raise ValueError("commitment must be exactly 32 bytes")
    return c


def verify_reveal(stored_hash: Union[BytesLike, str], reveal: Reveal, committer: str) -> bool:
    """
    True iff *reveal* opens *stored_hash* for *committer*.

    Malformed commitments (wrong width, invalid hex) also yield False.
    """
    try:
        expected = normalize_commitment(stored_hash)
        recomputed = build_commitment(reveal.seed, reveal.nonce, committer)
    except (TypeError, ValueError):
        return False
    return hmac.compare_digest(expected, recomputed)


__all__ = [
    "normalize_commitment",
    "verify_reveal",
]
