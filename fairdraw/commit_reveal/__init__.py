# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
fairdraw.commit_reveal
======================

Commit→reveal for participant-supplied seeds.

Typical flow:
    1) `commit(seed, nonce, committer)` → publish the hash with the entry.
    2) During the round's reveal window, disclose (seed, nonce).
    3) `verify_reveal(hash, reveal, committer)` / `CommitmentBook.reveal(...)`.

Revealed seeds may be mixed into the round's finalization entropy.
"""

from __future__ import annotations

from .book import CommitmentBook
from .commit import build_commitment, build_commitment_hex, commit
from .verify import normalize_commitment, verify_reveal

__all__ = [
    "CommitmentBook",
    "build_commitment",
    "build_commitment_hex",
    "commit",
    "normalize_commitment",
    "verify_reveal",
]
