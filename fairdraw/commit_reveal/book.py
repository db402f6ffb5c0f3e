# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
In-memory commitment registry for a single round.

Enforces the commit→reveal lifecycle on top of the pure primitives:

- one commitment per committer (`DuplicateCommitment` otherwise),
- a reveal for an unknown committer raises `UnknownCommitment`,
- a mismatching reveal returns False and leaves the record unrevealed,
- a second reveal of an already revealed commitment raises `AlreadyRevealed`.

Revealed seeds are kept in commit order so that folding them into the
round's entropy is deterministic.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from ..errors import AlreadyRevealed, DuplicateCommitment, UnknownCommitment
from ..types.core import Commitment, Reveal
from .verify import verify_reveal

logger = logging.getLogger(__name__)


class CommitmentBook:
    """Committer → Commitment mapping with one-shot reveals."""

    __slots__ = ("_records", "_seeds")

    def __init__(self) -> None:
        self._records: Dict[str, Commitment] = {}
        self._seeds: Dict[str, bytes] = {}

    def record(self, commitment: Commitment) -> None:
        if commitment.committer in self._records:
            raise DuplicateCommitment(commitment.committer)
        self._records[commitment.committer] = commitment

    def get(self, committer: str) -> Optional[Commitment]:
        return self._records.get(committer)

    def reveal(self, committer: str, reveal: Reveal) -> bool:
        """Check *reveal* against the stored commitment and flip it on success."""
        rec = self._records.get(committer)
        if rec is None:
            raise UnknownCommitment(committer)
        if rec.revealed:
            raise AlreadyRevealed(committer)
        if not verify_reveal(rec.commitment_hash, reveal, committer):
            logger.warning("reveal mismatch for committer=%s", committer)
            return False
        self._records[committer] = rec.mark_revealed()
        self._seeds[committer] = bytes(reveal.seed)
        return True

    def revealed_seeds(self) -> List[bytes]:
        """Seeds of revealed commitments, in commit order."""
        return [self._seeds[c] for c in self._records if c in self._seeds]

    def pending(self) -> List[str]:
        """Committers that have not revealed yet."""
        return [c for c, rec in self._records.items() if not rec.revealed]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Commitment]:
        return iter(list(self._records.values()))


__all__ = ["CommitmentBook"]
