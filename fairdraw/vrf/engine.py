# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
VRF-style randomness bound to the ledger context.

Derivation
----------
For a seed s, a nonce n and the oracle height h at derivation time:

    output = SHA-256( s || n_le32 || h_le32 )
    proof  = SHA-256( VRF_PROOF_TAG || output || s || h_le32 || n_le32 )

The proof blob stands in for a signature over the input: it binds the output
to its input and context so any observer holding (s, h, n) can recompute and
check a claimed value against the public entropy that existed at height h,
without the requester's cooperation.

Batches
-------
`generate_batch_randomness(k, s)` derives k outputs from one seed, using the
batch index as the nonce. Order is significant: element i feeds allocation
slot i. `hash_randomness_batch` digests the outputs in order and is stored as
a tamper-evident summary for later audits.

Values
------
The u128 value of an output is its first 16 bytes read big-endian.
"""

from __future__ import annotations

import hmac
import logging
from typing import List, Sequence, Tuple

from ..adapters.ledger import LedgerOracle
from ..constants import VRF_PROOF_TAG
from ..errors import EmptyPool
from ..types.core import RandomnessOutput, VRFProof
from ..utils.bytes import BytesLike, as_bytes
from ..utils.hash import digest_to_u128, sha256_concat
from ..utils.ints import require_uint, u32_le

logger = logging.getLogger(__name__)


def derive_output(seed: BytesLike, nonce: int, ledger_sequence: int) -> bytes:
    """The 32-byte output for (seed, nonce) at *ledger_sequence*."""
    return sha256_concat(as_bytes(seed), u32_le(nonce), u32_le(ledger_sequence))


def derive_proof(output: bytes, seed: BytesLike, nonce: int, ledger_sequence: int) -> bytes:
    """The proof blob binding *output* to its input and context."""
    return sha256_concat(VRF_PROOF_TAG, output, as_bytes(seed), u32_le(ledger_sequence), u32_le(nonce))


def verify_vrf_proof(proof: VRFProof, original_input: BytesLike, expected_ledger: int) -> bool:
    """
    True iff *proof* was derived from *original_input* at *expected_ledger*.

    Checks, in order: the input matches, the ledger sequence matches, and
    recomputing from (input, proof.nonce, ledger) reproduces both the output
    and the proof blob. Any mismatch, or malformed arguments, yields False.
    """
    try:
        inp = as_bytes(original_input)
        if bytes(proof.input) != inp:
            return False
        if proof.ledger_sequence != expected_ledger:
            return False
        out = derive_output(inp, proof.nonce, expected_ledger)
        blob = derive_proof(out, inp, proof.nonce, expected_ledger)
    except (TypeError, ValueError, AttributeError):
        return False
    return hmac.compare_digest(out, bytes(proof.output)) and hmac.compare_digest(blob, bytes(proof.proof))


def hash_randomness_batch(batch: Sequence[RandomnessOutput]) -> bytes:
    """SHA-256 over the concatenated outputs, in batch order."""
    return sha256_concat(*(item.proof.output for item in batch))


def compute_selection_index(randomness: int, pool_size: int) -> int:
    """
    Reduce *randomness* onto ``[0, pool_size)``.

    Raises:
        EmptyPool: if *pool_size* is 0 (callers must not select from an empty pool).
    """
    if pool_size <= 0:
        raise EmptyPool(randomness)
    if pool_size == 1:
        return 0
    return randomness % pool_size


class VRFEngine:
    """
    Generates randomness at the oracle's current height.

    Verification does not need an oracle; the module-level
    `verify_vrf_proof` is exposed here as a static method for convenience.
    """

    __slots__ = ("_oracle",)

    verify_vrf_proof = staticmethod(verify_vrf_proof)
    hash_randomness_batch = staticmethod(hash_randomness_batch)
    compute_selection_index = staticmethod(compute_selection_index)
    derive_output = staticmethod(derive_output)

    def __init__(self, oracle: LedgerOracle) -> None:
        self._oracle = oracle

    def generate_vrf_randomness(self, seed: BytesLike, nonce: int) -> Tuple[bytes, VRFProof]:
        """Return (output, proof) for (seed, nonce) at the current height."""
        seed_b = as_bytes(seed)
        require_uint("nonce", nonce, 32)
        seq = require_uint("ledger_sequence", self._oracle.height(), 32)
        out = derive_output(seed_b, nonce, seq)
        proof = VRFProof(
            output=out,
            proof=derive_proof(out, seed_b, nonce, seq),
            input=seed_b,
            ledger_sequence=seq,
            nonce=nonce,
        )
        return out, proof

    def generate_batch_randomness(self, batch_size: int, seed: BytesLike) -> List[RandomnessOutput]:
        """`batch_size` outputs from one seed; element i uses nonce i."""
        require_uint("batch_size", batch_size, 32)
        outputs: List[RandomnessOutput] = []
        for index in range(batch_size):
            out, proof = self.generate_vrf_randomness(seed, index)
            outputs.append(RandomnessOutput(value=digest_to_u128(out), proof=proof))
        logger.debug("generated randomness batch size=%d height=%d", batch_size, self._oracle.height())
        return outputs


__all__ = [
    "VRFEngine",
    "derive_output",
    "derive_proof",
    "verify_vrf_proof",
    "hash_randomness_batch",
    "compute_selection_index",
]
