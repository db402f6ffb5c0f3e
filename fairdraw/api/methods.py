"""
fairdraw.api.methods
--------------------

JSON method shims over the allocation core.

These are intentionally thin: they validate/normalize a JSON-shaped mapping
with a pydantic model, call the pure core functions and return plain dicts
suitable for `json.dumps`. They hold no state; randomness methods take the
ledger height they should be evaluated at as a parameter and run against a
`SimulatedLedger` pinned to that height (outputs depend only on the seed,
the nonce and the height).

Exposed methods:

- fd.commit(seed, nonce, committer)
- fd.verifyReveal(commitment, seed, nonce, committer)
- fd.vrf(seed, nonce, ledger_sequence)
- fd.generateBatch(seed, batch_size, ledger_sequence)
- fd.verifyProof(proof, input, expected_ledger)
- fd.allocate(strategy, quantity, entries?, randomness_values?, whitelist?, now?)
- fd.fairness(results, total_entries)

All hex-typed inputs/outputs are 0x-prefixed. u128 randomness values are
emitted as decimal strings and accepted as ints, decimal strings or 0x-hex.
Invalid parameters raise `pydantic.ValidationError`.
"""

from __future__ import annotations

from typing import Annotated, Any, Callable, Dict, List, Mapping, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field

from ..adapters.ledger import SimulatedLedger
from ..allocation.engine import allocate
from ..allocation.fairness import compute_fairness_score, eligible_pool_size
from ..commit_reveal.commit import commit
from ..commit_reveal.verify import verify_reveal
from ..constants import DIGEST_SIZE, U32_MAX, U64_MAX, U128_MAX
from ..types.core import (
    AllocationResult,
    AllocationStrategy,
    LotteryEntry,
    Reveal,
    VRFProof,
    WhitelistEntry,
)
from ..utils.bytes import from_hex, to_hex
from ..utils.hash import digest_to_u128
from ..vrf.engine import VRFEngine, hash_randomness_batch, verify_vrf_proof

# Upper bound on generated batch size accepted over this surface.
MAX_BATCH_SIZE = 10_000


# ---------- helpers ----------

def _check_hex(v: str) -> str:
    from_hex(v)
    return v


def _check_hex32(v: str) -> str:
    if len(from_hex(v)) != DIGEST_SIZE:
        raise ValueError(f"expected {DIGEST_SIZE} bytes of 0x-hex")
    return v


def _to_u128(v: Any) -> int:
    if isinstance(v, bool):
        raise ValueError("randomness value must be an integer")
    if isinstance(v, str):
        s = v.strip()
        v = int(s, 16) if s.startswith(("0x", "0X")) else int(s, 10)
    if not isinstance(v, int) or not 0 <= v <= U128_MAX:
        raise ValueError("randomness value must fit in u128")
    return v


HexStr = Annotated[str, AfterValidator(_check_hex)]
Hex32Str = Annotated[str, AfterValidator(_check_hex32)]
U128 = Annotated[int, BeforeValidator(_to_u128)]


# ---------- request models ----------

class CommitParams(BaseModel):
    seed: HexStr = Field(..., description="0x-hex secret seed.")
    nonce: int = Field(..., ge=0, le=U32_MAX, description="u32 nonce.")
    committer: str = Field(..., min_length=1, description="Participant identifier.")


class VerifyRevealParams(CommitParams):
    commitment: Hex32Str = Field(..., description="0x-hex commitment hash (32 bytes).")


class VRFParams(BaseModel):
    seed: HexStr = Field(..., description="0x-hex seed.")
    nonce: int = Field(default=0, ge=0, le=U32_MAX)
    ledger_sequence: int = Field(default=0, ge=0, le=U32_MAX, description="Height to derive at.")


class BatchParams(BaseModel):
    seed: HexStr = Field(..., description="0x-hex seed.")
    batch_size: int = Field(..., ge=0, le=MAX_BATCH_SIZE)
    ledger_sequence: int = Field(default=0, ge=0, le=U32_MAX, description="Height to derive at.")


class ProofModel(BaseModel):
    output: Hex32Str
    proof: HexStr
    input: HexStr
    ledger_sequence: int = Field(..., ge=0, le=U32_MAX)
    nonce: int = Field(..., ge=0, le=U32_MAX)

    def to_proof(self) -> VRFProof:
        return VRFProof(
            output=from_hex(self.output),
            proof=from_hex(self.proof),
            input=from_hex(self.input),
            ledger_sequence=self.ledger_sequence,
            nonce=self.nonce,
        )


class VerifyProofParams(BaseModel):
    proof: ProofModel
    input: HexStr = Field(..., description="0x-hex seed the proof is claimed to derive from.")
    expected_ledger: int = Field(..., ge=0, le=U32_MAX)


class EntryModel(BaseModel):
    participant: str = Field(..., min_length=1)
    entry_time: int = Field(default=0, ge=0, le=U64_MAX)
    nonce: int = Field(default=0, ge=0, le=U32_MAX)


class WhitelistModel(BaseModel):
    address: str = Field(..., min_length=1)
    weight: int = Field(default=1, ge=0, le=U32_MAX)
    allocation_limit: int = Field(default=0, ge=0, le=U32_MAX)
    allocated: int = Field(default=0, ge=0, le=U32_MAX)


class AllocateParams(BaseModel):
    strategy: AllocationStrategy
    quantity: int = Field(..., ge=0, le=U32_MAX)
    entries: List[EntryModel] = Field(default_factory=list)
    randomness_values: List[U128] = Field(default_factory=list)
    whitelist: List[WhitelistModel] = Field(default_factory=list)
    now: int = Field(default=0, ge=0, le=U64_MAX)


class ResultModel(BaseModel):
    winner: str = Field(..., min_length=1)
    allocation_index: int = Field(..., ge=0, le=U32_MAX)
    randomness_value: U128 = 0
    weight_applied: int = Field(default=1, ge=0, le=U32_MAX)


class FairnessParams(BaseModel):
    results: List[ResultModel] = Field(default_factory=list)
    total_entries: int = Field(..., ge=0)


# ---------- method handlers ----------

def fd_commit(args: Mapping[str, Any]) -> Dict[str, Any]:
    """Build the commitment for (seed, nonce, committer)."""
    p = CommitParams(**args)
    h, _ = commit(from_hex(p.seed), p.nonce, p.committer)
    return {"committer": p.committer, "nonce": p.nonce, "commitment": to_hex(h)}


def fd_verify_reveal(args: Mapping[str, Any]) -> Dict[str, Any]:
    p = VerifyRevealParams(**args)
    ok = verify_reveal(p.commitment, Reveal(seed=from_hex(p.seed), nonce=p.nonce), p.committer)
    return {"committer": p.committer, "ok": ok}


def fd_vrf(args: Mapping[str, Any]) -> Dict[str, Any]:
    """Single output + proof at `ledger_sequence`."""
    p = VRFParams(**args)
    engine = VRFEngine(SimulatedLedger(sequence=p.ledger_sequence))
    out, proof = engine.generate_vrf_randomness(from_hex(p.seed), p.nonce)
    return {"value": str(digest_to_u128(out)), "proof": proof.to_dict()}


def fd_generate_batch(args: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Batch of outputs from one seed. Returns:
      - ledger_sequence
      - batch: [{value, proof}, ...] in slot order
      - batch_hash (0x-hex digest of the outputs, in order)
    """
    p = BatchParams(**args)
    engine = VRFEngine(SimulatedLedger(sequence=p.ledger_sequence))
    batch = engine.generate_batch_randomness(p.batch_size, from_hex(p.seed))
    return {
        "ledger_sequence": p.ledger_sequence,
        "batch": [item.to_dict() for item in batch],
        "batch_hash": to_hex(hash_randomness_batch(batch)),
    }


def fd_verify_proof(args: Mapping[str, Any]) -> Dict[str, Any]:
    p = VerifyProofParams(**args)
    ok = verify_vrf_proof(p.proof.to_proof(), from_hex(p.input), p.expected_ledger)
    return {"valid": ok}


def fd_allocate(args: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Run one strategy over the supplied pool. Returns:
      - strategy
      - results: [{winner, allocation_index, randomness_value, weight_applied}, ...]
      - fairness (0..100)
    """
    p = AllocateParams(**args)
    entries = [LotteryEntry(participant=e.participant, entry_time=e.entry_time, nonce=e.nonce) for e in p.entries]
    whitelist = [
        WhitelistEntry(
            address=w.address,
            weight=w.weight,
            allocation_limit=w.allocation_limit,
            allocated=w.allocated,
        )
        for w in p.whitelist
    ]
    results = allocate(
        p.strategy,
        quantity=p.quantity,
        entries=entries,
        randomness_values=p.randomness_values,
        whitelist=whitelist,
        now=p.now,
    )
    total = eligible_pool_size(p.strategy, len(entries), len(whitelist))
    return {
        "strategy": p.strategy.value,
        "results": [r.to_dict() for r in results],
        "fairness": compute_fairness_score(results, total),
    }


def fd_fairness(args: Mapping[str, Any]) -> Dict[str, Any]:
    p = FairnessParams(**args)
    results = [
        AllocationResult(
            winner=r.winner,
            allocation_index=r.allocation_index,
            randomness_value=r.randomness_value,
            weight_applied=r.weight_applied,
        )
        for r in p.results
    ]
    return {"score": compute_fairness_score(results, p.total_entries)}


# Public registry mapping method names to callables.
# Each callable has signature: (args_dict) -> result
METHODS: Dict[str, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
    "fd.commit": fd_commit,
    "fd.verifyReveal": fd_verify_reveal,
    "fd.vrf": fd_vrf,
    "fd.generateBatch": fd_generate_batch,
    "fd.verifyProof": fd_verify_proof,
    "fd.allocate": fd_allocate,
    "fd.fairness": fd_fairness,
}


def dispatch(method: str, args: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Call the registered handler for *method*; KeyError for unknown names."""
    try:
        handler = METHODS[method]
    except KeyError:
        raise KeyError(f"unknown method: {method}") from None
    return handler(args or {})


__all__ = [
    "CommitParams",
    "VerifyRevealParams",
    "VRFParams",
    "BatchParams",
    "ProofModel",
    "VerifyProofParams",
    "EntryModel",
    "WhitelistModel",
    "AllocateParams",
    "ResultModel",
    "FairnessParams",
    "fd_commit",
    "fd_verify_reveal",
    "fd_vrf",
    "fd_generate_batch",
    "fd_verify_proof",
    "fd_allocate",
    "fd_fairness",
    "METHODS",
    "dispatch",
]
