# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Allocation round lifecycle.

A round moves through three phases, in order and exactly once each:

    OPEN ──finalize()──▶ FINALIZING ──allocate()──▶ FINALIZED

OPEN
    `register()` admits entries (subject to the anti-sniping window) and may
    record a commitment; `reveal()` opens commitments while the ledger is
    inside the reveal window.

finalize()
    Allowed once the ledger reached both
      finalization_ledger + randomization_delay_ledgers, and
      (height of the last entry) + minimum_lock_period,
    and only once the ledger hash differs from the one snapshotted at open
    (StaleEntropy otherwise).
    Derives the round seed from the ledger entropy mixed with every revealed
    participant seed (commit order), generates the randomness batch at the
    current height and records its digest.

allocate()
    Runs the configured strategy over the entries using the batch values and
    freezes the results. In HYBRID_WHITELIST_LOTTERY the lottery pool is the
    round entries minus every participant that won a whitelist slot.

Afterwards anyone holding the round seed and finalization height can check
each proof (`verify_randomness`) and the whole batch (`audit_batch`).

`RoundRegistry` keeps one round per tier; rounds share no mutable state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..adapters.ledger import LedgerOracle
from ..commit_reveal.book import CommitmentBook
from ..constants import U32_MAX
from ..entropy.manager import EntropyManager
from ..errors import (
    AlreadyRevealed,
    DuplicateRound,
    InsufficientRandomness,
    InvalidRoundConfig,
    PhaseError,
    PrematureFinalization,
    StaleEntropy,
    UnknownCommitment,
    UnknownRound,
)
from ..metrics import METRICS, Metrics
from ..types.core import (
    AllocationResult,
    AllocationStrategy,
    AntiSnipingConfig,
    Commitment,
    EntropySource,
    LotteryEntry,
    RandomnessOutput,
    Reveal,
    VRFProof,
    WhitelistEntry,
)
from ..types.state import RoundPhase, RoundSnapshot, next_phase
from ..utils.bytes import consteq
from ..utils.ints import require_uint, sat_add
from ..vrf.engine import VRFEngine, hash_randomness_batch, verify_vrf_proof
from .anti_sniping import DEFAULT_ANTI_SNIPING, check_anti_sniping
from .engine import allocate, allocate_whitelist, is_randomized
from .fairness import compute_fairness_score, eligible_pool_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RoundConfig:
    """
    Parameters of one allocation round, fixed when the round is opened.

    Fields:
      tier                 — round identifier (unique within a registry)
      strategy             — winner selection strategy
      total_allocations    — winner slots to fill; also the default batch size (u32)
      finalization_ledger  — earliest height finalization may be considered (u32)
      reveal_start_ledger  — first height at which reveals are accepted (u32)
      reveal_end_ledger    — first height at which reveals are refused (u32)
      anti_sniping         — rate limit and timing knobs
      entropy_source       — ledger signals mixed into the round seed
      require_full_batch   — refuse to allocate with fewer values than slots
    """

    tier: str
    strategy: AllocationStrategy
    total_allocations: int
    finalization_ledger: int
    reveal_start_ledger: int = 0
    reveal_end_ledger: int = U32_MAX
    anti_sniping: AntiSnipingConfig = DEFAULT_ANTI_SNIPING
    entropy_source: EntropySource = EntropySource.MULTI_SOURCE
    require_full_batch: bool = False

    def __post_init__(self) -> None:  # type: ignore[override]
        if not isinstance(self.tier, str) or not self.tier:
            raise TypeError("tier must be a non-empty str")
        object.__setattr__(self, "strategy", AllocationStrategy(self.strategy))
        object.__setattr__(self, "entropy_source", EntropySource(self.entropy_source))
        require_uint("total_allocations", self.total_allocations, 32)
        require_uint("finalization_ledger", self.finalization_ledger, 32)
        require_uint("reveal_start_ledger", self.reveal_start_ledger, 32)
        require_uint("reveal_end_ledger", self.reveal_end_ledger, 32)
        if not isinstance(self.anti_sniping, AntiSnipingConfig):
            raise TypeError("anti_sniping must be an AntiSnipingConfig")
        if self.reveal_start_ledger >= self.reveal_end_ledger:
            raise InvalidRoundConfig(self.tier, "reveal_start_ledger must be < reveal_end_ledger")

    def check_openable(self, height: int) -> None:
        """Raise InvalidRoundConfig if a round cannot be opened at *height*."""
        if self.finalization_ledger < height:
            raise InvalidRoundConfig(
                self.tier,
                f"finalization_ledger {self.finalization_ledger} is behind current height {height}",
            )

    def to_dict(self) -> Dict[str, object]:
        return {
            "tier": self.tier,
            "strategy": self.strategy.value,
            "total_allocations": self.total_allocations,
            "finalization_ledger": self.finalization_ledger,
            "reveal_start_ledger": self.reveal_start_ledger,
            "reveal_end_ledger": self.reveal_end_ledger,
            "anti_sniping": self.anti_sniping.to_dict(),
            "entropy_source": self.entropy_source.value,
            "require_full_batch": self.require_full_batch,
        }


class AllocationRound:
    """One tier's allocation round, driven against a ledger oracle."""

    def __init__(
        self,
        oracle: LedgerOracle,
        config: RoundConfig,
        whitelist: Iterable[WhitelistEntry] = (),
        *,
        metrics: Optional[Metrics] = None,
    ) -> None:
        config.check_openable(oracle.height())
        self.config = config
        self._oracle = oracle
        self._metrics = metrics if metrics is not None else METRICS
        self._entropy = EntropyManager(oracle, default_source=config.entropy_source)
        self._entropy_state = self._entropy.initialize()
        self._vrf = VRFEngine(oracle)
        self._book = CommitmentBook()
        self._whitelist: List[WhitelistEntry] = list(whitelist)
        self._entries: List[LotteryEntry] = []
        self._phase = RoundPhase.OPEN

        self._batch: Tuple[RandomnessOutput, ...] = ()
        self._seed: Optional[bytes] = None
        self._randomness_hash: Optional[bytes] = None
        self._finalized_height: Optional[int] = None
        self._results: Tuple[AllocationResult, ...] = ()

        logger.info(
            "round opened tier=%s strategy=%s slots=%d finalization_ledger=%d",
            config.tier,
            config.strategy.value,
            config.total_allocations,
            config.finalization_ledger,
        )

    # ---- Read-only views ----

    @property
    def tier(self) -> str:
        return self.config.tier

    @property
    def phase(self) -> RoundPhase:
        return self._phase

    @property
    def commitments(self) -> CommitmentBook:
        return self._book

    @property
    def seed(self) -> Optional[bytes]:
        return self._seed

    @property
    def randomness_hash(self) -> Optional[bytes]:
        return self._randomness_hash

    @property
    def finalized_height(self) -> Optional[int]:
        return self._finalized_height

    def entries(self) -> Tuple[LotteryEntry, ...]:
        return tuple(self._entries)

    def whitelist(self) -> Tuple[WhitelistEntry, ...]:
        return tuple(self._whitelist)

    def randomness(self) -> Tuple[RandomnessOutput, ...]:
        return self._batch

    def winners(self) -> Tuple[AllocationResult, ...]:
        """Results of the round; empty until FINALIZED."""
        return self._results if self._phase is RoundPhase.FINALIZED else ()

    def fairness_score(self) -> int:
        if self._phase is not RoundPhase.FINALIZED:
            return 0
        pool = eligible_pool_size(self.config.strategy, len(self._entries), len(self._whitelist))
        return compute_fairness_score(self._results, pool)

    def snapshot(self) -> RoundSnapshot:
        return RoundSnapshot(
            tier=self.tier,
            phase=self._phase,
            entries=len(self._entries),
            allocated=len(self.winners()),
            randomness_hash=self._randomness_hash,
            seed=self._seed,
            finalized_height=self._finalized_height,
        )

    # ---- OPEN ----

    def register(self, participant: str, commitment: Optional[Commitment] = None) -> Optional[LotteryEntry]:
        """
        Admit *participant*, or return None if the anti-sniping window is full.

        A supplied commitment must belong to *participant*; its hash is stored
        on the entry and the commitment is recorded for a later reveal.
        """
        self._require_phase(RoundPhase.OPEN, "register")
        now = self._oracle.now()
        try:
            entry = LotteryEntry(
                participant=participant,
                entry_time=now,
                nonce=self._oracle.height(),
                commitment_hash=None if commitment is None else commitment.commitment_hash,
            )
            if commitment is not None and commitment.committer != participant:
                raise ValueError("commitment was produced by a different participant")
        except (TypeError, ValueError):
            self._metrics.record_registration("invalid")
            raise

        if not check_anti_sniping(participant, self.config.anti_sniping, self._entries, now):
            logger.warning("registration rate limited tier=%s participant=%s", self.tier, participant)
            self._metrics.record_registration("rate_limited")
            return None

        if commitment is not None:
            self._book.record(commitment)
        self._entries.append(entry)
        self._metrics.record_registration("accepted")
        logger.debug("registered tier=%s participant=%s index=%d", self.tier, participant, len(self._entries) - 1)
        return entry

    def reveal(self, participant: str, reveal: Reveal) -> bool:
        """Open *participant*'s commitment; False if it does not match."""
        height = self._oracle.height()
        if self._phase is not RoundPhase.OPEN or not (
            self.config.reveal_start_ledger <= height < self.config.reveal_end_ledger
        ):
            self._metrics.record_reveal("out_of_window")
            raise PhaseError(
                self.tier,
                "reveal",
                self._phase.value,
                reason=(
                    f"height {height} outside reveal window "
                    f"[{self.config.reveal_start_ledger}, {self.config.reveal_end_ledger})"
                ),
            )
        try:
            ok = self._book.reveal(participant, reveal)
        except (UnknownCommitment, AlreadyRevealed):
            self._metrics.record_reveal("invalid")
            raise
        self._metrics.record_reveal("accepted" if ok else "bad_reveal")
        return ok

    # ---- OPEN → FINALIZING ----

    def required_finalization_height(self) -> int:
        """Lowest height at which `finalize()` is accepted."""
        anti = self.config.anti_sniping
        required = sat_add(self.config.finalization_ledger, anti.randomization_delay_ledgers, 32)
        if self._entries:
            required = max(required, sat_add(self._entries[-1].nonce, anti.minimum_lock_period, 32))
        return required

    def finalize(self, batch_size: Optional[int] = None) -> List[RandomnessOutput]:
        """Derive the round seed and generate the randomness batch."""
        self._require_phase(RoundPhase.OPEN, "finalize")
        height = self._oracle.height()
        required = self.required_finalization_height()
        if height < required:
            raise PrematureFinalization(self.tier, height, required)
        if not EntropyManager.verify_freshness(self._entropy_state, self._oracle.chain_hash()):
            raise StaleEntropy(self.tier, height)

        size = self.config.total_allocations if batch_size is None else require_uint("batch_size", batch_size, 32)
        seed, self._entropy_state = self._entropy.next_seed(
            self._entropy_state, extra=self._book.revealed_seeds()
        )
        batch = self._vrf.generate_batch_randomness(size, seed)

        self._seed = seed
        self._batch = tuple(batch)
        self._randomness_hash = hash_randomness_batch(batch)
        self._finalized_height = height
        self._advance()
        logger.info(
            "round finalizing tier=%s height=%d batch=%d revealed=%d",
            self.tier,
            height,
            size,
            len(self._book.revealed_seeds()),
        )
        return list(batch)

    # ---- FINALIZING → FINALIZED ----

    def allocate(self, randomness_values: Optional[Sequence[int]] = None) -> List[AllocationResult]:
        """
        Run the strategy and freeze the results.

        HYBRID_WHITELIST_LOTTERY draws its lottery slots from the entries of
        participants that did not win a whitelist slot.
        """
        self._require_phase(RoundPhase.FINALIZING, "allocate")
        strategy = self.config.strategy
        total = self.config.total_allocations
        values = [o.value for o in self._batch] if randomness_values is None else list(randomness_values)
        if self.config.require_full_batch and is_randomized(strategy) and len(values) < total:
            raise InsufficientRandomness(self.tier, len(values), total)

        results = allocate(
            strategy,
            quantity=total,
            entries=self._entries,
            randomness_values=values,
            whitelist=self._whitelist,
            now=self._oracle.now(),
        )
        if strategy in (AllocationStrategy.WHITELIST, AllocationStrategy.HYBRID_WHITELIST_LOTTERY):
            self._record_whitelist_allocations(len(allocate_whitelist(self._whitelist, total)))

        self._results = tuple(results)
        self._advance()
        score = self.fairness_score()
        self._metrics.record_allocation(strategy.value, winners=len(results), fairness=score)
        logger.info(
            "round finalized tier=%s strategy=%s winners=%d fairness=%d",
            self.tier,
            strategy.value,
            len(results),
            score,
        )
        return list(results)

    # ---- Audit ----

    def verify_randomness(self, proof: VRFProof) -> bool:
        """Check *proof* against this round's seed and finalization height."""
        if self._seed is None or self._finalized_height is None:
            ok = False
        else:
            ok = verify_vrf_proof(proof, self._seed, self._finalized_height)
        self._metrics.record_proof(ok)
        if not ok:
            logger.warning("randomness proof rejected tier=%s", self.tier)
        return ok

    def audit_batch(self, outputs: Sequence[RandomnessOutput]) -> bool:
        """True iff *outputs* digest to the recorded batch hash."""
        if self._randomness_hash is None:
            return False
        return consteq(hash_randomness_batch(outputs), self._randomness_hash)

    # ---- Internals ----

    def _require_phase(self, expected: RoundPhase, operation: str) -> None:
        if self._phase is not expected:
            raise PhaseError(self.tier, operation, self._phase.value, reason=f"requires {expected.value}")

    def _advance(self) -> None:
        # callers hold _require_phase, so the terminal phase is never advanced
        nxt = next_phase(self._phase)
        assert nxt is not None
        logger.debug("round phase tier=%s %s -> %s", self.tier, self._phase.value, nxt.value)
        self._phase = nxt

    def _record_whitelist_allocations(self, count: int) -> None:
        # Same order and capacity rule as allocate_whitelist.
        for i, wl in enumerate(self._whitelist):
            if count == 0:
                break
            if wl.has_capacity:
                self._whitelist[i] = wl.record_allocation()
                count -= 1


class RoundRegistry:
    """Tier → AllocationRound, one round per tier."""

    def __init__(self, oracle: LedgerOracle, *, metrics: Optional[Metrics] = None) -> None:
        self._oracle = oracle
        self._metrics = metrics
        self._rounds: Dict[str, AllocationRound] = {}

    def open_round(self, config: RoundConfig, whitelist: Iterable[WhitelistEntry] = ()) -> AllocationRound:
        if config.tier in self._rounds:
            raise DuplicateRound(config.tier)
        rnd = AllocationRound(self._oracle, config, whitelist, metrics=self._metrics)
        self._rounds[config.tier] = rnd
        return rnd

    def get(self, tier: str) -> AllocationRound:
        try:
            return self._rounds[tier]
        except KeyError:
            raise UnknownRound(tier) from None

    def tiers(self) -> List[str]:
        return list(self._rounds)

    def __contains__(self, tier: object) -> bool:
        return tier in self._rounds

    def __len__(self) -> int:
        return len(self._rounds)


__all__ = ["RoundConfig", "AllocationRound", "RoundRegistry"]
