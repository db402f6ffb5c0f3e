"""
Prometheus metrics for allocation rounds.

Counters and histograms for the round pipeline:
  • registrations_total        — registration attempts per outcome
  • reveals_total              — reveal attempts per outcome
  • proof_verifications_total  — randomness proof checks per outcome
  • allocations_total          — completed allocations per strategy
  • winners_per_round          — number of winner slots produced per round
  • fairness_score             — fairness score of each completed round

Design notes
------------
- Label cardinality is bounded: `outcome` has a small fixed vocabulary and
  `strategy` is the AllocationStrategy enum. No per-tier or per-participant
  labels.
- Unknown outcomes are folded into "invalid" rather than creating new series.

Usage
-----
    from fairdraw.metrics import METRICS

    METRICS.record_registration("rate_limited")
    METRICS.record_allocation("lottery", winners=10, fairness=100)

Tests and embedders that need isolation construct their own `Metrics` with a
fresh `CollectorRegistry`.
"""

from __future__ import annotations

from typing import Iterable

from prometheus_client import REGISTRY, Counter, Histogram


# --------- Vocabularies (kept small for bounded cardinality) ---------

_REGISTRATION_OUTCOMES = (
    "accepted",      # entry admitted to the round
    "rate_limited",  # anti-sniping window already full for the participant
    "invalid",       # malformed / failed validation
)

_REVEAL_OUTCOMES = (
    "accepted",      # reveal matched the stored commitment
    "bad_reveal",    # hash mismatch vs commitment
    "out_of_window", # outside [reveal_start, reveal_end)
    "invalid",       # unknown committer, repeated reveal, malformed
)

# --------- Default histogram buckets ---------

_WINNERS_BUCKETS = (0.0, 1.0, 2.0, 5.0, 10.0, 25.0, 50.0, 100.0, 250.0, 1000.0)

_FAIRNESS_BUCKETS = (0.0, 10.0, 25.0, 50.0, 75.0, 90.0, 100.0)


class Metrics:
    """
    Container for all fairdraw Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem (inserted between namespace and name).
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "animica",
        subsystem: str = "fairdraw",
        registry=REGISTRY,
        winners_buckets: Iterable[float] = _WINNERS_BUCKETS,
        fairness_buckets: Iterable[float] = _FAIRNESS_BUCKETS,
    ) -> None:
        # Counters
        self.registrations_total = Counter(
            "registrations_total",
            "Number of round registration attempts, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.reveals_total = Counter(
            "reveals_total",
            "Number of reveal attempts processed, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.proof_verifications_total = Counter(
            "proof_verifications_total",
            "Number of randomness proof verifications, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.allocations_total = Counter(
            "allocations_total",
            "Number of completed allocation rounds, labeled by strategy.",
            labelnames=("strategy",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

        # Histograms
        self.winners_per_round = Histogram(
            "winners_per_round",
            "Winner slots produced by a completed allocation round.",
            buckets=tuple(winners_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.fairness_score = Histogram(
            "fairness_score",
            "Fairness score (0..100) of completed allocation rounds.",
            buckets=tuple(fairness_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    # ----- Recording helpers -------------------------------------------------

    def record_registration(self, outcome: str) -> None:
        """Valid outcomes: one of _REGISTRATION_OUTCOMES."""
        if outcome not in _REGISTRATION_OUTCOMES:
            outcome = "invalid"
        self.registrations_total.labels(outcome=outcome).inc()

    def record_reveal(self, outcome: str) -> None:
        """Valid outcomes: one of _REVEAL_OUTCOMES."""
        if outcome not in _REVEAL_OUTCOMES:
            outcome = "invalid"
        self.reveals_total.labels(outcome=outcome).inc()

    def record_proof(self, ok: bool) -> None:
        self.proof_verifications_total.labels(outcome="valid" if ok else "invalid").inc()

    def record_allocation(self, strategy: str, *, winners: int, fairness: int) -> None:
        """Count one completed round and observe its size and fairness."""
        self.allocations_total.labels(strategy=str(getattr(strategy, "value", strategy))).inc()
        self.winners_per_round.observe(float(winners))
        self.fairness_score.observe(float(fairness))


# Singleton used by most components
METRICS = Metrics()

__all__ = [
    "Metrics",
    "METRICS",
    "_REGISTRATION_OUTCOMES",
    "_REVEAL_OUTCOMES",
]
