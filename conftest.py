import pytest
from prometheus_client import CollectorRegistry

from fairdraw.adapters.ledger import SimulatedLedger
from fairdraw.metrics import Metrics


@pytest.fixture
def ledger() -> SimulatedLedger:
    """Deterministic ledger at height 100, t=1_700_000_000."""
    return SimulatedLedger(timestamp=1_700_000_000, sequence=100)


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> Metrics:
    """Metrics bound to a fresh registry so counters start at zero per test."""
    return Metrics(registry=registry)
