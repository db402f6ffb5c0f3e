import json

import pytest

from fairdraw.allocation.anti_sniping import DEFAULT_ANTI_SNIPING
from fairdraw.config import DEFAULT, AntiSnipingParams, FairdrawConfig
from fairdraw.types.core import AllocationStrategy, EntropySource

ENV_KEYS = (
    "DEFAULT_STRATEGY",
    "REQUIRE_FULL_BATCH",
    "ENTROPY_SOURCE",
    "LOG_LEVEL",
    "MIN_LOCK_PERIOD",
    "MAX_ENTRIES_PER_ADDRESS",
    "RATE_LIMIT_WINDOW_S",
    "RANDOMIZATION_DELAY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv("FAIRDRAW_" + key, raising=False)


def test_defaults_match_round_defaults():
    DEFAULT.validate()
    assert DEFAULT.strategy is AllocationStrategy.LOTTERY
    assert DEFAULT.source is EntropySource.MULTI_SOURCE
    assert DEFAULT.require_full_batch is False
    assert DEFAULT.anti_sniping_config() == DEFAULT_ANTI_SNIPING


def test_from_env(monkeypatch):
    monkeypatch.setenv("FAIRDRAW_DEFAULT_STRATEGY", "time_weighted")
    monkeypatch.setenv("FAIRDRAW_REQUIRE_FULL_BATCH", "yes")
    monkeypatch.setenv("FAIRDRAW_MIN_LOCK_PERIOD", "4")
    monkeypatch.setenv("FAIRDRAW_RATE_LIMIT_WINDOW_S", "60")
    cfg = FairdrawConfig.from_env()
    assert cfg.strategy is AllocationStrategy.TIME_WEIGHTED
    assert cfg.require_full_batch is True
    assert cfg.anti_sniping.minimum_lock_period == 4
    assert cfg.anti_sniping.rate_limit_window_s == 60
    assert cfg.anti_sniping.max_entries_per_address == 5


def test_from_env_custom_prefix(monkeypatch):
    monkeypatch.setenv("FD_ENTROPY_SOURCE", "ledger_hash")
    assert FairdrawConfig.from_env(prefix="FD_").source is EntropySource.LEDGER_HASH


@pytest.mark.parametrize(
    "key,value",
    [
        ("MAX_ENTRIES_PER_ADDRESS", "many"),
        ("DEFAULT_STRATEGY", "dutch_auction"),
        ("ENTROPY_SOURCE", "dice"),
        ("LOG_LEVEL", "LOUD"),
        ("MAX_ENTRIES_PER_ADDRESS", "0"),
        ("MIN_LOCK_PERIOD", "-1"),
    ],
)
def test_from_env_rejects_invalid_values(monkeypatch, key, value):
    monkeypatch.setenv("FAIRDRAW_" + key, value)
    with pytest.raises(ValueError):
        FairdrawConfig.from_env()


def test_from_file_json(tmp_path):
    path = tmp_path / "fairdraw.json"
    path.write_text(
        json.dumps(
            {
                "default_strategy": "hybrid_whitelist_lottery",
                "anti_sniping": {"max_entries_per_address": 1, "randomization_delay_ledgers": 0},
            }
        )
    )
    cfg = FairdrawConfig.from_file(str(path))
    assert cfg.strategy is AllocationStrategy.HYBRID_WHITELIST_LOTTERY
    assert cfg.anti_sniping == AntiSnipingParams(max_entries_per_address=1, randomization_delay_ledgers=0)


def test_from_file_rejects_unknown_keys(tmp_path):
    path = tmp_path / "fairdraw.json"
    path.write_text(json.dumps({"anti_sniping": {"lock": 3}}))
    with pytest.raises(ValueError, match="anti_sniping.lock"):
        FairdrawConfig.from_file(str(path))

    path.write_text(json.dumps({"max_entropy_reuse": 4}))
    with pytest.raises(ValueError):
        FairdrawConfig.from_file(str(path))


def test_from_file_rejects_non_mapping(tmp_path):
    path = tmp_path / "fairdraw.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        FairdrawConfig.from_file(str(path))


def test_from_file_yaml(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "fairdraw.yaml"
    path.write_text("default_strategy: fcfs\nanti_sniping:\n  minimum_lock_period: 2\n")
    cfg = FairdrawConfig.from_file(str(path))
    assert cfg.strategy is AllocationStrategy.FCFS
    assert cfg.anti_sniping.minimum_lock_period == 2


def test_round_config_carries_defaults():
    cfg = FairdrawConfig(require_full_batch=True, entropy_source="ledger_hash_with_timestamp")
    rc = cfg.round_config("gold", total_allocations=10, finalization_ledger=200)
    assert rc.strategy is AllocationStrategy.LOTTERY
    assert rc.entropy_source is EntropySource.LEDGER_HASH_WITH_TIMESTAMP
    assert rc.require_full_batch is True
    assert rc.anti_sniping == DEFAULT_ANTI_SNIPING

    rc = cfg.round_config("silver", total_allocations=1, finalization_ledger=200, strategy=AllocationStrategy.FCFS)
    assert rc.to_dict()["strategy"] == "fcfs"


def test_to_json_round_trips_through_from_file(tmp_path):
    cfg = FairdrawConfig(default_strategy="whitelist", log_level="DEBUG")
    path = tmp_path / "dump.json"
    path.write_text(cfg.to_json())
    assert FairdrawConfig.from_file(str(path)) == cfg


def test_version_strings():
    from fairdraw import __version__
    from fairdraw.version import Describe

    assert isinstance(__version__, str) and __version__
    assert Describe("1.2.3", 0, "abc1234", False).pep440() == "1.2.3"
    assert Describe("1.2.3", 4, "abc1234", True).pep440() == "1.2.3.post4+gabc1234.dirty"
