"""
Fairdraw configuration.

Typed configuration objects and helpers for:
- Anti-sniping defaults applied to new rounds (lock period, rate limit, delay)
- Entropy source folded into round seeds
- Round behaviour with short randomness batches
- Logging level for the CLI

Provides:
- Dataclass-based configs with validation
- Loading from environment variables (prefix configurable)
- Loading from a JSON or YAML* file (*if PyYAML is installed, `fairdraw[yaml]`)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from .allocation.round import RoundConfig
from .constants import (
    DEFAULT_MAX_ENTRIES_PER_ADDRESS,
    DEFAULT_MINIMUM_LOCK_PERIOD,
    DEFAULT_RANDOMIZATION_DELAY_LEDGERS,
    DEFAULT_RATE_LIMIT_WINDOW_S,
    U32_MAX,
    U64_MAX,
)
from .types.core import AllocationStrategy, AntiSnipingConfig, EntropySource

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

# -------------------------
# Sub-configs
# -------------------------


@dataclass
class AntiSnipingParams:
    """
    Default anti-sniping knobs for rounds opened without explicit values.

    minimum_lock_period: ledgers between the last entry and finalization
    max_entries_per_address: entries per participant inside the window
    rate_limit_window_s: look-back window for the entry count (seconds)
    randomization_delay_ledgers: ledgers added after the finalization ledger
    """

    minimum_lock_period: int = DEFAULT_MINIMUM_LOCK_PERIOD
    max_entries_per_address: int = DEFAULT_MAX_ENTRIES_PER_ADDRESS
    rate_limit_window_s: int = DEFAULT_RATE_LIMIT_WINDOW_S
    randomization_delay_ledgers: int = DEFAULT_RANDOMIZATION_DELAY_LEDGERS

    def validate(self) -> None:
        for name in ("minimum_lock_period", "max_entries_per_address", "randomization_delay_ledgers"):
            v = getattr(self, name)
            if not 0 <= v <= U32_MAX:
                raise ValueError(f"{name} must be within [0, {U32_MAX}]")
        if not 0 <= self.rate_limit_window_s <= U64_MAX:
            raise ValueError("rate_limit_window_s must be >= 0")
        if self.max_entries_per_address == 0:
            raise ValueError("max_entries_per_address must be > 0 (0 would refuse every entry)")

    def to_anti_sniping(self) -> AntiSnipingConfig:
        return AntiSnipingConfig(
            minimum_lock_period=self.minimum_lock_period,
            max_entries_per_address=self.max_entries_per_address,
            rate_limit_window=self.rate_limit_window_s,
            randomization_delay_ledgers=self.randomization_delay_ledgers,
        )


# -------------------------
# Top-level config
# -------------------------


@dataclass
class FairdrawConfig:
    """
    Rounds:
      - default_strategy: strategy used when a request does not name one
      - require_full_batch: refuse to allocate with fewer randomness values
        than winner slots (default: truncate)

    Entropy:
      - entropy_source: ledger signals folded into each round seed

    Misc:
      - log_level: stdlib logging level name used by the CLI

    Anti-sniping: nested sub-config
    """

    default_strategy: str = AllocationStrategy.LOTTERY.value
    require_full_batch: bool = False
    entropy_source: str = EntropySource.MULTI_SOURCE.value
    log_level: str = "INFO"

    anti_sniping: AntiSnipingParams = field(default_factory=AntiSnipingParams)

    def validate(self) -> None:
        try:
            AllocationStrategy(self.default_strategy)
        except ValueError as e:
            raise ValueError(f"Unsupported default_strategy: {self.default_strategy}") from e
        try:
            EntropySource(self.entropy_source)
        except ValueError as e:
            raise ValueError(f"Unsupported entropy_source: {self.entropy_source}") from e
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        self.anti_sniping.validate()

    # -------------------------
    # Typed views
    # -------------------------

    @property
    def strategy(self) -> AllocationStrategy:
        return AllocationStrategy(self.default_strategy)

    @property
    def source(self) -> EntropySource:
        return EntropySource(self.entropy_source)

    def anti_sniping_config(self) -> AntiSnipingConfig:
        return self.anti_sniping.to_anti_sniping()

    def round_config(
        self,
        tier: str,
        *,
        total_allocations: int,
        finalization_ledger: int,
        strategy: Optional[AllocationStrategy] = None,
        reveal_start_ledger: int = 0,
        reveal_end_ledger: int = U32_MAX,
    ) -> RoundConfig:
        """A `RoundConfig` carrying this configuration's defaults."""
        return RoundConfig(
            tier=tier,
            strategy=self.strategy if strategy is None else strategy,
            total_allocations=total_allocations,
            finalization_ledger=finalization_ledger,
            reveal_start_ledger=reveal_start_ledger,
            reveal_end_ledger=reveal_end_ledger,
            anti_sniping=self.anti_sniping_config(),
            entropy_source=self.source,
            require_full_batch=self.require_full_batch,
        )

    def configure_logging(self, level: Optional[str] = None) -> None:
        """Apply *level* (or `log_level`) to the root logger."""
        logging.basicConfig(
            level=(level or self.log_level).upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "FAIRDRAW_") -> "FairdrawConfig":
        """
        Load configuration from environment variables. All variables are optional.

        Supported keys:
          - FAIRDRAW_DEFAULT_STRATEGY=lottery
          - FAIRDRAW_REQUIRE_FULL_BATCH=false
          - FAIRDRAW_ENTROPY_SOURCE=multi_source
          - FAIRDRAW_LOG_LEVEL=INFO

          - FAIRDRAW_MIN_LOCK_PERIOD=10
          - FAIRDRAW_MAX_ENTRIES_PER_ADDRESS=5
          - FAIRDRAW_RATE_LIMIT_WINDOW_S=3600
          - FAIRDRAW_RANDOMIZATION_DELAY=3
        """

        def _get(name: str, cast: Any, default: Any) -> Any:
            key = prefix + name
            raw = os.getenv(key)
            if raw is None:
                return default
            try:
                if cast is bool:
                    return raw.lower() in {"1", "true", "yes", "on"}
                return cast(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from e

        cfg = FairdrawConfig(
            default_strategy=_get("DEFAULT_STRATEGY", str, AllocationStrategy.LOTTERY.value),
            require_full_batch=_get("REQUIRE_FULL_BATCH", bool, False),
            entropy_source=_get("ENTROPY_SOURCE", str, EntropySource.MULTI_SOURCE.value),
            log_level=_get("LOG_LEVEL", str, "INFO"),
            anti_sniping=AntiSnipingParams(
                minimum_lock_period=_get("MIN_LOCK_PERIOD", int, DEFAULT_MINIMUM_LOCK_PERIOD),
                max_entries_per_address=_get("MAX_ENTRIES_PER_ADDRESS", int, DEFAULT_MAX_ENTRIES_PER_ADDRESS),
                rate_limit_window_s=_get("RATE_LIMIT_WINDOW_S", int, DEFAULT_RATE_LIMIT_WINDOW_S),
                randomization_delay_ledgers=_get(
                    "RANDOMIZATION_DELAY", int, DEFAULT_RANDOMIZATION_DELAY_LEDGERS
                ),
            ),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "FairdrawConfig":
        """
        Load configuration from a JSON or YAML file. Keys mirror the dataclass
        structure. Example (YAML):

            default_strategy: time_weighted
            require_full_batch: true
            entropy_source: multi_source
            anti_sniping:
              minimum_lock_period: 10
              max_entries_per_address: 5
              rate_limit_window_s: 3600
              randomization_delay_ledgers: 3
        """
        data = _parse_json_or_yaml(_read_text(path), path)
        if not isinstance(data, dict):
            raise ValueError(f"{path!r} must contain a mapping at the top level")

        anti_d = data.pop("anti_sniping", {}) or {}
        defaults = AntiSnipingParams()

        cfg = FairdrawConfig(
            default_strategy=data.pop("default_strategy", AllocationStrategy.LOTTERY.value),
            require_full_batch=bool(data.pop("require_full_batch", False)),
            entropy_source=data.pop("entropy_source", EntropySource.MULTI_SOURCE.value),
            log_level=data.pop("log_level", "INFO"),
            anti_sniping=AntiSnipingParams(
                minimum_lock_period=anti_d.pop("minimum_lock_period", defaults.minimum_lock_period),
                max_entries_per_address=anti_d.pop("max_entries_per_address", defaults.max_entries_per_address),
                rate_limit_window_s=anti_d.pop("rate_limit_window_s", defaults.rate_limit_window_s),
                randomization_delay_ledgers=anti_d.pop(
                    "randomization_delay_ledgers", defaults.randomization_delay_ledgers
                ),
            ),
        )
        unknown = sorted(set(data) | {f"anti_sniping.{k}" for k in anti_d})
        if unknown:
            raise ValueError(f"Unknown configuration keys in {path!r}: {', '.join(unknown)}")
        cfg.validate()
        return cfg


# -------------------------
# Utilities
# -------------------------


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _parse_json_or_yaml(text: str, path_hint: str) -> Dict[str, Any]:
    # First try JSON
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Then YAML, if installed
    try:
        import yaml  # type: ignore
    except ImportError as e:
        raise ValueError(
            f"Failed to parse {path_hint!r} as JSON; install PyYAML (fairdraw[yaml]) for YAML files"
        ) from e
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse {path_hint!r} as JSON or YAML: {e}") from e


DEFAULT: FairdrawConfig = FairdrawConfig()


__all__ = [
    "AntiSnipingParams",
    "FairdrawConfig",
    "DEFAULT",
]
