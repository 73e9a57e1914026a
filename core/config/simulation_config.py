"""Lightweight simulation configuration helpers."""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from core.config.simulation import STATS_LOG_INTERVAL_SECONDS, TICK_INTERVAL_MS
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _env_value(
    name: str,
    parse: Callable[[str], T],
    default: T,
    valid: Optional[Callable[[T], bool]] = None,
) -> T:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = parse(raw.strip())
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using default %r", name, raw, default)
        return default
    if valid is not None and not valid(value):
        logger.warning("Ignoring out-of-range %s=%r, using default %r", name, raw, default)
        return default
    return value


def _parse_bool(raw: str) -> bool:
    value = raw.lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {raw}")


@dataclass
class SimulationConfig:
    """Configuration toggles for a driver session.

    Attributes:
        tick_interval_ms: Milliseconds between ticks.
        seed: Optional random seed for deterministic sessions.
        perf_logging: Time advance/publish per tick and include it in stats logs.
        stats_log_interval_seconds: Period of the stats log line (0 disables it).
        subscriber_queue_size: Default bound for snapshot subscriptions
            (0 means unbounded, every snapshot is delivered).
    """

    tick_interval_ms: int = TICK_INTERVAL_MS
    seed: Optional[int] = None
    perf_logging: bool = True
    stats_log_interval_seconds: float = STATS_LOG_INTERVAL_SECONDS
    subscriber_queue_size: int = 1

    def __post_init__(self) -> None:
        if self.tick_interval_ms <= 0:
            raise ConfigurationError(
                f"tick_interval_ms must be positive, got {self.tick_interval_ms}"
            )
        if self.stats_log_interval_seconds < 0:
            raise ConfigurationError("stats_log_interval_seconds must be >= 0")
        if self.subscriber_queue_size < 0:
            raise ConfigurationError("subscriber_queue_size must be >= 0")

    @property
    def tick_interval_seconds(self) -> float:
        return self.tick_interval_ms / 1000.0

    @classmethod
    def from_env(cls) -> "SimulationConfig":
        """Build a config from ``DODGER_*`` environment variables."""
        return cls(
            tick_interval_ms=_env_value(
                "DODGER_TICK_INTERVAL_MS", int, TICK_INTERVAL_MS, lambda v: v > 0
            ),
            seed=_env_value("DODGER_SEED", int, None),
            perf_logging=_env_value("DODGER_PERF_LOGGING", _parse_bool, True),
            stats_log_interval_seconds=_env_value(
                "DODGER_STATS_LOG_INTERVAL_SECONDS",
                float,
                STATS_LOG_INTERVAL_SECONDS,
                lambda v: v >= 0,
            ),
        )
