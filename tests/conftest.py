"""Pytest configuration and fixtures for dodger tests."""

import logging
import random

import pytest

from backend.simulation_runner import SimulationRunner
from core.config.simulation_config import SimulationConfig
from core.simulation import SimulationEngine
from tests.fakes.scripted_random import ScriptedRandom


@pytest.fixture
def seeded_rng():
    """Provide a deterministic RNG for tests."""
    return random.Random(42)


@pytest.fixture
def engine(seeded_rng):
    """An engine driven by a seeded random source."""
    return SimulationEngine(rng=seeded_rng)


@pytest.fixture
def quiet_engine():
    """An engine that never spawns obstacles."""
    return SimulationEngine(rng=ScriptedRandom())


@pytest.fixture
def fast_config():
    """Config with a 1 ms tick and no periodic stats logging."""
    return SimulationConfig(tick_interval_ms=1, seed=42, stats_log_interval_seconds=0)


@pytest.fixture
def runner(quiet_engine, fast_config):
    """A runner over an engine that never spawns, so it never ends by itself."""
    return SimulationRunner(engine=quiet_engine, config=fast_config, session_id="test-session")


@pytest.fixture
def restore_logger_levels(monkeypatch):
    """Undo logger level changes made by configure_logging."""
    monkeypatch.delenv("DODGER_LOG_LEVEL", raising=False)
    names = ["dodger.backend", "core", "backend"]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)
