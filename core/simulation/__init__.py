"""Simulation package - the step-function engine.

Usage:
    from core.simulation import SimulationEngine

    engine = SimulationEngine(seed=42)
    state = engine.initial_state()
    state = engine.advance(state)
"""

from core.simulation.engine import SimulationEngine

__all__ = [
    "SimulationEngine",
]
