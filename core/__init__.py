"""Core simulation engine and entity systems.

This package contains the pure simulation logic for the space dodger game,
with no UI dependencies. Key modules include:

- simulation: The step-function engine (core.simulation.engine)
- game_state: The immutable SimulationState snapshot
- entities: Falling obstacles
- collision_system: Circle-circle collision detection
- obstacle_spawning_system: Level-scaled obstacle spawning
- state_machine: Driver lifecycle state machine

Design note: this module exposes a small, explicit public API via ``__all__``.
Use direct imports from submodules for internal helpers.
"""

from . import entities as entities
from . import game_state as game_state
from . import simulation as simulation

# Public API of the core package. Keep this list intentionally small.
__all__ = [
	"entities",
	"game_state",
	"simulation",
]
