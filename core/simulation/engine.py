"""Pure simulation engine - the per-tick step function.

The engine turns one ``SimulationState`` into the next. It never stores a
state itself: the driver owns the single live state value and hands it in.
What the engine does own are the session-scoped sources of variation, the
random number generator and the obstacle id counter, so that two engines
never interfere and a seeded engine replays exactly.

Phase order inside ``advance`` is fixed:

1. advance obstacles
2. cull obstacles that left the screen
3. roll for a spawn
4. detect a collision with the player
5. score the tick
6. derive level, high score and game over
"""

import logging
import math
import random
from dataclasses import replace
from typing import Optional

from core.collision_system import CollisionDetector, default_collision_detector
from core.entities import Obstacle
from core.entity_ids import IdGenerator
from core.game_state import SimulationState, clamp_unit, level_for_score
from core.obstacle_spawning_system import ObstacleSpawner

logger = logging.getLogger(__name__)


class SimulationEngine:
    """Step function and state commands for one game session.

    Attributes:
        rng: Random source used for spawning (swap in a seeded one for tests)
        id_generator: Obstacle id source, reset on restart
        spawner: Spawning system sharing ``rng`` and ``id_generator``
        collision_detector: Shape test between the player and obstacles
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        id_generator: Optional[IdGenerator] = None,
        collision_detector: Optional[CollisionDetector] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            seed: Seed for a private ``random.Random`` (ignored if rng is given)
            rng: Explicit random source
            id_generator: Explicit obstacle id source
            collision_detector: Collision strategy (circle test by default)
        """
        self.rng = rng if rng is not None else random.Random(seed)
        self.id_generator = id_generator or IdGenerator()
        self.spawner = ObstacleSpawner(rng=self.rng, id_generator=self.id_generator)
        self.collision_detector = collision_detector or default_collision_detector

    def initial_state(self, high_score: int = 0) -> SimulationState:
        """Default state for a new session."""
        return SimulationState(high_score=high_score)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def advance(self, state: SimulationState) -> SimulationState:
        """Compute the state one tick later.

        Callers must only advance a running state (not paused, not game
        over); this is not checked here.
        """
        # Move, then cull what fell past the bottom edge
        obstacles = [o.advanced() for o in state.obstacles]
        obstacles = [o for o in obstacles if not o.is_off_screen]

        spawned = self.spawner.maybe_spawn(state.level)
        if spawned is not None:
            obstacles.append(spawned)

        hit = self.collision_detector.first_collision(state.player_x, state.player_y, obstacles)
        collided = hit is not None

        score = state.score if collided else state.score + 1
        level = level_for_score(score)
        if level != state.level:
            logger.debug("Level up: %d -> %d at score %d", state.level, level, score)
        if collided:
            logger.debug("Player hit obstacle %d at score %d", hit.id, score)

        return replace(
            state,
            obstacles=tuple(obstacles),
            score=score,
            level=level,
            high_score=max(state.high_score, score),
            is_game_over=collided,
        )

    def spawn_obstacle(self, level: int) -> Obstacle:
        """Create a new obstacle for ``level`` using the session id counter."""
        return self.spawner.spawn_obstacle(level)

    def run(self, state: SimulationState, max_ticks: int) -> SimulationState:
        """Advance headlessly until game over or ``max_ticks`` ticks.

        A paused state is returned unchanged.
        """
        for _ in range(max_ticks):
            if not state.is_running:
                break
            state = self.advance(state)
        return state

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def set_player_x(self, state: SimulationState, x: float) -> SimulationState:
        """Move the player horizontally, clamped to [0, 1].

        Accepted while paused or after game over. A NaN position is ignored.
        """
        if math.isnan(x):
            logger.debug("Ignoring NaN player position")
            return state
        return replace(state, player_x=clamp_unit(x))

    def toggle_pause(self, state: SimulationState) -> SimulationState:
        """Flip the paused flag; allowed even after game over."""
        return replace(state, is_paused=not state.is_paused)

    def restart(self, state: SimulationState) -> SimulationState:
        """Fresh session state carrying the high score forward.

        Resets the obstacle id counter as part of the same transition.
        """
        self.id_generator.reset()
        return self.initial_state(high_score=state.high_score)
