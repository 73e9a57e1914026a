"""Obstacle spawning system.

This module decides, once per tick, whether a new obstacle enters the field
and with which parameters. Difficulty scales with the level: higher levels
spawn more often and spawn faster obstacles.
"""

import logging
import random
from typing import Optional

from core.config.simulation import (
    OBSTACLE_BASE_SPEED,
    OBSTACLE_MIN_SIZE_SCALE,
    OBSTACLE_SIZE_SCALE_JITTER,
    OBSTACLE_SPAWN_CHANCE_BASE,
    OBSTACLE_SPAWN_CHANCE_PER_LEVEL,
    OBSTACLE_SPAWN_Y,
    OBSTACLE_SPEED_JITTER,
    OBSTACLE_SPEED_LEVEL_SCALE,
)
from core.entities import Obstacle
from core.entity_ids import IdGenerator

logger = logging.getLogger(__name__)


def spawn_probability(level: int) -> float:
    """Chance that one obstacle spawns on a tick at ``level``, in [0, 1]."""
    chance = OBSTACLE_SPAWN_CHANCE_BASE + OBSTACLE_SPAWN_CHANCE_PER_LEVEL * level
    return min(1.0, max(0.0, chance))


def speed_multiplier(level: int) -> float:
    return 1.0 + OBSTACLE_SPEED_LEVEL_SCALE * level


class ObstacleSpawner:
    """Handles obstacle spawning for one session.

    The spawner owns neither the random source nor the id counter; both are
    session fields handed in by the engine so that independent sessions
    never share them.

    Attributes:
        rng: Random number generator for deterministic spawning
        id_generator: Session-scoped obstacle id source
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        id_generator: Optional[IdGenerator] = None,
    ) -> None:
        """Initialize the spawner.

        Args:
            rng: Random number generator (a fresh unseeded one if None)
            id_generator: Obstacle id source (a fresh one if None)
        """
        self.rng = rng or random.Random()
        self.id_generator = id_generator or IdGenerator()

    def should_spawn(self, level: int) -> bool:
        """Roll the per-tick spawn decision (exactly one random draw)."""
        return self.rng.random() < spawn_probability(level)

    def spawn_obstacle(self, level: int) -> Obstacle:
        """Create a new obstacle just above the top edge.

        Draws x, then speed jitter, then size jitter, in that order.
        """
        x = self.rng.random()
        speed = (self.rng.random() * OBSTACLE_SPEED_JITTER + OBSTACLE_BASE_SPEED) * speed_multiplier(level)
        size_scale = self.rng.random() * OBSTACLE_SIZE_SCALE_JITTER + OBSTACLE_MIN_SIZE_SCALE
        obstacle = Obstacle(
            id=self.id_generator.next_obstacle(),
            x=x,
            y=OBSTACLE_SPAWN_Y,
            vertical_speed=speed,
            size_scale=size_scale,
        )
        logger.debug("Spawned obstacle %d at x=%.3f (level %d)", obstacle.id, x, level)
        return obstacle

    def maybe_spawn(self, level: int) -> Optional[Obstacle]:
        """Spawn an obstacle if this tick's roll succeeds."""
        if self.should_spawn(level):
            return self.spawn_obstacle(level)
        return None
