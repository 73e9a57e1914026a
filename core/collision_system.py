"""Collision detection between the player ship and obstacles.

Architecture Notes:
- CollisionDetector classes implement the Strategy pattern so the engine can
  be handed a different shape test without changing the step function.
- Both the ship and the obstacles are treated as circles; a hit is a strict
  overlap (touching circles do not collide).
"""

import logging
import math
from typing import Iterable, Optional

from core.config.simulation import OBSTACLE_BASE_RADIUS, PLAYER_RADIUS
from core.entities import Obstacle

logger = logging.getLogger(__name__)


class CollisionDetector:
    """Base class for collision detection strategies."""

    def collides(self, player_x: float, player_y: float, obstacle: Obstacle) -> bool:
        """Check if the player at (player_x, player_y) hits an obstacle.

        Args:
            player_x: Player center x
            player_y: Player center y
            obstacle: Obstacle to test

        Returns:
            True if the two shapes overlap
        """
        raise NotImplementedError("Subclasses must implement collides()")

    def first_collision(
        self, player_x: float, player_y: float, obstacles: Iterable[Obstacle]
    ) -> Optional[Obstacle]:
        """Return the first obstacle hit by the player, or None.

        Scanning stops at the first hit; callers only need to know whether
        the run ended, not every obstacle involved.
        """
        for obstacle in obstacles:
            if self.collides(player_x, player_y, obstacle):
                return obstacle
        return None


class CircleCollisionDetector(CollisionDetector):
    """Circle-based collision detection (distance between centers)."""

    def __init__(
        self,
        player_radius: float = PLAYER_RADIUS,
        obstacle_base_radius: float = OBSTACLE_BASE_RADIUS,
    ) -> None:
        self.player_radius = player_radius
        self.obstacle_base_radius = obstacle_base_radius

    def collides(self, player_x: float, player_y: float, obstacle: Obstacle) -> bool:
        distance = math.hypot(player_x - obstacle.x, player_y - obstacle.y)
        threshold = self.player_radius + obstacle.radius(self.obstacle_base_radius)
        return distance < threshold


# Default collision detector
default_collision_detector = CircleCollisionDetector()
