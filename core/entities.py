"""Entities that live in the simulation.

The only entity with behaviour is the falling ``Obstacle``. Entities are
frozen dataclasses: every tick replaces them rather than editing them, so a
snapshot handed to a renderer can never change underneath it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict

from core.config.simulation import OBSTACLE_BASE_RADIUS, OBSTACLE_DESPAWN_Y


@dataclass(frozen=True)
class Obstacle:
    """A falling hazard.

    Attributes:
        id: Session-unique identifier
        x: Horizontal position in [0, 1]
        y: Vertical position; spawns at -0.1, culled at 1.2
        vertical_speed: Distance fallen per tick (> 0)
        size_scale: Radius multiplier in [0.75, 1.25]
    """

    id: int
    x: float
    y: float
    vertical_speed: float
    size_scale: float

    def radius(self, base_radius: float = OBSTACLE_BASE_RADIUS) -> float:
        return self.size_scale * base_radius

    def advanced(self) -> Obstacle:
        """Return this obstacle moved down by one tick."""
        return replace(self, y=self.y + self.vertical_speed)

    @property
    def is_off_screen(self) -> bool:
        return self.y >= OBSTACLE_DESPAWN_Y

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "vertical_speed": self.vertical_speed,
            "size_scale": self.size_scale,
        }
