from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from core.config.simulation import PLAYER_START_X, PLAYER_Y, POINTS_PER_LEVEL
from core.entities import Obstacle


def level_for_score(score: int) -> int:
    return score // POINTS_PER_LEVEL + 1


def clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, value))


@dataclass(frozen=True)
class SimulationState:
    """Immutable snapshot of one game session.

    A new value is produced by every tick and every command; consumers may
    hold on to a snapshot without synchronization.
    """

    player_x: float = PLAYER_START_X
    player_y: float = PLAYER_Y
    obstacles: tuple[Obstacle, ...] = ()
    score: int = 0
    is_game_over: bool = False
    is_paused: bool = False
    high_score: int = 0
    level: int = 1

    @property
    def is_running(self) -> bool:
        """Whether the driver should advance this state on its next tick."""
        return not (self.is_paused or self.is_game_over)

    @property
    def is_new_high_score(self) -> bool:
        return self.score > 0 and self.score == self.high_score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_x": self.player_x,
            "player_y": self.player_y,
            "obstacles": [o.to_dict() for o in self.obstacles],
            "score": self.score,
            "is_game_over": self.is_game_over,
            "is_paused": self.is_paused,
            "high_score": self.high_score,
            "level": self.level,
            "is_new_high_score": self.is_new_high_score,
        }
