"""Lightweight data transfer objects for simulation state publication."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from core.game_state import SimulationState


@dataclass(frozen=True)
class SnapshotPayload:
    """One published snapshot.

    Attributes:
        version: Position in the session's transition stream (1, 2, ...);
            strictly increasing, never reset by a restart
        frame: Number of ticks applied when the snapshot was taken
        state: The snapshot itself
    """

    version: int
    frame: int
    state: SimulationState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "frame": self.frame,
            "state": self.state.to_dict(),
        }
