"""State machine abstractions for explicit state management.

This module provides a small state machine where:
- All valid states are enumerated
- Valid transitions are defined explicitly
- Invalid transitions are caught immediately (fail-fast)
- State history can be tracked for debugging

The driver lifecycle (IDLE -> RUNNING -> STOPPED) is the one machine the
simulation uses; see ``create_driver_state_machine``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Generic, List, TypeVar

from core.exceptions import DriverStateError

# Type variable for state enum types
S = TypeVar("S", bound=Enum)


@dataclass
class StateTransition(Generic[S]):
    """Record of a state transition for debugging.

    Attributes:
        from_state: The state before transition
        to_state: The state after transition
        frame: The simulation frame when transition occurred
        reason: Optional description of why transition happened
    """

    from_state: S
    to_state: S
    frame: int
    reason: str = ""


class StateMachine(Generic[S]):
    """A generic state machine with explicit transition validation.

    Example:
        transitions = {
            DriverState.IDLE: [DriverState.RUNNING],
            DriverState.RUNNING: [DriverState.STOPPED],
            DriverState.STOPPED: [],
        }

        machine = StateMachine(DriverState.IDLE, transitions)
        machine.transition(DriverState.RUNNING)  # OK
        machine.transition(DriverState.IDLE)  # Raises DriverStateError
    """

    def __init__(
        self,
        initial_state: S,
        valid_transitions: Dict[S, List[S]],
        track_history: bool = False,
        max_history: int = 100,
    ) -> None:
        """Initialize the state machine.

        Args:
            initial_state: The starting state
            valid_transitions: Map of state -> list of valid target states
            track_history: Whether to record transition history
            max_history: Maximum number of transitions to keep in history
        """
        if initial_state not in valid_transitions:
            raise ValueError(
                f"Initial state {initial_state} not in valid_transitions. "
                f"Valid states: {list(valid_transitions.keys())}"
            )

        self._state = initial_state
        self._transitions = valid_transitions
        self._track_history = track_history
        self._max_history = max_history
        self._history: List[StateTransition[S]] = []

    @property
    def state(self) -> S:
        """Get the current state."""
        return self._state

    @property
    def history(self) -> List[StateTransition[S]]:
        """Get transition history (empty if tracking disabled)."""
        return self._history.copy()

    def can_transition(self, target: S) -> bool:
        return target in self._transitions.get(self._state, [])

    def transition(self, target: S, frame: int = 0, reason: str = "") -> S:
        """Transition to a new state, raising on invalid transition.

        Args:
            target: The desired target state
            frame: The current simulation frame (for history)
            reason: Why this transition is happening (for debugging)

        Returns:
            The new state

        Raises:
            DriverStateError: If the transition is invalid
        """
        if not self.can_transition(target):
            valid_targets = self._transitions.get(self._state, [])
            raise DriverStateError(
                f"Invalid transition: {self._state.name} -> {target.name}. "
                f"Valid targets from {self._state.name}: {[t.name for t in valid_targets]}"
            )

        old_state = self._state
        self._state = target

        if self._track_history:
            self._history.append(
                StateTransition(from_state=old_state, to_state=target, frame=frame, reason=reason)
            )
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history :]

        return target

    def __repr__(self) -> str:
        return f"StateMachine(state={self._state.name})"


# ============================================================================
# Driver Lifecycle State Machine
# ============================================================================


class DriverState(Enum):
    """Lifecycle states of the tick driver."""

    IDLE = "idle"  # Created, never started
    RUNNING = "running"  # A tick loop is active
    STOPPED = "stopped"  # Loop cancelled; may be started again


# RUNNING -> RUNNING is a start() that replaces the active loop
DRIVER_STATE_TRANSITIONS: Dict[DriverState, List[DriverState]] = {
    DriverState.IDLE: [DriverState.RUNNING, DriverState.STOPPED],
    DriverState.RUNNING: [DriverState.RUNNING, DriverState.STOPPED],
    DriverState.STOPPED: [DriverState.RUNNING],
}


def create_driver_state_machine(track_history: bool = False) -> StateMachine[DriverState]:
    """Create a state machine for the driver lifecycle.

    Args:
        track_history: Whether to track transition history (useful for debugging)

    Returns:
        A StateMachine starting in IDLE
    """
    return StateMachine(
        initial_state=DriverState.IDLE,
        valid_transitions=DRIVER_STATE_TRANSITIONS,
        track_history=track_history,
    )
