"""Command handlers for SimulationRunner.

This module contains the state-changing commands a presentation layer may
send, kept apart from the runner's loop and lifecycle code.

Command handlers are responsible for:
- Validating command data before it is queued
- Applying the command to the current state through the engine

Handlers only ever run on the task that owns the state (the tick loop, or
the caller itself while no loop is running).
"""

import logging
import math
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

if TYPE_CHECKING:
    from backend.simulation_runner import SimulationRunner

logger = logging.getLogger(__name__)

CommandData = Optional[Dict[str, Any]]
CommandResponse = Optional[Dict[str, Any]]


class CommandHandlerMixin:
    """Mixin class providing command handler methods for SimulationRunner."""

    def _create_error_response(self, error_msg: str) -> Dict[str, Any]:
        """Create a standardized error response."""
        return {"success": False, "error": error_msg}

    def _command_handlers(
        self: "SimulationRunner",
    ) -> Dict[str, Callable[[CommandData], CommandResponse]]:
        return {
            "set_player_x": self._cmd_set_player_x,
            "toggle_pause": self._cmd_toggle_pause,
        }

    def _validate_command(
        self: "SimulationRunner", command: str, data: CommandData
    ) -> Tuple[CommandData, CommandResponse]:
        """Check command data up front so queued commands cannot fail later.

        Returns:
            (normalized data, None) if valid, (None, error response) otherwise
        """
        if command == "set_player_x":
            raw_x = data.get("x") if data else None
            if isinstance(raw_x, bool) or raw_x is None:
                return None, self._create_error_response("set_player_x requires a numeric 'x'")
            try:
                x = float(raw_x)
            except (TypeError, ValueError):
                return None, self._create_error_response(f"Invalid player position: {raw_x!r}")
            return {"x": x}, None
        return data, None

    def _cmd_set_player_x(self: "SimulationRunner", data: CommandData) -> CommandResponse:
        """Handle 'set_player_x' command."""
        x = data["x"] if data else math.nan
        self._replace_state(self.engine.set_player_x(self._state, x))
        return None

    def _cmd_toggle_pause(self: "SimulationRunner", data: CommandData) -> CommandResponse:
        """Handle 'toggle_pause' command."""
        self._replace_state(self.engine.toggle_pause(self._state))
        logger.info("Simulation %s", "paused" if self._state.is_paused else "resumed")
        return None

    def _apply_command(self: "SimulationRunner", command: str, data: CommandData) -> CommandResponse:
        handler = self._command_handlers().get(command)
        if handler is None:
            logger.warning(f"Unknown command received: {command}")
            return self._create_error_response(f"Unknown command: {command}")
        return handler(data)
