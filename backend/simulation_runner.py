"""Fixed-cadence simulation driver.

One ``SimulationRunner`` owns one game session: the live state value, the
engine (with its random source and id counter) and at most one tick loop.
The tick loop is an asyncio task that is also the single consumer of the
command queue, so ticks and commands are applied strictly one after another
and no two transitions ever race to replace the state.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, Optional, Tuple

from backend.runner import CommandHandlerMixin
from backend.runner.command_handlers import CommandData, CommandResponse
from backend.runner.perf_tracker import PerfTracker
from backend.runner.state_publisher import SnapshotSubscription, StatePublisher
from core.config.simulation_config import SimulationConfig
from core.exceptions import DriverStateError, SimulationError
from core.game_state import SimulationState
from core.simulation import SimulationEngine
from core.state_machine import DriverState, create_driver_state_machine

logger = logging.getLogger(__name__)

QueuedCommand = Tuple[str, CommandData, Optional[asyncio.Future]]


def _handle_task_exception(task: asyncio.Task) -> None:
    """Handle exceptions from background tasks."""
    try:
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Unhandled exception in task {task.get_name()}: {exc}",
                exc_info=(type(exc), exc, exc.__traceback__),
            )
    except asyncio.CancelledError:
        logger.debug(f"Task {task.get_name()} was cancelled")


class SimulationRunner(CommandHandlerMixin):
    """Runs one session's tick loop and serializes every state change.

    Inherits command handling from CommandHandlerMixin.
    """

    def __init__(
        self,
        engine: Optional[SimulationEngine] = None,
        config: Optional[SimulationConfig] = None,
        session_id: Optional[str] = None,
        track_history: bool = False,
    ):
        """Initialize the simulation runner.

        Args:
            engine: Engine to drive (a new one seeded from config if None)
            config: Session configuration (read from the environment if None)
            session_id: Optional unique identifier for log attribution
            track_history: Record driver lifecycle transitions for debugging
        """
        self.config = config or SimulationConfig.from_env()
        self.engine = engine or SimulationEngine(seed=self.config.seed)
        self.session_id = session_id or str(uuid.uuid4())

        self.perf_tracker = PerfTracker(enable_logging=self.config.perf_logging)
        self.publisher = StatePublisher(
            self.perf_tracker, default_maxsize=self.config.subscriber_queue_size
        )
        self._lifecycle = create_driver_state_machine(track_history=track_history)

        self.frame_count = 0
        self.skipped_ticks = 0

        # Single-consumer command queue drained by the tick loop
        self._commands: "asyncio.Queue[QueuedCommand]" = asyncio.Queue()
        self._wakeup = asyncio.Event()
        self._tick_task: Optional[asyncio.Task] = None
        self._stop_token: Optional[asyncio.Event] = None
        self._restart_lock = asyncio.Lock()

        # Stats logging
        self._last_stats_time = time.monotonic()
        self._ticks_since_stats = 0

        self._state = self.engine.initial_state()
        self.publisher.publish(self.frame_count, self._state)

    # ------------------------------------------------------------------
    # Snapshot access
    # ------------------------------------------------------------------

    @property
    def state(self) -> SimulationState:
        return self._state

    def current_state(self) -> SimulationState:
        """The latest snapshot; safe to keep and read without locking."""
        return self._state

    def subscribe(self, maxsize: Optional[int] = None) -> SnapshotSubscription:
        """Stream every new snapshot, starting with the current one."""
        return self.publisher.subscribe(maxsize)

    @property
    def driver_state(self) -> DriverState:
        return self._lifecycle.state

    @property
    def running(self) -> bool:
        return self._lifecycle.state is DriverState.RUNNING

    @property
    def lifecycle_history(self):
        return self._lifecycle.history

    def get_status(self) -> Dict[str, Any]:
        state = self._state
        return {
            "session_id": self.session_id,
            "driver_state": self._lifecycle.state.value,
            "frame": self.frame_count,
            "score": state.score,
            "level": state.level,
            "high_score": state.high_score,
            "paused": state.is_paused,
            "game_over": state.is_game_over,
            "obstacles": len(state.obstacles),
            "next_obstacle_id": self.engine.id_generator.peek(),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start ticking; replaces the active loop if one is running.

        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()

        if self._loop_active():
            logger.info("Simulation loop[%s]: Replacing active loop", self.session_id[:8])
            self._cancel_loop()

        self._lifecycle.transition(DriverState.RUNNING, frame=self.frame_count, reason="start")
        token = asyncio.Event()
        self._stop_token = token
        self._tick_task = loop.create_task(
            self._run_loop(token), name=f"dodger_tick_{self.session_id[:8]}"
        )
        self._tick_task.add_done_callback(_handle_task_exception)

    async def stop(self) -> None:
        """Stop ticking. A tick already in progress completes first.

        If ``start()`` replaced the loop while this call was waiting, the
        newer loop is left running.
        """
        task = self._tick_task
        token = self._stop_token
        if token is not None:
            token.set()
        self._wakeup.set()

        if task is not None and not task.done():
            await asyncio.wait([task])
        if self._tick_task is not task or self._stop_token is not token:
            return
        self._tick_task = None
        self._stop_token = None

        if self._lifecycle.state is not DriverState.STOPPED:
            self._lifecycle.transition(DriverState.STOPPED, frame=self.frame_count, reason="stop")
            logger.info(
                "Simulation loop[%s]: Stopped at frame %d", self.session_id[:8], self.frame_count
            )

        # Nothing owns the state now; apply what was queued before the stop
        self._drain_commands()

    async def restart(self) -> SimulationState:
        """Stop the loop, start a fresh session and tick it again.

        Overlapping restarts run one after another, so at most one tick
        loop survives them.
        """
        async with self._restart_lock:
            await self.stop()
            self._reset_session()
            self.start()
            return self._state

    async def close(self) -> None:
        """Stop ticking and end all snapshot subscriptions."""
        async with self._restart_lock:
            await self.stop()
        self.publisher.close()

    def _loop_active(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    def _cancel_loop(self) -> None:
        if self._stop_token is not None:
            self._stop_token.set()
        if self._tick_task is not None:
            self._tick_task.cancel()
        self._tick_task = None
        self._stop_token = None

    def _reset_session(self) -> None:
        self.frame_count = 0
        self.skipped_ticks = 0
        self._replace_state(self.engine.restart(self._state))
        logger.info(
            "Simulation[%s]: Restarted (high score %d)", self.session_id[:8], self._state.high_score
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def set_player_x(self, x: float) -> None:
        """Move the player; clamped to [0, 1], accepted even while paused."""
        self.handle_command("set_player_x", {"x": x})

    def toggle_pause(self) -> None:
        self.handle_command("toggle_pause")

    def handle_command(self, command: str, data: CommandData = None) -> CommandResponse:
        """Handle a command from the presentation layer.

        While a loop is running the command is queued for it and applied
        before the next tick; otherwise it is applied immediately. A
        ``restart`` is scheduled on the running event loop if there is one.

        Args:
            command: 'set_player_x', 'toggle_pause' or 'restart'
            data: Optional command data ({"x": float} for set_player_x)
        """
        if command == "restart":
            self._request_restart()
            return None

        if command not in self._command_handlers():
            return self._apply_command(command, data)

        data, error = self._validate_command(command, data)
        if error is not None:
            return error

        if self._loop_active():
            self._enqueue(command, data, None)
            return None
        return self._apply_command(command, data)

    async def handle_command_async(
        self, command: str, data: CommandData = None
    ) -> CommandResponse:
        """Handle a command and wait until it has been applied."""
        if command == "restart":
            await self.restart()
            return None

        if command not in self._command_handlers():
            return self._apply_command(command, data)

        data, error = self._validate_command(command, data)
        if error is not None:
            return error

        if self._loop_active():
            future = asyncio.get_running_loop().create_future()
            self._enqueue(command, data, future)
            return await future
        return self._apply_command(command, data)

    def _request_restart(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop to tick on: reset in place, driver state unchanged
            self._reset_session()
            return
        task = loop.create_task(self.restart(), name=f"dodger_restart_{self.session_id[:8]}")
        task.add_done_callback(_handle_task_exception)

    def _enqueue(self, command: str, data: CommandData, future: Optional[asyncio.Future]) -> None:
        self._commands.put_nowait((command, data, future))
        self._wakeup.set()

    def _drain_commands(self) -> None:
        while True:
            try:
                command, data, future = self._commands.get_nowait()
            except asyncio.QueueEmpty:
                return
            response = self._apply_command(command, data)
            if future is not None and not future.done():
                future.set_result(response)

    def _replace_state(self, state: SimulationState) -> None:
        self._state = state
        self.publisher.publish(self.frame_count, state)

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def step(self) -> bool:
        """Run one tick immediately (headless use, no loop may be active).

        Returns:
            True if the state advanced, False if the tick was skipped
        """
        if self._loop_active():
            raise DriverStateError("Cannot step manually while the tick loop is running")
        self._drain_commands()
        return self._tick()

    def _tick(self) -> bool:
        state = self._state
        if not state.is_running:
            self.skipped_ticks += 1
            return False

        try:
            with self.perf_tracker.measure("advance"):
                new_state = self.engine.advance(state)
        except Exception as e:
            logger.error(
                f"Simulation loop: Error advancing state at frame {self.frame_count}: {e}",
                exc_info=True,
            )
            if self._stop_token is not None:
                self._stop_token.set()
            if self._lifecycle.state is not DriverState.STOPPED:
                self._lifecycle.transition(
                    DriverState.STOPPED, frame=self.frame_count, reason="advance failed"
                )
            raise SimulationError(f"advance failed at frame {self.frame_count}") from e

        self.frame_count += 1
        self._ticks_since_stats += 1
        self._replace_state(new_state)

        if new_state.is_game_over:
            logger.info(
                "Simulation[%s]: Game over at frame %d (score=%d, level=%d, high score=%d)",
                self.session_id[:8],
                self.frame_count,
                new_state.score,
                new_state.level,
                new_state.high_score,
            )
        return True

    async def _run_loop(self, token: asyncio.Event) -> None:
        """Main tick loop; exits once ``token`` is set."""
        label = self.session_id[:8]
        logger.info("Simulation loop[%s]: Starting", label)

        loop = asyncio.get_running_loop()
        interval = self.config.tick_interval_seconds
        next_tick_at = loop.time() + interval

        try:
            while not token.is_set():
                self._wakeup.clear()
                self._drain_commands()
                if token.is_set():
                    break

                delay = next_tick_at - loop.time()
                if delay > 0:
                    try:
                        await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
                    except asyncio.TimeoutError:
                        pass
                    continue

                # Drift correction: skip ahead instead of bursting after a stall
                next_tick_at += interval
                now = loop.time()
                if now - next_tick_at > interval:
                    next_tick_at = now + interval

                self._tick()
                self._log_stats_if_due()
        finally:
            logger.info("Simulation loop[%s]: Ended at frame %d", label, self.frame_count)

    def _log_stats_if_due(self) -> None:
        period = self.config.stats_log_interval_seconds
        if period <= 0:
            return
        now = time.monotonic()
        elapsed = now - self._last_stats_time
        if elapsed < period:
            return

        ticks_per_second = self._ticks_since_stats / elapsed
        self._ticks_since_stats = 0
        self._last_stats_time = now

        state = self._state
        logger.info(
            "Simulation[%s]: %.1f ticks/s, frame=%d, score=%d, level=%d, obstacles=%d%s",
            self.session_id[:8],
            ticks_per_second,
            self.frame_count,
            state.score,
            state.level,
            len(state.obstacles),
            self.perf_tracker.get_summary_and_reset(),
        )
