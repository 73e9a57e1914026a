"""Tests for the tick driver: lifecycle, gating and command serialization."""

import asyncio
import math

import pytest

from backend.simulation_runner import SimulationRunner
from core.entities import Obstacle
from core.exceptions import DriverStateError, SimulationError
from core.game_state import SimulationState
from core.simulation import SimulationEngine
from core.state_machine import DriverState
from tests.fakes.scripted_random import ScriptedRandom


def _doomed_runner(fast_config):
    """A runner whose first obstacle falls straight onto the player."""
    # Spawn roll, x=0.5, no speed jitter, size 1.0; no spawns afterwards
    engine = SimulationEngine(rng=ScriptedRandom([0.0, 0.5, 0.0, 0.5]))
    return SimulationRunner(engine=engine, config=fast_config, session_id="doomed")


def _play_until_game_over(runner, max_ticks=1000):
    for _ in range(max_ticks):
        if not runner.step():
            break
    assert runner.state.is_game_over


def _live_tick_loops():
    return [
        task
        for task in asyncio.all_tasks()
        if task.get_name().startswith("dodger_tick_") and not task.done()
    ]


class TestManualStepping:
    """Headless stepping without an event loop."""

    def test_initial_snapshot_is_published(self, runner):
        latest = runner.publisher.latest

        assert latest is not None
        assert latest.version == 1
        assert latest.frame == 0
        assert latest.state == SimulationState()
        assert runner.driver_state is DriverState.IDLE

    def test_step_advances_one_tick(self, runner):
        assert runner.step() is True

        assert runner.frame_count == 1
        assert runner.current_state().score == 1
        assert runner.publisher.latest.frame == 1

    def test_paused_tick_is_skipped(self, runner):
        runner.toggle_pause()
        before = runner.current_state()

        assert runner.step() is False

        assert runner.current_state() is before
        assert runner.frame_count == 0
        assert runner.skipped_ticks == 1

    def test_game_over_tick_is_skipped(self, fast_config):
        runner = _doomed_runner(fast_config)
        _play_until_game_over(runner)
        frames = runner.frame_count

        assert runner.step() is False
        assert runner.frame_count == frames

    def test_advance_failure_stops_driver(self, fast_config):
        class BrokenEngine(SimulationEngine):
            def advance(self, state):
                raise ZeroDivisionError("boom")

        runner = SimulationRunner(engine=BrokenEngine(seed=1), config=fast_config)

        with pytest.raises(SimulationError):
            runner.step()
        assert runner.driver_state is DriverState.STOPPED


class TestCommandsWithoutLoop:
    def test_set_player_x_applies_immediately(self, runner):
        runner.set_player_x(0.2)
        assert runner.state.player_x == 0.2

        runner.set_player_x(7)
        assert runner.state.player_x == 1.0

    def test_nan_position_is_ignored(self, runner):
        runner.set_player_x(0.3)
        runner.set_player_x(math.nan)

        assert runner.state.player_x == 0.3

    @pytest.mark.parametrize("data", [None, {}, {"x": "left"}, {"x": True}, {"x": [0.5]}])
    def test_invalid_position_data_is_rejected(self, runner, data):
        response = runner.handle_command("set_player_x", data)

        assert response["success"] is False
        assert runner.state.player_x == 0.5

    def test_numeric_string_position_is_accepted(self, runner):
        assert runner.handle_command("set_player_x", {"x": "0.75"}) is None
        assert runner.state.player_x == 0.75

    def test_toggle_pause_twice(self, runner):
        runner.toggle_pause()
        assert runner.state.is_paused is True

        runner.toggle_pause()
        assert runner.state == SimulationState()

    def test_unknown_command(self, runner):
        response = runner.handle_command("fire_lasers")

        assert response == {"success": False, "error": "Unknown command: fire_lasers"}

    def test_restart_without_event_loop_resets_in_place(self, fast_config):
        runner = _doomed_runner(fast_config)
        _play_until_game_over(runner)
        high_score = runner.state.high_score

        runner.handle_command("restart")

        assert runner.state == SimulationState(high_score=high_score)
        assert runner.frame_count == 0
        assert runner.engine.id_generator.peek() == 0
        assert runner.driver_state is DriverState.IDLE

    def test_every_command_publishes_a_snapshot(self, runner):
        runner.set_player_x(0.1)
        runner.toggle_pause()

        assert runner.publisher.version == 3
        assert runner.publisher.latest.state.is_paused is True

    def test_status(self, runner):
        runner.step()

        status = runner.get_status()

        assert status["session_id"] == "test-session"
        assert status["driver_state"] == "idle"
        assert status["frame"] == 1
        assert status["score"] == 1
        assert status["paused"] is False
        assert status["game_over"] is False
        assert status["next_obstacle_id"] == 0


def test_start_requires_event_loop(runner):
    with pytest.raises(RuntimeError):
        runner.start()


class TestTickLoop:
    @pytest.mark.asyncio
    async def test_start_ticks_until_stopped(self, runner):
        runner.start()
        assert runner.running is True

        await asyncio.sleep(0.05)
        await runner.stop()

        frames = runner.frame_count
        assert frames > 0
        assert runner.state.score == frames
        assert runner.driver_state is DriverState.STOPPED

        await asyncio.sleep(0.02)
        assert runner.frame_count == frames

    @pytest.mark.asyncio
    async def test_second_start_replaces_first_loop(self, runner):
        runner.start()
        first_task = runner._tick_task
        runner.start()
        second_task = runner._tick_task

        await asyncio.sleep(0.02)

        assert first_task is not second_task
        assert first_task.done()
        assert not second_task.done()
        await runner.stop()

    @pytest.mark.asyncio
    async def test_pause_skips_ticks_without_stopping_loop(self, runner):
        runner.start()
        await asyncio.sleep(0.02)

        await runner.handle_command_async("toggle_pause")
        frames = runner.frame_count
        await asyncio.sleep(0.03)

        assert runner.frame_count == frames
        assert runner.skipped_ticks > 0
        assert runner.running is True

        await runner.handle_command_async("toggle_pause")
        await asyncio.sleep(0.03)
        assert runner.frame_count > frames
        await runner.stop()

    @pytest.mark.asyncio
    async def test_game_over_stops_advancing(self, fast_config):
        runner = _doomed_runner(fast_config)
        _play_until_game_over(runner)
        state = runner.state

        runner.start()
        await asyncio.sleep(0.03)
        await runner.stop()

        assert runner.state is state

    @pytest.mark.asyncio
    async def test_restart_carries_high_score_and_resumes(self, fast_config):
        runner = _doomed_runner(fast_config)
        _play_until_game_over(runner)
        high_score = runner.state.high_score

        state = await runner.restart()

        assert state.score == 0
        assert state.high_score == high_score
        assert state.is_game_over is False
        assert runner.engine.id_generator.peek() == 0
        assert runner.running is True

        await asyncio.sleep(0.02)
        assert runner.state.score > 0
        await runner.stop()

    @pytest.mark.asyncio
    async def test_restart_command_is_scheduled_on_the_loop(self, runner):
        runner.start()
        await runner.handle_command_async("toggle_pause")
        assert runner.state.is_paused is True

        runner.handle_command("restart")
        await asyncio.sleep(0.02)

        assert runner.running is True
        assert runner.state.is_paused is False
        assert runner.state.score > 0
        await runner.stop()

    @pytest.mark.asyncio
    async def test_repeated_restart_commands_leave_one_loop(self, runner):
        runner.start()
        await asyncio.sleep(0.02)

        runner.handle_command("restart")
        runner.handle_command("restart")
        await asyncio.sleep(0.05)

        assert len(_live_tick_loops()) == 1
        assert runner.running is True

        await runner.stop()
        assert _live_tick_loops() == []
        frames = runner.frame_count
        await asyncio.sleep(0.02)
        assert runner.frame_count == frames

    @pytest.mark.asyncio
    async def test_concurrent_restarts_leave_one_loop(self, runner):
        runner.start()

        await asyncio.gather(runner.restart(), runner.restart())

        assert len(_live_tick_loops()) == 1
        assert runner._tick_task in _live_tick_loops()

        await runner.stop()
        assert _live_tick_loops() == []

    @pytest.mark.asyncio
    async def test_stop_racing_a_restart_leaves_at_most_one_loop(self, runner):
        runner.start()
        await asyncio.sleep(0.01)

        await asyncio.gather(runner.restart(), runner.stop())

        assert len(_live_tick_loops()) <= 1
        await runner.stop()
        assert _live_tick_loops() == []
        assert runner.driver_state is DriverState.STOPPED

    @pytest.mark.asyncio
    async def test_async_command_is_applied_before_returning(self, runner):
        runner.start()

        response = await runner.handle_command_async("set_player_x", {"x": 0.05})

        assert response is None
        assert runner.state.player_x == 0.05
        await runner.stop()

    @pytest.mark.asyncio
    async def test_async_command_errors_are_returned(self, runner):
        runner.start()

        response = await runner.handle_command_async("set_player_x", {"x": "far left"})

        assert response["success"] is False
        await runner.stop()

    @pytest.mark.asyncio
    async def test_queued_commands_apply_in_order(self, runner):
        runner.start()

        runner.set_player_x(0.1)
        runner.set_player_x(0.9)
        runner.toggle_pause()
        await asyncio.sleep(0.01)

        assert runner.state.player_x == 0.9
        assert runner.state.is_paused is True
        await runner.stop()

    @pytest.mark.asyncio
    async def test_commands_queued_before_stop_are_not_lost(self, runner):
        runner.start()
        runner.set_player_x(0.33)

        await runner.stop()

        assert runner.state.player_x == 0.33

    @pytest.mark.asyncio
    async def test_step_rejected_while_loop_runs(self, runner):
        runner.start()

        with pytest.raises(DriverStateError):
            runner.step()
        await runner.stop()

    @pytest.mark.asyncio
    async def test_subscribers_see_snapshots_in_order(self, runner):
        subscription = runner.subscribe(maxsize=0)
        runner.start()

        payloads = [await subscription.get() for _ in range(5)]
        await runner.stop()

        versions = [p.version for p in payloads]
        assert versions == sorted(versions)
        assert len(set(versions)) == 5
        assert payloads[0].state == SimulationState()
        assert [p.state.score for p in payloads[1:]] == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_close_ends_subscriptions(self, runner):
        subscription = runner.subscribe()
        runner.start()
        await asyncio.sleep(0.01)

        await runner.close()

        received = [payload async for payload in subscription]
        assert len(received) <= 1
        assert subscription.closed is True
        assert runner.driver_state is DriverState.STOPPED


def test_obstacle_ids_survive_manual_session(fast_config):
    """Spawned obstacles keep their ids as they fall."""
    engine = SimulationEngine(rng=ScriptedRandom([0.0, 0.1, 0.0, 0.0]))
    runner = SimulationRunner(engine=engine, config=fast_config)

    runner.step()
    runner.step()

    (obstacle,) = runner.state.obstacles
    assert isinstance(obstacle, Obstacle)
    assert obstacle.id == 0


def test_independent_sessions_do_not_share_ids(fast_config):
    a = SimulationRunner(engine=SimulationEngine(seed=3), config=fast_config)
    b = SimulationRunner(engine=SimulationEngine(seed=3), config=fast_config)
    a.engine.spawn_obstacle(1)

    assert b.engine.spawn_obstacle(1).id == 0
