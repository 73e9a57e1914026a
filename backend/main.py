"""Headless entry point for the dodger simulation.

Runs one session at the normal tick cadence with no presentation layer. The
player never moves, so a run ends at the first collision or at the time
limit; useful for soak testing the driver and tuning difficulty.
"""

import argparse
import asyncio
import dataclasses
import logging
from typing import List, Optional

from backend.logging_config import configure_logging
from backend.simulation_runner import SimulationRunner
from core.config.simulation_config import SimulationConfig
from core.game_state import SimulationState

logger = logging.getLogger(__name__)


async def run_headless(runner: SimulationRunner, max_seconds: float) -> SimulationState:
    """Tick ``runner`` until game over or ``max_seconds`` elapse, then close it."""
    subscription = runner.subscribe(maxsize=1)

    async def wait_for_game_over() -> None:
        async for payload in subscription:
            if payload.state.is_game_over:
                return

    runner.start()
    try:
        await asyncio.wait_for(wait_for_game_over(), timeout=max_seconds)
    except asyncio.TimeoutError:
        logger.info("Time limit of %.2fs reached", max_seconds)
    finally:
        await runner.close()

    state = runner.current_state()
    logger.info(
        "Session finished: frame=%d, score=%d, level=%d, high score=%d, game over=%s",
        runner.frame_count,
        state.score,
        state.level,
        state.high_score,
        state.is_game_over,
    )
    return state


def main(argv: Optional[List[str]] = None) -> None:
    """Parse command-line arguments and run one headless session."""
    parser = argparse.ArgumentParser(
        description="Space Dodger headless simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run until game over or 30 seconds
  python -m backend.main

  # Reproducible run with verbose per-tick logging
  python -m backend.main --seed 42 --log-level DEBUG
        """,
    )
    parser.add_argument(
        "--seconds",
        type=float,
        default=30.0,
        help="Wall-clock time limit for the session (default: 30)",
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Random seed for deterministic spawning (optional)"
    )
    parser.add_argument(
        "--tick-ms",
        type=int,
        default=None,
        help="Milliseconds between ticks (default: DODGER_TICK_INTERVAL_MS or 16)",
    )
    parser.add_argument(
        "--log-level", default=None, help="Log level (default: DODGER_LOG_LEVEL or INFO)"
    )
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)

    config = SimulationConfig.from_env()
    overrides = {}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.tick_ms is not None:
        overrides["tick_interval_ms"] = args.tick_ms
    if overrides:
        config = dataclasses.replace(config, **overrides)

    logger.info(
        "Starting headless session: tick=%dms, seed=%s, limit=%.1fs",
        config.tick_interval_ms,
        config.seed,
        args.seconds,
    )
    asyncio.run(run_headless(SimulationRunner(config=config), args.seconds))


if __name__ == "__main__":
    main()
