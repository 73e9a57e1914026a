"""Backend runner package.

This package provides modular components for the SimulationRunner:
- CommandHandlerMixin: Command validation and application
- StatePublisher: Snapshot versioning, fan-out and serialization
- PerfTracker: Per-tick timing statistics
"""

from backend.runner.command_handlers import CommandHandlerMixin

__all__ = ["CommandHandlerMixin"]
