"""Dodger exception hierarchy.

Centralised base classes so callers can catch simulation failures without
resorting to bare ``except Exception`` blocks.
"""


class DodgerError(Exception):
    """Root of all dodger domain exceptions."""


class SimulationError(DodgerError):
    """Errors during simulation execution (engine, driver)."""


class DriverStateError(SimulationError):
    """An invalid driver lifecycle transition (e.g. ticking a running driver)."""


class ConfigurationError(DodgerError):
    """Invalid or missing configuration."""
