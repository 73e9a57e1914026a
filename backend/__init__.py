"""Driver side of the dodger simulation.

The backend owns the single live ``SimulationState`` of a session, ticks it
at a fixed cadence and publishes snapshots to the presentation layer.
"""

__version__ = "1.0.0"
