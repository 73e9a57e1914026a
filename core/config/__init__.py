"""Configuration package for the dodger simulation.

- simulation: tuning constants for the step function and tick cadence
- simulation_config: runtime configuration for a driver session
"""
