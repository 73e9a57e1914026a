"""Test doubles for the dodger simulation."""
