"""Habit check-in and statistics engine for the Life Manager app."""

__version__ = "0.1.0"
