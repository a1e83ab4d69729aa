"""
exceptions.py — Errors raised by the habit engine.
Store failures are not wrapped: SQLAlchemy errors reach the caller unchanged.
"""


class LifeManagerError(Exception):
    """Base class for engine errors."""


class HabitNotFoundError(LifeManagerError, LookupError):
    def __init__(self, habit_id: int):
        super().__init__(f"Habit {habit_id} not found")
        self.habit_id = habit_id


class InvalidHabitError(LifeManagerError, ValueError):
    """A habit definition or request breaks a habit invariant."""


class InvalidStatusTransitionError(InvalidHabitError):
    def __init__(self, habit_id: int, current: str, requested: str):
        super().__init__(f"Habit {habit_id} cannot move from {current} to {requested}")
        self.habit_id = habit_id
        self.current = current
        self.requested = requested


class ScanCancelledError(LifeManagerError):
    """A long aggregate scan was stopped through its cancellation event."""
