# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from lifemanager.models.habit import Habit, HabitFrequency, HabitStatus
from lifemanager.models.checkin_record import CheckinRecord
from lifemanager.models.achievement_unlock import AchievementUnlock

__all__ = [
    "Habit",
    "HabitFrequency",
    "HabitStatus",
    "CheckinRecord",
    "AchievementUnlock",
]
