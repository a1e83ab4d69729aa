"""
streak_service.py — Consecutive-day streaks
Current streak walks backward one day at a time from the reference day and
stops at the first missing check-in. Longest streak is a forward scan over
the habit's whole history.
"""

from lifemanager.models.habit import Habit
from lifemanager.services.checkin_store import CheckinStore


class StreakCalculator:
    def __init__(self, store: CheckinStore):
        self.store = store

    def streak(self, habit_id: int, as_of_day: int) -> int:
        """Consecutive checked days ending at and including as_of_day.

        An unknown habit has no history and yields 0.
        """
        streak = 0
        day = as_of_day
        while self.store.is_checked_in(habit_id, day):
            streak += 1
            day -= 1
        return streak

    def longest_streak(self, habit_id: int, today: int) -> int:
        """Longest run of consecutive checked days up to and including today."""
        best = 0
        run = 0
        previous = None
        for day in self.store.list_all_checkin_days(habit_id, today):
            run = run + 1 if previous is not None and day == previous + 1 else 1
            best = max(best, run)
            previous = day
        return best

    def max_current_streak(self, habits: list[Habit], today: int) -> int:
        return max((self.streak(h.id, today) for h in habits), default=0)
