"""
ranking_service.py — Habit leaderboard
Active habits ordered by current streak, highest first. The sort is stable,
so habits with equal streaks keep store order (ascending habit id).
"""

from dataclasses import dataclass

from lifemanager.services.checkin_store import CheckinStore
from lifemanager.services.stats_service import PeriodAggregator
from lifemanager.services.streak_service import StreakCalculator
from lifemanager.utils import dates


@dataclass(frozen=True)
class RankItem:
    habit_id: int
    name: str
    color: str
    rank: int
    streak: int
    total_checkins: int
    completion_rate: float


class RankingBuilder:
    def __init__(self, store: CheckinStore):
        self.store = store
        self.streaks = StreakCalculator(store)
        self.stats = PeriodAggregator(store)

    def rank(self, as_of_day: int | None = None) -> list[RankItem]:
        as_of_day = dates.today_epoch_day() if as_of_day is None else as_of_day
        month_start, month_end = dates.month_range(dates.year_month_of(as_of_day))

        rows = [
            (h, self.streaks.streak(h.id, as_of_day), self.store.count_checkins(h.id, as_of_day))
            for h in self.store.list_active_habits()
        ]
        rows.sort(key=lambda row: row[1], reverse=True)

        return [
            RankItem(
                habit_id=habit.id,
                name=habit.name,
                color=habit.color,
                rank=position,
                streak=streak,
                total_checkins=total,
                completion_rate=self.stats.habit_completion_rate(habit.id, month_start, month_end, as_of_day),
            )
            for position, (habit, streak, total) in enumerate(rows, start=1)
        ]
