"""
stats_service.py — Weekly / monthly roll-ups and calendar heat-maps
Weekly and monthly rates are graded only over elapsed days (future days are
left out of the denominator). The calendar heat-map rate divides by the full
month length instead; the two are kept different on purpose.
"""

import logging
import threading
from dataclasses import dataclass

from lifemanager.exceptions import HabitNotFoundError, ScanCancelledError
from lifemanager.models.habit import Habit
from lifemanager.services.checkin_store import CheckinStore
from lifemanager.utils import dates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyCheckinData:
    day: int
    day_label: str
    completed_count: int
    habit_count: int
    is_today: bool


@dataclass(frozen=True)
class WeeklyStats:
    week_start: int
    week_end: int
    week_label: str
    total_checkins: int
    possible_checkins: int
    completion_rate: float
    is_current_week: bool
    per_day: tuple[DailyCheckinData, ...]


@dataclass(frozen=True)
class MonthlyStats:
    year_month: int
    month_label: str
    total_checkins: int
    possible_checkins: int
    completion_rate: float
    perfect_days: int
    best_streak_within_month: int
    most_frequent_habit_name: str | None


@dataclass(frozen=True)
class CalendarData:
    habit_id: int
    habit_name: str
    habit_color: str
    year_month: int
    checked_days: frozenset[int]
    total_days_in_month: int
    completed_days: int
    completion_rate: float
    previous_month: int
    next_month: int


def _rate(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator > 0 else 0.0


class PeriodAggregator:
    def __init__(self, store: CheckinStore):
        self.store = store

    def _scan_day(self, day: int, habit_ids: list[int]) -> tuple[list[int], list[int]]:
        """(still-active habits, habits checked in on day), both in the order given.

        A habit deleted or deactivated partway through a scan drops out of the
        remaining days.
        """
        active = self.store.active_habit_ids()
        live = [i for i in habit_ids if i in active]
        checked = self.store.checked_habit_ids_on(day, live)
        return live, [i for i in live if i in checked]

    # ------------------------------------------------------------------
    def weekly_stats(self, reference_day: int, today: int | None = None) -> WeeklyStats:
        """Roll-up of the Monday-start week containing reference_day, graded up to today."""
        today = dates.today_epoch_day() if today is None else today
        start, end = dates.week_range(reference_day)
        habit_ids = [h.id for h in self.store.list_active_habits()]

        per_day = []
        total = 0
        possible = 0
        for day in dates.day_range(start, min(end, today)):
            live, checked = self._scan_day(day, habit_ids)
            total += len(checked)
            possible += len(live)
            per_day.append(DailyCheckinData(
                day=day,
                day_label=dates.day_label(day),
                completed_count=len(checked),
                habit_count=len(live),
                is_today=day == today,
            ))

        return WeeklyStats(
            week_start=start,
            week_end=end,
            week_label=dates.week_label(start, end),
            total_checkins=total,
            possible_checkins=possible,
            completion_rate=_rate(total, possible),
            is_current_week=start <= today <= end,
            per_day=tuple(per_day),
        )

    # ------------------------------------------------------------------
    def monthly_stats(self, year_month: int, today: int | None = None,
                      cancel_event: threading.Event | None = None) -> MonthlyStats:
        """Forward scan of a YYYYMM month through min(month end, today).

        Issues a couple of queries per scanned day, so avoid calling it for
        many months in a row without caching. If cancel_event is set between
        two days the scan stops with ScanCancelledError.
        """
        today = dates.today_epoch_day() if today is None else today
        start, end = dates.month_range(year_month)
        habits = self.store.list_active_habits()
        habit_ids = [h.id for h in habits]
        names = {h.id: h.name for h in habits}

        total = 0
        possible = 0
        perfect_days = 0
        best_run = 0
        run = 0
        counts: dict[int, int] = {}

        for day in dates.day_range(start, min(end, today)):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Monthly scan for %s cancelled at day %s", year_month, day)
                raise ScanCancelledError(f"Monthly scan for {year_month} cancelled")

            live, checked = self._scan_day(day, habit_ids)
            possible += len(live)
            total += len(checked)
            for habit_id in checked:
                counts[habit_id] = counts.get(habit_id, 0) + 1

            if live and len(checked) == len(live):
                perfect_days += 1
                run += 1
                best_run = max(best_run, run)
            else:
                run = 0

        # max() keeps the first key on ties, i.e. the earliest encountered habit
        most_frequent = names[max(counts, key=counts.get)] if counts else None

        return MonthlyStats(
            year_month=year_month,
            month_label=dates.month_label(year_month),
            total_checkins=total,
            possible_checkins=possible,
            completion_rate=_rate(total, possible),
            perfect_days=perfect_days,
            best_streak_within_month=best_run,
            most_frequent_habit_name=most_frequent,
        )

    # ------------------------------------------------------------------
    def calendar_data(self, habit_id: int, year_month: int) -> CalendarData:
        habit = self.store.get_habit(habit_id)
        if habit is None:
            raise HabitNotFoundError(habit_id)
        return self._calendar_for(habit, year_month)

    def calendar_overview(self, year_month: int) -> list[CalendarData]:
        """Heat-map data for every active habit."""
        return [self._calendar_for(h, year_month) for h in self.store.list_active_habits()]

    def _calendar_for(self, habit: Habit, year_month: int) -> CalendarData:
        start, end = dates.month_range(year_month)
        total_days = end - start + 1
        checked = frozenset(self.store.list_checkin_days(habit.id, start, end))
        return CalendarData(
            habit_id=habit.id,
            habit_name=habit.name,
            habit_color=habit.color,
            year_month=year_month,
            checked_days=checked,
            total_days_in_month=total_days,
            completed_days=len(checked),
            completion_rate=_rate(len(checked), total_days),
            previous_month=dates.shift_year_month(year_month, -1),
            next_month=dates.shift_year_month(year_month, 1),
        )

    # ------------------------------------------------------------------
    def habit_completion_rate(self, habit_id: int, start: int, end: int, today: int) -> float:
        """One habit's rate over the elapsed days of [start, end]."""
        last = min(end, today)
        elapsed = max(0, last - start + 1)
        if elapsed == 0:
            return 0.0
        return _rate(len(self.store.list_checkin_days(habit_id, start, last)), elapsed)
