"""
habit_service.py — Habits & check-ins
Creates and edits habits, moves them through ACTIVE / PAUSED / ARCHIVED,
toggles daily check-ins, records retroactive ones, and assembles the
overview and per-habit detail views from the streak and stats engines.
"""

import json
import logging
import threading
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lifemanager.config import RECENT_CHECKIN_DAYS
from lifemanager.exceptions import HabitNotFoundError, InvalidHabitError, InvalidStatusTransitionError
from lifemanager.models.habit import Habit, HabitFrequency, HabitStatus
from lifemanager.services.achievement_service import AchievementService, AchievementState
from lifemanager.services.checkin_store import CheckinStore
from lifemanager.services.stats_service import PeriodAggregator
from lifemanager.services.streak_service import StreakCalculator
from lifemanager.utils import dates

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "name", "description", "icon", "color", "frequency", "target_times", "custom_frequency",
    "reminder_time", "is_numeric", "target_value", "unit", "linked_goal_id",
)

# current status -> statuses it may move to
_TRANSITIONS = {
    HabitStatus.ACTIVE.value: {HabitStatus.PAUSED.value, HabitStatus.ARCHIVED.value},
    HabitStatus.PAUSED.value: {HabitStatus.ACTIVE.value},
    HabitStatus.ARCHIVED.value: set(),
}

_locks: dict[int, threading.Lock] = {}
_locks_guard = threading.Lock()


def _habit_lock(habit_id: int) -> threading.Lock:
    """One in-flight check-in mutation per habit."""
    with _locks_guard:
        return _locks.setdefault(habit_id, threading.Lock())


def _release_habit_lock(habit_id: int):
    with _locks_guard:
        _locks.pop(habit_id, None)


@dataclass(frozen=True)
class HabitWithStatus:
    habit: Habit
    is_checked_today: bool
    today_value: float | None
    streak: int
    total_checkins: int


@dataclass(frozen=True)
class HabitOverview:
    active_habits: int
    today_completed: int
    today_completion_rate: float
    weekly_completion_rate: float
    longest_streak: int


@dataclass(frozen=True)
class HabitDetail:
    habit: Habit
    current_streak: int
    longest_streak: int
    total_checkins: int
    first_checkin_day: int | None
    completion_rate_week: float
    completion_rate_month: float
    recent_checkins: tuple[int, ...]
    achievements: tuple[AchievementState, ...]


def frequency_display_text(frequency: str, target_times: int) -> str:
    if frequency == HabitFrequency.WEEKDAYS.value:
        return "Weekdays"
    if frequency == HabitFrequency.N_TIMES_PER_WEEK.value:
        return f"{target_times}x per week"
    if frequency == HabitFrequency.N_TIMES_PER_MONTH.value:
        return f"{target_times}x per month"
    if frequency == HabitFrequency.CUSTOM.value:
        return "Custom"
    return "Every day"


class HabitService:
    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------
    @staticmethod
    def _apply(h: Habit, data: dict):
        for k in _EDITABLE_FIELDS:
            if k not in data:
                continue
            v = data[k]
            if k == "custom_frequency" and isinstance(v, (dict, list)):
                v = json.dumps(v)
            setattr(h, k, v)

    @staticmethod
    def _validate(h: Habit):
        if not (h.name or "").strip():
            raise InvalidHabitError("Habit name must not be blank")
        if h.frequency not in {f.value for f in HabitFrequency}:
            raise InvalidHabitError(f"Unknown frequency: {h.frequency}")
        if h.target_times is None or h.target_times < 1:
            raise InvalidHabitError("target_times must be at least 1")
        if h.is_numeric:
            if h.target_value is None or h.target_value <= 0:
                raise InvalidHabitError("A numeric habit needs a positive target_value")
        else:
            h.target_value = None

    @staticmethod
    def create(db: Session, data: dict) -> Habit:
        h = Habit(
            name=data.get("name"),
            frequency=HabitFrequency.DAILY.value,
            target_times=1,
            is_numeric=False,
            status=HabitStatus.ACTIVE.value,
        )
        HabitService._apply(h, data)
        HabitService._validate(h)
        try:
            db.add(h)
            db.commit()
            db.refresh(h)
        except SQLAlchemyError:
            db.rollback()
            raise
        logger.info("Created habit %s (%s)", h.id, h.name)
        return h

    @staticmethod
    def get(db: Session, habit_id: int) -> Habit:
        h = CheckinStore(db).get_habit(habit_id)
        if h is None:
            raise HabitNotFoundError(habit_id)
        return h

    @staticmethod
    def list_habits(db: Session, status: str | None = None) -> list[Habit]:
        return CheckinStore(db).list_habits(status)

    @staticmethod
    def update(db: Session, habit_id: int, data: dict) -> Habit:
        h = HabitService.get(db, habit_id)
        HabitService._apply(h, data)
        try:
            HabitService._validate(h)
            db.commit()
            db.refresh(h)
        except (SQLAlchemyError, InvalidHabitError):
            db.rollback()
            raise
        return h

    @staticmethod
    def delete(db: Session, habit_id: int):
        """Delete a habit together with all of its check-in records."""
        h = HabitService.get(db, habit_id)
        try:
            db.delete(h)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        _release_habit_lock(habit_id)
        logger.info("Deleted habit %s", habit_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @staticmethod
    def _transition(db: Session, habit_id: int, target: HabitStatus) -> Habit:
        h = HabitService.get(db, habit_id)
        if h.status == target.value:
            return h
        if target.value not in _TRANSITIONS.get(h.status, set()):
            logger.warning("Rejected status change for habit %s: %s -> %s", habit_id, h.status, target.value)
            raise InvalidStatusTransitionError(habit_id, h.status, target.value)
        try:
            h.status = target.value
            db.commit()
            db.refresh(h)
        except SQLAlchemyError:
            db.rollback()
            raise
        return h

    @staticmethod
    def pause(db: Session, habit_id: int) -> Habit:
        return HabitService._transition(db, habit_id, HabitStatus.PAUSED)

    @staticmethod
    def resume(db: Session, habit_id: int) -> Habit:
        return HabitService._transition(db, habit_id, HabitStatus.ACTIVE)

    @staticmethod
    def archive(db: Session, habit_id: int) -> Habit:
        return HabitService._transition(db, habit_id, HabitStatus.ARCHIVED)

    # ------------------------------------------------------------------
    # Check-ins
    # ------------------------------------------------------------------
    @staticmethod
    def toggle_checkin(db: Session, habit_id: int, value: float | None = None, today: int | None = None) -> bool:
        """Flip today's check-in. Returns True if the habit is now checked in."""
        today = dates.today_epoch_day() if today is None else today
        HabitService.get(db, habit_id)
        store = CheckinStore(db)
        with _habit_lock(habit_id):
            if store.get_checkin_record(habit_id, today):
                store.delete_checkin_record(habit_id, today)
                return False
            store.upsert_checkin_record(habit_id, today, value=value)
            return True

    @staticmethod
    def update_numeric_value(db: Session, habit_id: int, value: float, today: int | None = None):
        """Record today's progress for a numeric habit, revising any earlier value."""
        today = dates.today_epoch_day() if today is None else today
        h = HabitService.get(db, habit_id)
        if not h.is_numeric:
            raise InvalidHabitError(f"Habit {habit_id} is not numeric")
        with _habit_lock(habit_id):
            return CheckinStore(db).upsert_checkin_record(habit_id, today, value=value)

    @staticmethod
    def retro_checkin(db: Session, habit_id: int, day: int, note: str = "", today: int | None = None) -> bool:
        """Mark a past day as done.

        Today and future days are ignored, as is a day that already has a
        record (its note and value are kept). Returns True only when a new
        record was written.
        """
        today = dates.today_epoch_day() if today is None else today
        HabitService.get(db, habit_id)
        if day >= today:
            logger.warning("Ignored retroactive check-in for habit %s on day %s (today is %s)", habit_id, day, today)
            return False
        with _habit_lock(habit_id):
            inserted = CheckinStore(db).insert_checkin_record_if_absent(habit_id, day, note=note)
        if not inserted:
            logger.debug("Habit %s already has a record on day %s", habit_id, day)
        return inserted

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    @staticmethod
    def habits_with_status(db: Session, today: int | None = None) -> list[HabitWithStatus]:
        """All active habits with today's status."""
        today = dates.today_epoch_day() if today is None else today
        store = CheckinStore(db)
        streaks = StreakCalculator(store)
        result = []
        for h in store.list_active_habits():
            lookup = store.get_checkin_record(h.id, today)
            result.append(HabitWithStatus(
                habit=h,
                is_checked_today=bool(lookup) and lookup.completed,
                today_value=lookup.value if lookup else None,
                streak=streaks.streak(h.id, today),
                total_checkins=store.count_checkins(h.id, today),
            ))
        return result

    @staticmethod
    def overview(db: Session, today: int | None = None) -> HabitOverview:
        today = dates.today_epoch_day() if today is None else today
        store = CheckinStore(db)
        habits = store.list_active_habits()
        done = len(store.checked_habit_ids_on(today, [h.id for h in habits]))
        weekly = PeriodAggregator(store).weekly_stats(today, today)
        return HabitOverview(
            active_habits=len(habits),
            today_completed=done,
            today_completion_rate=done / len(habits) if habits else 0.0,
            weekly_completion_rate=weekly.completion_rate,
            longest_streak=StreakCalculator(store).max_current_streak(habits, today),
        )

    @staticmethod
    def detail(db: Session, habit_id: int, today: int | None = None) -> HabitDetail:
        today = dates.today_epoch_day() if today is None else today
        h = HabitService.get(db, habit_id)
        store = CheckinStore(db)
        streaks = StreakCalculator(store)
        stats = PeriodAggregator(store)

        week_start, week_end = dates.week_range(today)
        month_start, month_end = dates.month_range(dates.year_month_of(today))
        recent = store.list_checkin_days(habit_id, today - RECENT_CHECKIN_DAYS, today)

        return HabitDetail(
            habit=h,
            current_streak=streaks.streak(habit_id, today),
            longest_streak=streaks.longest_streak(habit_id, today),
            total_checkins=store.count_checkins(habit_id, today),
            first_checkin_day=store.first_checkin_day(habit_id),
            completion_rate_week=stats.habit_completion_rate(habit_id, week_start, week_end, today),
            completion_rate_month=stats.habit_completion_rate(habit_id, month_start, month_end, today),
            recent_checkins=tuple(sorted(recent)),
            achievements=tuple(AchievementService(store).evaluate_for_habit(habit_id, today)),
        )
