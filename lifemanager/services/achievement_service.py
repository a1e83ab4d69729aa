"""
achievement_service.py — Achievement catalog and evaluation
Achievements are recomputed from the current counters on every call, so an
unlocked streak badge goes back to locked once the streak resets. The
first-unlock timestamps live in a separate append-only log for callers that
want to show permanent badges.
"""

import logging
import random
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError

from lifemanager.exceptions import HabitNotFoundError
from lifemanager.models.achievement_unlock import AchievementUnlock
from lifemanager.services.checkin_store import CheckinStore
from lifemanager.services.streak_service import StreakCalculator
from lifemanager.utils import dates

logger = logging.getLogger(__name__)


class AchievementKind(str, Enum):
    TOTAL_CHECKINS = "TOTAL_CHECKINS"
    STREAK = "STREAK"
    PERFECT_DAYS = "PERFECT_DAYS"


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    kind: AchievementKind
    name: str
    description: str
    icon: str
    color: str
    threshold: int


@dataclass(frozen=True)
class AchievementCounters:
    max_streak: int = 0
    total_checkins: int = 0
    perfect_day_streak: int = 0


@dataclass(frozen=True)
class AchievementState:
    definition: AchievementDefinition
    progress: int
    is_unlocked: bool
    unlocked_at: datetime | None = None

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def target_progress(self) -> int:
        return self.definition.threshold


ACHIEVEMENT_DEFINITIONS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition("first_checkin", AchievementKind.TOTAL_CHECKINS, "First Step",
                          "Complete your first check-in", "star", "#FFD700", 1),
    AchievementDefinition("streak_7", AchievementKind.STREAK, "Warming Up",
                          "Check in 7 days in a row", "local_fire_department", "#FF6B6B", 7),
    AchievementDefinition("streak_21", AchievementKind.STREAK, "Habit Formed",
                          "Check in 21 days in a row", "emoji_events", "#4ECDC4", 21),
    AchievementDefinition("streak_30", AchievementKind.STREAK, "Monthly Champion",
                          "Check in 30 days in a row", "military_tech", "#FFE66D", 30),
    AchievementDefinition("streak_100", AchievementKind.STREAK, "Hundred Days",
                          "Check in 100 days in a row", "workspace_premium", "#FF69B4", 100),
    AchievementDefinition("total_100", AchievementKind.TOTAL_CHECKINS, "Centurion",
                          "Reach 100 check-ins in total", "verified", "#9B59B6", 100),
    AchievementDefinition("perfect_week", AchievementKind.PERFECT_DAYS, "Perfect Week",
                          "Complete every habit each day for a week", "stars", "#3498DB", 7),
    AchievementDefinition("perfect_month", AchievementKind.PERFECT_DAYS, "Perfect Month",
                          "Complete every habit each day for 30 days", "diamond", "#E74C3C", 30),
)

_MAX_PERFECT_THRESHOLD = max(
    d.threshold for d in ACHIEVEMENT_DEFINITIONS if d.kind == AchievementKind.PERFECT_DAYS
)


class AchievementEvaluator:
    """Pure mapping from counters to achievement states."""

    def __init__(self, definitions: tuple[AchievementDefinition, ...] = ACHIEVEMENT_DEFINITIONS):
        self.definitions = definitions

    @staticmethod
    def _value_for(kind: AchievementKind, counters: AchievementCounters) -> int:
        if kind == AchievementKind.STREAK:
            return counters.max_streak
        if kind == AchievementKind.TOTAL_CHECKINS:
            return counters.total_checkins
        return counters.perfect_day_streak

    def evaluate(self, counters: AchievementCounters) -> list[AchievementState]:
        states = []
        for definition in self.definitions:
            value = self._value_for(definition.kind, counters)
            states.append(AchievementState(
                definition=definition,
                progress=min(value, definition.threshold),
                is_unlocked=value >= definition.threshold,
            ))
        return states


class AchievementService:
    def __init__(self, store: CheckinStore, evaluator: AchievementEvaluator | None = None):
        self.store = store
        self.streaks = StreakCalculator(store)
        self.evaluator = evaluator or AchievementEvaluator()

    # ------------------------------------------------------------------
    def collect_counters(self, today: int) -> AchievementCounters:
        """Max current streak, total check-ins and perfect-day run over active habits."""
        habits = self.store.list_active_habits()
        return AchievementCounters(
            max_streak=self.streaks.max_current_streak(habits, today),
            total_checkins=sum(self.store.count_checkins(h.id, today) for h in habits),
            perfect_day_streak=self._perfect_day_streak([h.id for h in habits], today),
        )

    def _perfect_day_streak(self, habit_ids: list[int], today: int) -> int:
        """Consecutive perfect days ending today, counted no further than the largest threshold.

        Habits that stop being active while the walk is running are dropped
        for the days still to check.
        """
        run = 0
        day = today
        while run < _MAX_PERFECT_THRESHOLD:
            active = self.store.active_habit_ids()
            habit_ids = [i for i in habit_ids if i in active]
            if not habit_ids:
                break
            if len(self.store.checked_habit_ids_on(day, habit_ids)) != len(habit_ids):
                break
            run += 1
            day -= 1
        return run

    # ------------------------------------------------------------------
    def evaluate(self, today: int | None = None, record_unlocks: bool = False) -> list[AchievementState]:
        today = dates.today_epoch_day() if today is None else today
        states = self.evaluator.evaluate(self.collect_counters(today))
        if record_unlocks:
            self.record_unlocks(states)
        return self._with_unlock_times(states)

    def evaluate_for_habit(self, habit_id: int, today: int | None = None) -> list[AchievementState]:
        """Achievements judged on a single habit's own streak and totals."""
        today = dates.today_epoch_day() if today is None else today
        if self.store.get_habit(habit_id) is None:
            raise HabitNotFoundError(habit_id)
        counters = AchievementCounters(
            max_streak=self.streaks.streak(habit_id, today),
            total_checkins=self.store.count_checkins(habit_id, today),
            perfect_day_streak=0,
        )
        return self.evaluator.evaluate(counters)

    # ------------------------------------------------------------------
    def _unlock_log(self) -> dict[str, datetime]:
        rows = self.store.db.query(AchievementUnlock).all()
        return {r.achievement_id: r.unlocked_at for r in rows}

    def _with_unlock_times(self, states: list[AchievementState]) -> list[AchievementState]:
        log = self._unlock_log()
        return [replace(s, unlocked_at=log.get(s.id)) if s.is_unlocked else s for s in states]

    def record_unlocks(self, states: list[AchievementState]) -> list[str]:
        """Append first-unlock rows for unlocked achievements not yet in the log."""
        known = self._unlock_log()
        now = datetime.now(timezone.utc)
        new_ids = [s.id for s in states if s.is_unlocked and s.id not in known]
        if not new_ids:
            return []
        try:
            for achievement_id in new_ids:
                self.store.db.add(AchievementUnlock(achievement_id=achievement_id, unlocked_at=now))
            self.store.db.commit()
        except SQLAlchemyError:
            self.store.db.rollback()
            raise
        logger.info("Achievements unlocked: %s", ", ".join(new_ids))
        return new_ids


MOTIVATIONAL_MESSAGES = (
    "Great job! Keep the momentum going!",
    "Every check-in is a step forward!",
    "Your effort is shaping a better you!",
    "Another day done, keep it up!",
    "Consistency wins!",
    "A new day, a new start!",
    "Action is the ladder to success!",
    "Better than yesterday!",
    "Small steps go a long way!",
    "Keep improving every day!",
)


def motivational_message(streak: int) -> str:
    if streak >= 100:
        return f"Legendary! {streak} days in a row, you are the example to follow!"
    if streak >= 30:
        return "Incredible! A whole month of consistency, this habit is part of you now!"
    if streak >= 21:
        return "Congratulations! 21 days, the habit is formed!"
    if streak >= 7:
        return "A full week in a row! You're building a strong habit!"
    if streak >= 3:
        return f"{streak} days in a row! A good start is half the battle!"
    if streak == 1:
        return random.choice(MOTIVATIONAL_MESSAGES)
    return "A fresh start! Let's build a good habit together!"
