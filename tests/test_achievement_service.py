"""Tests for achievement evaluation and the first-unlock log."""

import pytest

from lifemanager.exceptions import HabitNotFoundError
from lifemanager.models.achievement_unlock import AchievementUnlock
from lifemanager.models.habit import HabitStatus
from lifemanager.services.achievement_service import (
    ACHIEVEMENT_DEFINITIONS,
    AchievementCounters,
    AchievementEvaluator,
    AchievementKind,
    AchievementService,
    motivational_message,
)
from lifemanager.services.habit_service import HabitService

from .constants import OCT_1


def by_id(states):
    return {s.id: s for s in states}


class TestEvaluator:
    def test_nothing_unlocked_without_history(self) -> None:
        states = AchievementEvaluator().evaluate(AchievementCounters())

        assert len(states) == len(ACHIEVEMENT_DEFINITIONS)
        assert not any(s.is_unlocked for s in states)
        assert all(s.progress == 0 for s in states)

    def test_streak_of_21_scenario(self) -> None:
        states = by_id(AchievementEvaluator().evaluate(AchievementCounters(max_streak=21, total_checkins=21)))

        assert states["streak_21"].is_unlocked
        assert not states["streak_30"].is_unlocked
        assert states["streak_30"].progress == 21
        assert states["streak_7"].progress == 7

    def test_progress_is_capped_at_threshold(self) -> None:
        counters = AchievementCounters(max_streak=500, total_checkins=900, perfect_day_streak=400)

        for state in AchievementEvaluator().evaluate(counters):
            assert state.progress <= state.target_progress
            assert state.is_unlocked

    def test_kinds_read_their_own_counter(self) -> None:
        states = by_id(AchievementEvaluator().evaluate(AchievementCounters(total_checkins=1)))

        assert states["first_checkin"].is_unlocked
        assert states["first_checkin"].definition.kind == AchievementKind.TOTAL_CHECKINS
        assert not states["streak_7"].is_unlocked
        assert states["perfect_week"].progress == 0


class TestService:
    def test_counters_over_active_habits(self, store, make_habit, check_in) -> None:
        a, b = make_habit("A"), make_habit("B")
        archived = make_habit("Old", status=HabitStatus.ARCHIVED.value)
        check_in(a, range(OCT_1 - 4, OCT_1 + 1))
        check_in(b, [OCT_1, OCT_1 - 10])
        check_in(archived, range(OCT_1 - 50, OCT_1 + 1))

        counters = AchievementService(store).collect_counters(OCT_1)

        assert counters.max_streak == 5
        assert counters.total_checkins == 7
        assert counters.perfect_day_streak == 1

    def test_perfect_day_walk_drops_removed_habit(self, db, store, make_habit, check_in, monkeypatch) -> None:
        a, b = make_habit("A"), make_habit("B")
        b_id = b.id
        check_in(a, range(OCT_1 - 2, OCT_1 + 1))
        check_in(b, [OCT_1])
        original = store.checked_habit_ids_on

        def checked_then_delete(day, habit_ids):
            result = original(day, habit_ids)
            if day == OCT_1:
                HabitService.delete(db, b_id)
            return result

        monkeypatch.setattr(store, "checked_habit_ids_on", checked_then_delete)

        assert AchievementService(store).collect_counters(OCT_1).perfect_day_streak == 3

    def test_future_records_are_not_counted(self, store, make_habit, check_in) -> None:
        habit = make_habit()
        check_in(habit, [OCT_1 + 1])

        assert AchievementService(store).collect_counters(OCT_1).total_checkins == 0

    def test_perfect_week_unlocks(self, store, make_habit, check_in) -> None:
        a, b = make_habit("A"), make_habit("B")
        check_in(a, range(OCT_1 - 6, OCT_1 + 1))
        check_in(b, range(OCT_1 - 6, OCT_1 + 1))

        states = by_id(AchievementService(store).evaluate(OCT_1))

        assert states["perfect_week"].is_unlocked
        assert states["perfect_month"].progress == 7

    def test_stateless_reevaluation(self, store, make_habit, check_in) -> None:
        habit = make_habit()
        check_in(habit, range(OCT_1 - 6, OCT_1 + 1))
        service = AchievementService(store)

        assert by_id(service.evaluate(OCT_1))["streak_7"].is_unlocked
        # a day later without a check-in the streak is gone
        assert not by_id(service.evaluate(OCT_1 + 1))["streak_7"].is_unlocked

    def test_unlock_log_records_first_unlock_only(self, db, store, make_habit, check_in) -> None:
        habit = make_habit()
        check_in(habit, [OCT_1])
        service = AchievementService(store)

        first = by_id(service.evaluate(OCT_1, record_unlocks=True))
        stamp = first["first_checkin"].unlocked_at
        service.evaluate(OCT_1, record_unlocks=True)

        assert stamp is not None
        assert db.query(AchievementUnlock).count() == 1
        assert by_id(service.evaluate(OCT_1))["first_checkin"].unlocked_at == stamp
        assert first["streak_7"].unlocked_at is None

    def test_locked_again_keeps_no_timestamp(self, store, make_habit, check_in) -> None:
        habit = make_habit()
        check_in(habit, range(OCT_1 - 6, OCT_1 + 1))
        service = AchievementService(store)
        service.evaluate(OCT_1, record_unlocks=True)

        later = by_id(service.evaluate(OCT_1 + 3))

        assert not later["streak_7"].is_unlocked
        assert later["streak_7"].unlocked_at is None

    def test_per_habit_evaluation(self, store, make_habit, check_in) -> None:
        a, b = make_habit("A"), make_habit("B")
        check_in(a, range(OCT_1 - 8, OCT_1 + 1))
        check_in(b, [OCT_1])
        service = AchievementService(store)

        assert by_id(service.evaluate_for_habit(a.id, OCT_1))["streak_7"].is_unlocked
        assert not by_id(service.evaluate_for_habit(b.id, OCT_1))["streak_7"].is_unlocked

    def test_per_habit_unknown(self, store) -> None:
        with pytest.raises(HabitNotFoundError):
            AchievementService(store).evaluate_for_habit(7, OCT_1)


@pytest.mark.parametrize(
    ("streak", "fragment"),
    [(0, "fresh start"), (3, "3 days"), (7, "week"), (21, "21 days"), (30, "month"), (120, "120 days")],
)
def test_motivational_message(streak: int, fragment: str) -> None:
    assert fragment in motivational_message(streak)
