"""
checkin_store.py — Storage accessor for habits and their per-day check-ins
Thin query layer over the SQLAlchemy session. Lookups report absence
explicitly (Present / ABSENT) instead of handing back nullable rows.
Database errors are rolled back and re-raised, never swallowed.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lifemanager.models.habit import Habit, HabitStatus
from lifemanager.models.checkin_record import CheckinRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Present:
    """A check-in row exists for the (habit, day) pair."""
    completed: bool
    value: float | None = None
    note: str = ""


class _Absent:
    """No evidence for the day: the habit was not done."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "ABSENT"


ABSENT = _Absent()

CheckinLookup = Present | _Absent


class CheckinStore:
    """Habit and check-in queries bound to one database session."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Habits
    # ------------------------------------------------------------------
    def get_habit(self, habit_id: int) -> Habit | None:
        return self.db.get(Habit, habit_id)

    def list_active_habits(self) -> list[Habit]:
        return (
            self.db.query(Habit)
            .filter(Habit.status == HabitStatus.ACTIVE.value)
            .order_by(Habit.id.asc())
            .all()
        )

    def active_habit_ids(self) -> set[int]:
        rows = self.db.query(Habit.id).filter(Habit.status == HabitStatus.ACTIVE.value).all()
        return {r.id for r in rows}

    def list_habits(self, status: str | None = None) -> list[Habit]:
        query = self.db.query(Habit)
        if status:
            query = query.filter(Habit.status == status)
        return query.order_by(Habit.id.asc()).all()

    # ------------------------------------------------------------------
    # Check-in reads
    # ------------------------------------------------------------------
    def _record(self, habit_id: int, day: int) -> CheckinRecord | None:
        return self.db.query(CheckinRecord).filter_by(habit_id=habit_id, day=day).first()

    def get_checkin_record(self, habit_id: int, day: int) -> CheckinLookup:
        row = self._record(habit_id, day)
        if row is None:
            return ABSENT
        return Present(completed=bool(row.completed), value=row.value, note=row.note or "")

    def is_checked_in(self, habit_id: int, day: int) -> bool:
        hit = (
            self.db.query(CheckinRecord.id)
            .filter(
                CheckinRecord.habit_id == habit_id,
                CheckinRecord.day == day,
                CheckinRecord.completed.is_(True),
            )
            .first()
        )
        return hit is not None

    def list_checkin_days(self, habit_id: int, start_day: int, end_day: int) -> set[int]:
        """Completed days in [start_day, end_day]."""
        rows = (
            self.db.query(CheckinRecord.day)
            .filter(
                CheckinRecord.habit_id == habit_id,
                CheckinRecord.completed.is_(True),
                CheckinRecord.day >= start_day,
                CheckinRecord.day <= end_day,
            )
            .all()
        )
        return {r.day for r in rows}

    def list_all_checkin_days(self, habit_id: int, up_to_day: int) -> list[int]:
        """Every completed day up to and including up_to_day, ascending."""
        rows = (
            self.db.query(CheckinRecord.day)
            .filter(
                CheckinRecord.habit_id == habit_id,
                CheckinRecord.completed.is_(True),
                CheckinRecord.day <= up_to_day,
            )
            .order_by(CheckinRecord.day.asc())
            .all()
        )
        return [r.day for r in rows]

    def count_checkins(self, habit_id: int, up_to_day: int) -> int:
        return (
            self.db.query(func.count(CheckinRecord.id))
            .filter(
                CheckinRecord.habit_id == habit_id,
                CheckinRecord.completed.is_(True),
                CheckinRecord.day <= up_to_day,
            )
            .scalar()
            or 0
        )

    def first_checkin_day(self, habit_id: int) -> int | None:
        return (
            self.db.query(func.min(CheckinRecord.day))
            .filter(CheckinRecord.habit_id == habit_id, CheckinRecord.completed.is_(True))
            .scalar()
        )

    def checked_habit_ids_on(self, day: int, habit_ids: list[int]) -> set[int]:
        """Which of the given habits were checked in on day."""
        if not habit_ids:
            return set()
        rows = (
            self.db.query(CheckinRecord.habit_id)
            .filter(
                CheckinRecord.day == day,
                CheckinRecord.completed.is_(True),
                CheckinRecord.habit_id.in_(habit_ids),
            )
            .all()
        )
        return {r.habit_id for r in rows}

    # ------------------------------------------------------------------
    # Check-in writes
    # ------------------------------------------------------------------
    def upsert_checkin_record(self, habit_id: int, day: int, value: float | None = None,
                              note: str | None = None) -> CheckinRecord:
        """Insert a completed record, or revise value/note of the existing one."""
        try:
            row = self._record(habit_id, day)
            if row is None:
                row = CheckinRecord(habit_id=habit_id, day=day, completed=True,
                                    value=value, note=note or "")
                self.db.add(row)
            else:
                row.completed = True
                if value is not None:
                    row.value = value
                if note is not None:
                    row.note = note
            self.db.commit()
            self.db.refresh(row)
            logger.debug("Upserted check-in habit=%s day=%s", habit_id, day)
            return row
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def insert_checkin_record_if_absent(self, habit_id: int, day: int, value: float | None = None,
                                        note: str = "") -> bool:
        """Insert a completed record unless one already exists. Returns True if inserted."""
        try:
            if self._record(habit_id, day) is not None:
                return False
            self.db.add(CheckinRecord(habit_id=habit_id, day=day, completed=True,
                                      value=value, note=note or ""))
            self.db.commit()
            return True
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def delete_checkin_record(self, habit_id: int, day: int) -> bool:
        try:
            deleted = (
                self.db.query(CheckinRecord)
                .filter_by(habit_id=habit_id, day=day)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return deleted > 0
        except SQLAlchemyError:
            self.db.rollback()
            raise
