from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Text, DateTime, Boolean, Float, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from lifemanager.database import Base


class CheckinRecord(Base):
    __tablename__ = "habit_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    habit_id = Column(Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    day = Column(Integer, nullable=False)  # epoch day
    completed = Column(Boolean, default=True)  # a stored row is always a completed day
    value = Column(Float, nullable=True)  # progress toward Habit.target_value
    note = Column(Text, default="")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    habit = relationship("Habit", back_populates="records")

    __table_args__ = (
        UniqueConstraint("habit_id", "day", name="uq_habit_day"),
        Index("ix_habit_records_habit_id", "habit_id"),
        Index("ix_habit_records_day", "day"),
    )
