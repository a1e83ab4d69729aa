from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Float
from sqlalchemy.orm import relationship

from lifemanager.database import Base


class HabitFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKDAYS = "WEEKDAYS"
    N_TIMES_PER_WEEK = "N_TIMES_PER_WEEK"
    N_TIMES_PER_MONTH = "N_TIMES_PER_MONTH"
    CUSTOM = "CUSTOM"


class HabitStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    ARCHIVED = "ARCHIVED"


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, default="")
    icon = Column(String(50), default="check_circle")
    color = Column(String(20), default="#4CAF50")
    frequency = Column(String(20), default=HabitFrequency.DAILY.value)
    target_times = Column(Integer, default=1)  # used by N_TIMES_PER_WEEK / N_TIMES_PER_MONTH
    custom_frequency = Column(Text, nullable=True)  # JSON like {"weekdays": [1,2,3,4,5]}
    reminder_time = Column(String(10), nullable=True)  # e.g., "08:00"
    is_numeric = Column(Boolean, default=False)  # e.g., "8 cups of water"
    target_value = Column(Float, nullable=True)
    unit = Column(String(20), default="")
    status = Column(String(20), default=HabitStatus.ACTIVE.value, index=True)
    linked_goal_id = Column(Integer, nullable=True)  # goals live outside this engine
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    records = relationship(
        "CheckinRecord",
        back_populates="habit",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Habit id={self.id} name={self.name!r} status={self.status}>"
