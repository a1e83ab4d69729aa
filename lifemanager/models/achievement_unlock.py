from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime

from lifemanager.database import Base


class AchievementUnlock(Base):
    """Append-only log of the first time each achievement was seen unlocked."""

    __tablename__ = "achievement_unlocks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    achievement_id = Column(String(50), nullable=False, unique=True)
    unlocked_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
