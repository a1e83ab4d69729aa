"""Shared fixtures: an in-memory SQLite database and habit/check-in factories."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lifemanager.database import Base, enable_sqlite_foreign_keys
import lifemanager.models  # noqa: F401  (register tables)
from lifemanager.models.habit import Habit
from lifemanager.services.checkin_store import CheckinStore


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db: Session) -> CheckinStore:
    return CheckinStore(db)


@pytest.fixture
def make_habit(db: Session) -> Callable[..., Habit]:
    """Insert a habit directly, bypassing service validation."""

    def _make(name: str = "Drink Water", **fields) -> Habit:
        habit = Habit(name=name, **fields)
        db.add(habit)
        db.commit()
        db.refresh(habit)
        return habit

    return _make


@pytest.fixture
def check_in(store: CheckinStore) -> Callable[[Habit | int, Iterable[int]], None]:
    """Record completed check-ins for a habit on the given epoch days."""

    def _check(habit: Habit | int, days: Iterable[int]) -> None:
        habit_id = habit if isinstance(habit, int) else habit.id
        for day in days:
            store.upsert_checkin_record(habit_id, day)

    return _check
