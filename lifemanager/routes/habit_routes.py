from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from lifemanager.database import get_db
from lifemanager.exceptions import HabitNotFoundError, InvalidHabitError
from lifemanager.models.habit import Habit
from lifemanager.services.achievement_service import AchievementService, motivational_message
from lifemanager.services.checkin_store import CheckinStore
from lifemanager.services.habit_service import HabitService, frequency_display_text
from lifemanager.services.ranking_service import RankingBuilder
from lifemanager.services.stats_service import PeriodAggregator
from lifemanager.services.streak_service import StreakCalculator
from lifemanager.utils import dates

# Plain `def` handlers: FastAPI runs them in its threadpool, which keeps the
# day-by-day scans off the event loop.
router = APIRouter(prefix="/api/v1/habits", tags=["Habits"])

class HabitCreate(BaseModel):
    name: str
    description: Optional[str] = ""
    icon: Optional[str] = "check_circle"
    color: Optional[str] = "#4CAF50"
    frequency: Optional[str] = "DAILY"
    target_times: Optional[int] = 1
    custom_frequency: Optional[str] = None
    reminder_time: Optional[str] = None
    is_numeric: Optional[bool] = False
    target_value: Optional[float] = None
    unit: Optional[str] = ""
    linked_goal_id: Optional[int] = None

class HabitUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    frequency: Optional[str] = None
    target_times: Optional[int] = None
    custom_frequency: Optional[str] = None
    reminder_time: Optional[str] = None
    is_numeric: Optional[bool] = None
    target_value: Optional[float] = None
    unit: Optional[str] = None
    linked_goal_id: Optional[int] = None

class CheckinValue(BaseModel):
    value: float

class RetroCheckin(BaseModel):
    day: int
    note: Optional[str] = ""


def habit_to_dict(h: Habit) -> dict:
    return {
        "id": h.id,
        "name": h.name,
        "description": h.description,
        "icon": h.icon,
        "color": h.color,
        "frequency": h.frequency,
        "frequency_text": frequency_display_text(h.frequency, h.target_times),
        "target_times": h.target_times,
        "custom_frequency": h.custom_frequency,
        "reminder_time": h.reminder_time,
        "is_numeric": h.is_numeric,
        "target_value": h.target_value,
        "unit": h.unit,
        "status": h.status,
        "linked_goal_id": h.linked_goal_id,
        "created_at": h.created_at,
    }


def _not_found(e: HabitNotFoundError):
    return HTTPException(status_code=404, detail=str(e))


def _bad_request(e: InvalidHabitError):
    return HTTPException(status_code=400, detail=str(e))


@router.get("")
def list_habits(status: Optional[str] = None, db: Session = Depends(get_db)):
    return [habit_to_dict(h) for h in HabitService.list_habits(db, status)]

@router.post("")
def create_habit(habit_data: HabitCreate, db: Session = Depends(get_db)):
    try:
        h = HabitService.create(db, habit_data.model_dump(exclude_unset=True))
        return {"status": "success", "data": habit_to_dict(h)}
    except InvalidHabitError as e:
        raise _bad_request(e)

@router.get("/today")
def list_habits_today(db: Session = Depends(get_db)):
    return [
        {
            "habit": habit_to_dict(s.habit),
            "completed_today": s.is_checked_today,
            "today_value": s.today_value,
            "streak": s.streak,
            "total_checkins": s.total_checkins,
        }
        for s in HabitService.habits_with_status(db)
    ]

@router.get("/overview")
def habit_overview(db: Session = Depends(get_db)):
    overview = HabitService.overview(db)
    return {**asdict(overview), "message": motivational_message(overview.longest_streak)}

@router.get("/streaks")
def habit_streaks(db: Session = Depends(get_db)):
    store = CheckinStore(db)
    streaks = StreakCalculator(store)
    today = dates.today_epoch_day()
    return [{"habit": h.name, "streak": streaks.streak(h.id, today)} for h in store.list_active_habits()]

@router.get("/stats/weekly")
def weekly_stats(day: Optional[int] = None, db: Session = Depends(get_db)):
    today = dates.today_epoch_day()
    try:
        return PeriodAggregator(CheckinStore(db)).weekly_stats(today if day is None else day, today)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/stats/monthly/{year_month}")
def monthly_stats(year_month: int, db: Session = Depends(get_db)):
    try:
        return PeriodAggregator(CheckinStore(db)).monthly_stats(year_month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/calendar/{year_month}")
def calendar_overview(year_month: int, db: Session = Depends(get_db)):
    try:
        return PeriodAggregator(CheckinStore(db)).calendar_overview(year_month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/achievements")
def achievements(db: Session = Depends(get_db)):
    return AchievementService(CheckinStore(db)).evaluate(record_unlocks=True)

@router.get("/ranking")
def ranking(db: Session = Depends(get_db)):
    return RankingBuilder(CheckinStore(db)).rank()

@router.get("/{habit_id}")
def get_habit(habit_id: int, db: Session = Depends(get_db)):
    try:
        return habit_to_dict(HabitService.get(db, habit_id))
    except HabitNotFoundError as e:
        raise _not_found(e)

@router.put("/{habit_id}")
def update_habit(habit_id: int, habit_data: HabitUpdate, db: Session = Depends(get_db)):
    try:
        h = HabitService.update(db, habit_id, habit_data.model_dump(exclude_unset=True))
        return {"status": "success", "data": habit_to_dict(h)}
    except HabitNotFoundError as e:
        raise _not_found(e)
    except InvalidHabitError as e:
        raise _bad_request(e)

@router.delete("/{habit_id}")
def delete_habit(habit_id: int, db: Session = Depends(get_db)):
    try:
        HabitService.delete(db, habit_id)
        return {"status": "success"}
    except HabitNotFoundError as e:
        raise _not_found(e)

def _change_status(transition, habit_id: int, db: Session):
    try:
        h = transition(db, habit_id)
        return {"status": "success", "data": habit_to_dict(h)}
    except HabitNotFoundError as e:
        raise _not_found(e)
    except InvalidHabitError as e:
        raise _bad_request(e)

@router.post("/{habit_id}/pause")
def pause_habit(habit_id: int, db: Session = Depends(get_db)):
    return _change_status(HabitService.pause, habit_id, db)

@router.post("/{habit_id}/resume")
def resume_habit(habit_id: int, db: Session = Depends(get_db)):
    return _change_status(HabitService.resume, habit_id, db)

@router.post("/{habit_id}/archive")
def archive_habit(habit_id: int, db: Session = Depends(get_db)):
    return _change_status(HabitService.archive, habit_id, db)

@router.post("/{habit_id}/check")
def toggle_check(habit_id: int, db: Session = Depends(get_db)):
    try:
        checked = HabitService.toggle_checkin(db, habit_id)
        streak = StreakCalculator(CheckinStore(db)).streak(habit_id, dates.today_epoch_day())
        return {"status": "success", "checked": checked, "streak": streak}
    except HabitNotFoundError as e:
        raise _not_found(e)

@router.put("/{habit_id}/value")
def update_value(habit_id: int, body: CheckinValue, db: Session = Depends(get_db)):
    try:
        HabitService.update_numeric_value(db, habit_id, body.value)
        return {"status": "success"}
    except HabitNotFoundError as e:
        raise _not_found(e)
    except InvalidHabitError as e:
        raise _bad_request(e)

@router.post("/{habit_id}/retro-check")
def retro_check(habit_id: int, body: RetroCheckin, db: Session = Depends(get_db)):
    try:
        created = HabitService.retro_checkin(db, habit_id, body.day, body.note or "")
        return {"status": "success" if created else "skipped", "created": created}
    except HabitNotFoundError as e:
        raise _not_found(e)

@router.get("/{habit_id}/streak")
def habit_streak(habit_id: int, day: Optional[int] = None, db: Session = Depends(get_db)):
    as_of = dates.today_epoch_day() if day is None else day
    return {"habit_id": habit_id, "day": as_of, "streak": StreakCalculator(CheckinStore(db)).streak(habit_id, as_of)}

@router.get("/{habit_id}/calendar/{year_month}")
def habit_calendar(habit_id: int, year_month: int, db: Session = Depends(get_db)):
    try:
        return PeriodAggregator(CheckinStore(db)).calendar_data(habit_id, year_month)
    except HabitNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/{habit_id}/detail")
def habit_detail(habit_id: int, db: Session = Depends(get_db)):
    try:
        d = HabitService.detail(db, habit_id)
    except HabitNotFoundError as e:
        raise _not_found(e)
    return {
        "habit": habit_to_dict(d.habit),
        "current_streak": d.current_streak,
        "longest_streak": d.longest_streak,
        "total_checkins": d.total_checkins,
        "first_checkin_day": d.first_checkin_day,
        "first_checkin_date": dates.format_epoch_day(d.first_checkin_day) if d.first_checkin_day is not None else None,
        "completion_rate_week": d.completion_rate_week,
        "completion_rate_month": d.completion_rate_month,
        "recent_checkins": list(d.recent_checkins),
        "achievements": list(d.achievements),
    }
