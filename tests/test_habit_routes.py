"""HTTP-level tests for the habit router."""

import pytest
from fastapi.testclient import TestClient

from lifemanager.database import get_db
from lifemanager.main import create_app
from lifemanager.utils import dates


@pytest.fixture
def client(session_factory):
    app = create_app(initialize_db=False)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c


def create(client, **fields) -> dict:
    response = client.post("/api/v1/habits", json={"name": "Drink Water", **fields})
    assert response.status_code == 200
    return response.json()["data"]


def test_health_check(client) -> None:
    assert client.get("/api/v1/health-check").json()["status"] == "ok"


class TestCrud:
    def test_create_and_fetch(self, client) -> None:
        habit = create(client, frequency="N_TIMES_PER_WEEK", target_times=3)

        fetched = client.get(f"/api/v1/habits/{habit['id']}").json()

        assert fetched["name"] == "Drink Water"
        assert fetched["frequency_text"] == "3x per week"
        assert fetched["status"] == "ACTIVE"

    def test_invalid_definition_is_400(self, client) -> None:
        response = client.post("/api/v1/habits", json={"name": "Water", "is_numeric": True})

        assert response.status_code == 400

    def test_unknown_habit_is_404(self, client) -> None:
        assert client.get("/api/v1/habits/999").status_code == 404
        assert client.put("/api/v1/habits/999", json={"name": "x"}).status_code == 404
        assert client.delete("/api/v1/habits/999").status_code == 404
        assert client.post("/api/v1/habits/999/check").status_code == 404
        assert client.get("/api/v1/habits/999/detail").status_code == 404

    def test_update_and_delete(self, client) -> None:
        habit = create(client)

        updated = client.put(f"/api/v1/habits/{habit['id']}", json={"color": "#000000"}).json()["data"]
        assert updated["color"] == "#000000"

        assert client.delete(f"/api/v1/habits/{habit['id']}").status_code == 200
        assert client.get("/api/v1/habits").json() == []

    def test_status_filter_and_lifecycle(self, client) -> None:
        habit = create(client)
        create(client, name="Read")

        assert client.post(f"/api/v1/habits/{habit['id']}/archive").json()["data"]["status"] == "ARCHIVED"
        assert client.post(f"/api/v1/habits/{habit['id']}/resume").status_code == 400

        archived = client.get("/api/v1/habits", params={"status": "ARCHIVED"}).json()
        assert [h["id"] for h in archived] == [habit["id"]]


class TestCheckins:
    def test_toggle_updates_today_and_streak(self, client) -> None:
        habit = create(client)

        first = client.post(f"/api/v1/habits/{habit['id']}/check").json()
        assert first["checked"] is True
        assert first["streak"] == 1

        today = client.get("/api/v1/habits/today").json()
        assert today[0]["completed_today"] is True

        second = client.post(f"/api/v1/habits/{habit['id']}/check").json()
        assert second["checked"] is False
        assert second["streak"] == 0

    def test_numeric_value(self, client) -> None:
        water = create(client, is_numeric=True, target_value=8, unit="cups")
        plain = create(client, name="Read")

        assert client.put(f"/api/v1/habits/{water['id']}/value", json={"value": 5}).status_code == 200
        assert client.put(f"/api/v1/habits/{plain['id']}/value", json={"value": 5}).status_code == 400

        today = {row["habit"]["name"]: row for row in client.get("/api/v1/habits/today").json()}
        assert today["Drink Water"]["today_value"] == 5

    def test_retro_check(self, client) -> None:
        habit = create(client)
        yesterday = dates.today_epoch_day() - 1
        url = f"/api/v1/habits/{habit['id']}/retro-check"

        assert client.post(url, json={"day": yesterday, "note": "late"}).json()["created"] is True
        assert client.post(url, json={"day": yesterday}).json()["status"] == "skipped"
        assert client.post(url, json={"day": yesterday + 1}).json()["created"] is False

        streak = client.get(f"/api/v1/habits/{habit['id']}/streak", params={"day": yesterday}).json()
        assert streak["streak"] == 1


class TestStats:
    def test_monthly_and_calendar(self, client) -> None:
        habit = create(client)
        client.post(f"/api/v1/habits/{habit['id']}/check")
        year_month = dates.year_month_of(dates.today_epoch_day())

        monthly = client.get(f"/api/v1/habits/stats/monthly/{year_month}").json()
        assert monthly["total_checkins"] == 1

        calendar = client.get(f"/api/v1/habits/{habit['id']}/calendar/{year_month}").json()
        assert calendar["checked_days"] == [dates.today_epoch_day()]
        assert calendar["next_month"] == dates.shift_year_month(year_month, 1)

        overview = client.get(f"/api/v1/habits/calendar/{year_month}").json()
        assert len(overview) == 1

    def test_bad_year_month_is_400(self, client) -> None:
        habit = create(client)

        assert client.get("/api/v1/habits/stats/monthly/202613").status_code == 400
        assert client.get(f"/api/v1/habits/{habit['id']}/calendar/202600").status_code == 400

    def test_weekly_day_out_of_range_is_400(self, client) -> None:
        assert client.get("/api/v1/habits/stats/weekly", params={"day": 1_000_000_000}).status_code == 400

    def test_unknown_habit_calendar_is_404(self, client) -> None:
        assert client.get("/api/v1/habits/5/calendar/202610").status_code == 404

    def test_weekly_overview_achievements_ranking(self, client) -> None:
        habit = create(client)
        client.post(f"/api/v1/habits/{habit['id']}/check")

        weekly = client.get("/api/v1/habits/stats/weekly").json()
        assert weekly["total_checkins"] == 1
        assert weekly["is_current_week"] is True

        overview = client.get("/api/v1/habits/overview").json()
        assert overview["today_completed"] == 1
        assert overview["message"]

        achievements = {a["definition"]["id"]: a for a in client.get("/api/v1/habits/achievements").json()}
        assert achievements["first_checkin"]["is_unlocked"] is True
        assert achievements["first_checkin"]["unlocked_at"] is not None

        ranking = client.get("/api/v1/habits/ranking").json()
        assert ranking[0]["rank"] == 1
        assert ranking[0]["streak"] == 1

        streaks = client.get("/api/v1/habits/streaks").json()
        assert streaks == [{"habit": "Drink Water", "streak": 1}]

    def test_detail(self, client) -> None:
        habit = create(client)
        client.post(f"/api/v1/habits/{habit['id']}/check")

        detail = client.get(f"/api/v1/habits/{habit['id']}/detail").json()

        assert detail["current_streak"] == 1
        assert detail["recent_checkins"] == [dates.today_epoch_day()]
        assert detail["first_checkin_date"] == dates.format_epoch_day(dates.today_epoch_day())
