from datetime import datetime, time, timedelta, timezone

from fastapi.testclient import TestClient

from sessionbook.core.time_utils import iso_week_of, utc_now, week_start_date

COURSE_ID = "01HCOURSE00000000000000000"
STUDENT_ID = "01HSTUDENT0000000000000001"


def _future_week():
    year, week = iso_week_of(utc_now() + timedelta(weeks=3))
    monday = datetime.combine(week_start_date(year, week), time.min, tzinfo=timezone.utc)
    return year, week, monday


def _slots_url(year: int, week: int) -> str:
    return f"/api/v1/courses/{COURSE_ID}/students/{STUDENT_ID}/weeks/{year}/{week}/slots"


def _interval(start: datetime, hours: float = 1) -> dict:
    end = start + timedelta(hours=hours)
    return {"start_time": start.isoformat(), "end_time": end.isoformat()}


class TestWeekSlotRoutes:
    def test_save_then_read_week(self, client: TestClient, make_enrollment) -> None:
        make_enrollment(STUDENT_ID, first_name="Amy", last_name="Adams")
        year, week, monday = _future_week()
        payload = {
            "slots": [
                _interval(monday + timedelta(hours=9)),
                _interval(monday + timedelta(days=1, hours=9)),
            ]
        }

        saved = client.put(_slots_url(year, week), json=payload)

        assert saved.status_code == 200
        assert len(saved.json()["slot_ids"]) == 2

        grid = client.get(f"/api/v1/courses/{COURSE_ID}/weeks/{year}/{week}")
        assert grid.status_code == 200
        body = grid.json()
        assert len(body["days"]) == 7
        assert body["max_lanes_used"] == 1
        assert body["previous_week"]["week"] != week
        first_cell = body["days"][0]["lanes"][0][0]
        assert first_cell["owner_name"] == "Amy Adams"
        assert first_cell["status"] == "open"

    def test_overlapping_slots_rejected(self, client: TestClient, make_enrollment) -> None:
        make_enrollment(STUDENT_ID)
        year, week, monday = _future_week()
        payload = {
            "slots": [
                _interval(monday + timedelta(hours=9), hours=2),
                _interval(monday + timedelta(hours=10)),
            ]
        }

        response = client.put(_slots_url(year, week), json=payload)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "OVERLAPPING_SLOTS"

    def test_unenrolled_student_is_404(self, client: TestClient) -> None:
        year, week, monday = _future_week()

        response = client.put(
            _slots_url(year, week), json={"slots": [_interval(monday + timedelta(hours=9))]}
        )

        assert response.status_code == 404

    def test_clear_week(self, client: TestClient, make_enrollment) -> None:
        make_enrollment(STUDENT_ID)
        year, week, monday = _future_week()
        client.put(_slots_url(year, week), json={"slots": [_interval(monday + timedelta(hours=9))]})

        response = client.delete(_slots_url(year, week))

        assert response.status_code == 200
        assert response.json() == {"deleted": 1}

    def test_week_out_of_range_is_422(self, client: TestClient) -> None:
        response = client.get(f"/api/v1/courses/{COURSE_ID}/weeks/2024/54")

        assert response.status_code == 422

    def test_unknown_timezone_is_400(self, client: TestClient) -> None:
        response = client.get(
            f"/api/v1/courses/{COURSE_ID}/weeks/2024/11", params={"tz": "Nowhere/Special"}
        )

        assert response.status_code == 400


class TestEligibilityRoute:
    def test_eligibility_with_summary(self, client: TestClient, make_enrollment) -> None:
        make_enrollment(STUDENT_ID)

        response = client.get(f"/api/v1/courses/{COURSE_ID}/students/{STUDENT_ID}/eligibility")

        assert response.status_code == 200
        body = response.json()
        assert body["restricted"] is False
        assert body["basis"] == "enrolled"
        assert body["total_posts"] == 0
        assert body["first_posted_at"] is None

    def test_unenrolled_is_404(self, client: TestClient) -> None:
        response = client.get(f"/api/v1/courses/{COURSE_ID}/students/{STUDENT_ID}/eligibility")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "STUDENT_NOT_ENROLLED"
