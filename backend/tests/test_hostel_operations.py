"""
Attendance, mess menu, pre-registrations and outpasses
"""
from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from hostel.config.roles import Role
from hostel.models import Attendance, Notification, Student
from hostel.services import attendance_service
from tests.conftest import auth_headers, make_admin, make_student


@pytest.fixture
def boys_warden(db):
    return make_admin(
        db, "boys-warden", role=Role.WARDEN, hostel_type="boys",
        permissions=["attendance_management", "outpass_management"],
        levels={"attendance_management": "full", "outpass_management": "full"},
    )


@pytest.fixture
def mess_admin(db):
    return make_admin(db, "mess", permissions=["menu_management"], levels={"menu_management": "full"})


class TestAttendance:

    def test_statistics(self):
        records = [
            SimpleNamespace(morning=True, evening=True),
            SimpleNamespace(morning=True, evening=False),
            SimpleNamespace(morning=False, evening=False),
        ]
        stats = attendance_service.statistics(records, total=5)
        assert stats.total == 5
        assert stats.morning_present == 2
        assert stats.evening_present == 1
        assert stats.fully_present == 1
        assert stats.partially_present == 1
        assert stats.absent == 3

    def test_warden_sees_own_hostel_only(self, client, db, boys_warden):
        make_student(db, "B1", gender="Male")
        make_student(db, "G1", gender="Female")

        students = client.get("/api/attendance/students", headers=auth_headers(boys_warden)).json()

        assert [s["roll_number"] for s in students] == ["B1"]

    def test_take_attendance_upserts_and_reports_failures(self, client, db, boys_warden):
        boy = make_student(db, "B1", gender="Male")
        girl = make_student(db, "G1", gender="Female")
        headers = auth_headers(boys_warden)
        today = date.today().isoformat()

        first = client.post("/api/attendance/take", headers=headers, json={
            "date": today,
            "records": [
                {"student_id": str(boy.id), "morning": True},
                {"student_id": str(girl.id), "morning": True},
            ],
        }).json()
        assert first["successful"] == 1
        assert first["failed"] == [{"student_id": str(girl.id), "reason": "Student not found"}]

        client.post("/api/attendance/take", headers=headers, json={
            "date": today,
            "records": [{"student_id": str(boy.id), "morning": True, "evening": True}],
        })
        assert db.query(Attendance).count() == 1

        day = client.get("/api/attendance/date", headers=headers, params={"date": today}).json()
        assert day["records"][0]["status"] == "Present"
        assert day["statistics"]["fully_present"] == 1

    def test_future_date_is_rejected(self, client, db, boys_warden):
        boy = make_student(db, "B1")
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        response = client.post("/api/attendance/take", headers=auth_headers(boys_warden), json={
            "date": tomorrow, "records": [{"student_id": str(boy.id), "morning": True}],
        })
        assert response.status_code == 400

    def test_range_is_limited(self, client, boys_warden):
        response = client.get(
            "/api/attendance/range",
            headers=auth_headers(boys_warden),
            params={"start_date": "2024-01-01", "end_date": "2024-06-01"},
        )
        assert response.status_code == 400


class TestMenu:

    def menu(self, client, headers, day):
        return client.post("/api/menu/date", headers=headers, json={
            "date": day.isoformat(),
            "meals": {"breakfast": ["Idli", " "], "lunch": ["Rice", "Dal"]},
        })

    def test_upsert_normalizes_meals(self, client, mess_admin):
        response = self.menu(client, auth_headers(mess_admin), date.today())
        assert response.status_code == 200
        assert response.json()["meals"] == {"breakfast": ["Idli"], "lunch": ["Rice", "Dal"], "dinner": []}

    def test_unknown_meal_is_invalid(self, client, mess_admin):
        response = client.post("/api/menu/date", headers=auth_headers(mess_admin), json={
            "date": date.today().isoformat(), "meals": {"supper": ["Soup"]},
        })
        assert response.status_code == 422

    def test_ratings_replace_and_average(self, client, db, mess_admin):
        today = date.today()
        self.menu(client, auth_headers(mess_admin), today)
        first, second = make_student(db, "S1"), make_student(db, "S2")

        for student, rating in ((first, 2), (first, 4), (second, 5)):
            client.post("/api/menu/rate", headers=auth_headers(student), json={
                "date": today.isoformat(), "meal": "lunch", "rating": rating,
            })

        stats = client.get("/api/menu/ratings/stats", headers=auth_headers(mess_admin), params={"date": today.isoformat()}).json()
        assert stats["meals"]["lunch"] == {"average": 4.5, "count": 2}
        assert stats["overall"]["count"] == 2

    def test_notify_reaches_active_students(self, client, db, mess_admin):
        self.menu(client, auth_headers(mess_admin), date.today())
        make_student(db, "S1")
        make_student(db, "S2", is_active=False)

        response = client.post("/api/menu/notify", headers=auth_headers(mess_admin), json={"meal": "lunch"})

        assert response.json()["notified"] == 1
        assert db.query(Notification).one().message == "Today's lunch: Rice, Dal"

    def test_student_reads_today(self, client, db, mess_admin):
        self.menu(client, auth_headers(mess_admin), date.today())
        student = make_student(db, "S1")
        assert client.get("/api/menu/today", headers=auth_headers(student)).status_code == 200


class TestPreRegistration:

    FORM = {"name": "New Student", "roll_number": "24CS001", "gender": "Female", "category": "UG", "phone": "9876543210"}

    def test_approval_creates_student_with_forced_reset(self, client, db):
        registrar = make_admin(db, "registrar", permissions=["student_management"], levels={"student_management": "full"})
        prereg = client.post("/api/student/preregistrations", json=self.FORM)
        assert prereg.status_code == 201

        assert client.post("/api/student/preregistrations", json=self.FORM).status_code == 409

        approved = client.post(
            f"/api/student/preregistrations/{prereg.json()['id']}/approve",
            headers=auth_headers(registrar),
            json={"room_number": "12"},
        )
        assert approved.status_code == 200

        student = db.query(Student).filter(Student.roll_number == "24CS001").one()
        assert student.requires_password_change
        assert student.room_number == "12"

        login = client.post("/api/v1/auth/student/login", json={"roll_number": "24CS001", "password": "24CS001"})
        assert login.json()["requires_password_change"] is True

    def test_branch_must_belong_to_course(self, client, db, course):
        form = dict(self.FORM, course_id=str(course.id), branch_id="00000000-0000-0000-0000-000000000000")
        assert client.post("/api/student/preregistrations", json=form).status_code == 400

    def test_view_access_cannot_approve(self, client, db):
        viewer = make_admin(db, "viewer", permissions=["student_management"])
        prereg = client.post("/api/student/preregistrations", json=self.FORM).json()
        response = client.post(f"/api/student/preregistrations/{prereg['id']}/approve", headers=auth_headers(viewer))
        assert response.status_code == 403


class TestOutpass:

    def create(self, client, student, day):
        return client.post("/api/outpass/create", headers=auth_headers(student), json={
            "date_of_outpass": day.isoformat(), "out_time": "10:00:00", "in_time": "18:00:00", "reason": "Shopping",
        })

    def test_past_date_is_rejected(self, client, db):
        student = make_student(db, "S1")
        assert self.create(client, student, date.today() - timedelta(days=1)).status_code == 400

    def test_approve_then_view_qr(self, client, db, boys_warden):
        student = make_student(db, "S1")
        outpass = self.create(client, student, date.today()).json()

        approved = client.post(f"/api/admin/outpass/{outpass['id']}/approve", headers=auth_headers(boys_warden))
        assert approved.json()["status"] == "Approved"

        view = client.post(f"/api/outpass/qr-view/{outpass['id']}", headers=auth_headers(student)).json()
        assert view["qr_url"].endswith(f"/outpass/qr/{outpass['id']}")
        assert view["qr_view_count"] == 1

        again = client.post(f"/api/admin/outpass/{outpass['id']}/approve", headers=auth_headers(boys_warden))
        assert again.status_code == 400
