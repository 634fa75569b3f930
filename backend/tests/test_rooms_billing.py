"""
Room management access levels and electricity bill generation
"""
from decimal import Decimal

import pytest

from hostel.config.roles import Role
from hostel.models import ElectricityBill
from hostel.services import billing_service
from tests.conftest import auth_headers, make_admin, make_student


@pytest.fixture
def viewer(db):
    return make_admin(db, "viewer", role=Role.WARDEN, permissions=["room_management"], levels={"room_management": "view"})


@pytest.fixture
def manager(db):
    return make_admin(db, "manager", permissions=["room_management"], levels={"room_management": "full"})


ROOM = {"room_number": "202", "gender": "Female", "category": "PG", "bed_count": 2, "electricity_rate": "7.50"}


def test_split_amount_keeps_total():
    shares = billing_service.split_amount(Decimal("100.00"), 3)
    assert shares == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
    assert sum(shares) == Decimal("100.00")


def test_split_amount_rejects_zero_parts():
    with pytest.raises(billing_service.BillingError):
        billing_service.split_amount(Decimal("10"), 0)


def test_view_access_can_list_but_not_create(client, viewer):
    headers = auth_headers(viewer)
    assert client.get("/api/admin/rooms", headers=headers).status_code == 200

    response = client.post("/api/admin/rooms", headers=headers, json=ROOM)
    assert response.status_code == 403
    assert response.json()["detail"] == "Full access required for Room Management"


def test_missing_permission_is_restricted(client, db):
    other = make_admin(db, "menu-only", permissions=["menu_management"])
    response = client.get("/api/admin/rooms", headers=auth_headers(other))
    assert response.status_code == 403
    assert response.json()["detail"] == "Access Restricted: Room Management"


def test_students_cannot_reach_admin_rooms(client, db):
    student = make_student(db, "21CS100")
    assert client.get("/api/admin/rooms", headers=auth_headers(student)).status_code == 403


def test_full_access_creates_and_rejects_duplicate(client, manager):
    headers = auth_headers(manager)
    created = client.post("/api/admin/rooms", headers=headers, json=ROOM)
    assert created.status_code == 201
    assert created.json()["room_number"] == "202"

    assert client.post("/api/admin/rooms", headers=headers, json=ROOM).status_code == 409


def test_list_counts_active_students(client, db, manager, room):
    make_student(db, "21CS101")
    make_student(db, "21CS102")
    make_student(db, "21CS103", is_active=False)
    make_student(db, "21CS104", gender="Female")

    rooms = client.get("/api/admin/rooms", headers=auth_headers(manager)).json()

    assert rooms[0]["student_count"] == 2


def test_generate_bill_splits_between_students(client, db, manager, room):
    make_student(db, "21CS101")
    make_student(db, "21CS102")
    make_student(db, "21CS103")

    response = client.post(
        f"/api/admin/rooms/{room.id}/electricity-bill",
        headers=auth_headers(manager),
        json={"month": "2024-05", "end_units": 150},
    )

    assert response.status_code == 201
    bill = response.json()
    assert bill["start_units"] == 100
    assert bill["consumption"] == 50
    assert Decimal(bill["total"]) == Decimal("400.00")
    assert sorted(Decimal(s["student_share"]) for s in bill["shares"]) == [
        Decimal("133.33"), Decimal("133.33"), Decimal("133.34"),
    ]
    assert all(s["payment_status"] == "unpaid" for s in bill["shares"])

    db.refresh(room)
    assert room.meter_reading == 150


def test_duplicate_month_conflicts(client, db, manager, room):
    make_student(db, "21CS101")
    headers = auth_headers(manager)
    payload = {"month": "2024-05", "end_units": 150}
    assert client.post(f"/api/admin/rooms/{room.id}/electricity-bill", headers=headers, json=payload).status_code == 201

    payload["end_units"] = 200
    assert client.post(f"/api/admin/rooms/{room.id}/electricity-bill", headers=headers, json=payload).status_code == 409
    assert db.query(ElectricityBill).count() == 1


def test_bill_for_empty_room_is_rejected(client, manager, room):
    response = client.post(
        f"/api/admin/rooms/{room.id}/electricity-bill",
        headers=auth_headers(manager),
        json={"month": "2024-05", "end_units": 150},
    )
    assert response.status_code == 400


def test_student_sees_own_shares(client, db, manager, room):
    student = make_student(db, "21CS101")
    make_student(db, "21CS102")
    client.post(
        f"/api/admin/rooms/{room.id}/electricity-bill",
        headers=auth_headers(manager),
        json={"month": "2024-05", "end_units": 110},
    )

    bills = client.get("/api/rooms/student/electricity-bills", headers=auth_headers(student)).json()

    assert len(bills) == 1
    assert bills[0]["room_id"] == str(room.id)
    assert bills[0]["month"] == "2024-05"
    assert Decimal(bills[0]["student_share"]) == Decimal("40.00")
