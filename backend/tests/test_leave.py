"""
Leave requests, OTP approval, QR views and gate scans
"""
from datetime import datetime, timedelta

import pytest

from hostel.config import settings
from hostel.config.roles import Role
from hostel.models import Leave, LeaveStatus, LeaveVisit, VisitType
from hostel.services import leave_service
from tests.conftest import auth_headers, make_admin, make_student


@pytest.fixture
def student(db):
    return make_student(db, "21CS300")


@pytest.fixture
def warden(db):
    return make_admin(db, "warden", role=Role.WARDEN, permissions=["leave_management"], levels={"leave_management": "full"})


@pytest.fixture
def approved_leave(db, student, warden):
    now = datetime.utcnow()
    leave = leave_service.create_leave(db, student, now - timedelta(hours=1), now + timedelta(days=2), "Family visit")
    return leave_service.verify_otp(db, leave, leave.otp_code, warden.id)


def request_leave(client, student, start, end):
    return client.post(
        "/api/leave/create",
        headers=auth_headers(student),
        json={"start_date": start.isoformat(), "end_date": end.isoformat(), "reason": "Going home"},
    )


def test_create_leave_awaits_otp(client, db, student):
    start = datetime.utcnow() + timedelta(days=1)
    response = request_leave(client, student, start, start + timedelta(days=2))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "Pending OTP Verification"
    assert data["number_of_days"] == 3
    leave = db.query(Leave).first()
    assert len(leave.otp_code) == 6


def test_overlapping_leave_conflicts(client, student):
    start = datetime.utcnow() + timedelta(days=1)
    request_leave(client, student, start, start + timedelta(days=2))
    response = request_leave(client, student, start + timedelta(days=1), start + timedelta(days=4))
    assert response.status_code == 409


def test_end_before_start_is_invalid(client, student):
    start = datetime.utcnow() + timedelta(days=1)
    assert request_leave(client, student, start, start - timedelta(hours=1)).status_code == 422


def test_verify_otp_approves(client, db, student, warden):
    start = datetime.utcnow() + timedelta(days=1)
    leave_id = request_leave(client, student, start, start + timedelta(days=1)).json()["id"]
    otp = db.query(Leave).first().otp_code

    wrong = client.post("/api/admin/leave/verify-otp", headers=auth_headers(warden), json={"leave_id": leave_id, "otp": "000000" if otp != "000000" else "111111"})
    assert wrong.status_code == 400

    response = client.post("/api/admin/leave/verify-otp", headers=auth_headers(warden), json={"leave_id": leave_id, "otp": otp})
    assert response.status_code == 200
    assert response.json()["status"] == "Approved"


def test_view_only_warden_cannot_approve(client, db, student):
    viewer = make_admin(db, "guard", role=Role.SECURITY, permissions=["leave_management"])
    start = datetime.utcnow() + timedelta(days=1)
    leave_id = request_leave(client, student, start, start + timedelta(days=1)).json()["id"]
    response = client.post("/api/admin/leave/verify-otp", headers=auth_headers(viewer), json={"leave_id": leave_id, "otp": "123456"})
    assert response.status_code == 403


def test_qr_views_lock_at_limit(client, student, approved_leave):
    headers = auth_headers(student)
    for remaining in range(settings.QR_VIEW_LIMIT - 1, -1, -1):
        response = client.post(f"/api/leave/qr-view/{approved_leave.id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["views_remaining"] == remaining

    locked = client.post(f"/api/leave/qr-view/{approved_leave.id}", headers=headers)
    assert locked.status_code == 403
    assert locked.json()["qr_locked"] is True


def test_qr_not_shown_before_window(client, db, student, warden):
    start = datetime.utcnow() + timedelta(days=3)
    leave = leave_service.create_leave(db, student, start, start + timedelta(days=1), "Later trip")
    leave_service.verify_otp(db, leave, leave.otp_code, warden.id)

    response = client.post(f"/api/leave/qr-view/{leave.id}", headers=auth_headers(student))
    assert response.status_code == 400


def test_outgoing_scan_then_duplicate(client, db, approved_leave):
    first = client.post(f"/api/leave/qr/{approved_leave.id}", json={"location": "Main gate"})
    assert first.status_code == 200
    assert first.json()["visit_type"] == "outgoing"
    assert first.json()["leave"]["outgoing_visit_count"] == 1

    second = client.post(f"/api/leave/qr/{approved_leave.id}")
    assert second.status_code == 403
    body = second.json()
    assert body["message"] == "QR already scanned"
    assert body["scanned_at"] is not None
    assert body["leave_id"] == str(approved_leave.id)

    assert db.query(LeaveVisit).count() == 1


def test_scan_unknown_leave_is_not_found(client):
    response = client.post("/api/leave/qr/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404


def test_scan_pending_leave_is_rejected(client, db, student):
    now = datetime.utcnow()
    leave = leave_service.create_leave(db, student, now, now + timedelta(days=1), "Pending trip")
    assert client.post(f"/api/leave/qr/{leave.id}").status_code == 400


def test_incoming_without_outgoing_is_rejected(db, approved_leave):
    with pytest.raises(leave_service.LeaveError) as exc:
        leave_service.record_scan(db, approved_leave.id, VisitType.INCOMING)
    assert exc.value.status_code == 400


def test_outgoing_limit_after_lockout(db, approved_leave):
    now = datetime.utcnow()
    leave_service.record_scan(db, approved_leave.id, VisitType.OUTGOING, now=now)

    later = now + timedelta(seconds=settings.QR_SCAN_LOCKOUT_SECONDS + 1)
    with pytest.raises(leave_service.ScanRejected) as exc:
        leave_service.record_scan(db, approved_leave.id, VisitType.OUTGOING, now=later)
    assert exc.value.message == "Maximum outgoing visits reached"


def test_incoming_scan_locks_leave(db, approved_leave):
    now = datetime.utcnow()
    leave_service.record_scan(db, approved_leave.id, VisitType.OUTGOING, now=now)
    result = leave_service.record_scan(db, approved_leave.id, VisitType.INCOMING, now=now + timedelta(hours=5))

    assert result.leave.visit_locked
    assert result.leave.incoming_visit_count == 1

    with pytest.raises(leave_service.ScanRejected) as exc:
        leave_service.record_scan(db, approved_leave.id, VisitType.OUTGOING, now=now + timedelta(days=1))
    assert exc.value.message == "QR code is locked"
    assert db.query(LeaveVisit).count() == 2


def test_public_leave_details_include_visits(client, db, approved_leave):
    client.post(f"/api/leave/qr/{approved_leave.id}", json={"location": "Main gate", "scanned_by": "guard-1"})

    data = client.get(f"/api/leave/{approved_leave.id}").json()

    assert data["visits"][0]["location"] == "Main gate"
    assert data["student"]["roll_number"] == "21CS300"


def test_reject_leave(client, db, student, warden):
    start = datetime.utcnow() + timedelta(days=1)
    leave_id = request_leave(client, student, start, start + timedelta(days=1)).json()["id"]
    response = client.post(
        "/api/admin/leave/reject",
        headers=auth_headers(warden),
        json={"leave_id": leave_id, "rejection_reason": "Exams this week"},
    )
    assert response.json()["status"] == LeaveStatus.REJECTED.value
