"""
Login, forced password change and navigation endpoints
"""
from hostel.config.roles import Role
from hostel.utils.security import TokenType, create_token, decode_token, generate_otp, otp_matches
from tests.conftest import auth_headers, make_admin, make_student


def test_admin_login_returns_session_user(client, db):
    make_admin(db, "warden1", role=Role.WARDEN, permissions=["leave_management"], levels={"leave_management": "full"})

    response = client.post("/api/v1/auth/admin/login", json={"username": "warden1", "password": "password123"})

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["role"] == "warden"
    assert data["user"]["permission_access_levels"] == {"leave_management": "full"}
    assert data["access_token"]


def test_admin_login_rejects_bad_password(client, db):
    make_admin(db, "warden1", role=Role.WARDEN)
    response = client.post("/api/v1/auth/admin/login", json={"username": "warden1", "password": "wrong-password"})
    assert response.status_code == 401


def test_inactive_account_cannot_login(client, db):
    make_admin(db, "gone", is_active=False)
    response = client.post("/api/v1/auth/admin/login", json={"username": "gone", "password": "password123"})
    assert response.status_code == 401


def test_new_student_must_change_password(client, db):
    student = make_student(db, "21CS001", requires_password_change=True)
    headers = auth_headers(student)

    login = client.post("/api/v1/auth/student/login", json={"roll_number": "21CS001", "password": "password123"})
    assert login.json()["requires_password_change"] is True

    assert client.get("/api/rooms/student/electricity-bills", headers=headers).status_code == 403
    assert client.get("/api/v1/auth/me", headers=headers).status_code == 200

    reset = client.post(
        "/api/v1/auth/reset-password",
        headers=headers,
        json={"current_password": "password123", "new_password": "new-password-1"},
    )
    assert reset.status_code == 200
    assert reset.json()["requires_password_change"] is False
    assert client.get("/api/rooms/student/electricity-bills", headers=headers).status_code == 200


def test_reset_password_requires_current_password(client, db):
    student = make_student(db, "21CS002", requires_password_change=True)
    response = client.post(
        "/api/v1/auth/reset-password",
        headers=auth_headers(student),
        json={"current_password": "not-it", "new_password": "new-password-1"},
    )
    assert response.status_code == 400


def test_refresh_issues_new_access_token(client, db):
    make_student(db, "21CS003")
    login = client.post("/api/v1/auth/student/login", json={"roll_number": "21CS003", "password": "password123"})

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})

    assert response.status_code == 200
    assert response.json()["access_token"]


def test_access_token_is_not_a_refresh_token(client, db):
    student = make_student(db, "21CS004")
    access_token = auth_headers(student)["Authorization"].split()[1]
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": access_token}).status_code == 401


def test_resolve_without_token_redirects(client):
    response = client.get("/api/v1/navigation/resolve", params={"path": "/admin/dashboard/rooms"})
    data = response.json()
    assert data["action"] == "redirect"
    assert data["target"] == "/login"
    assert data["from_path"] == "/admin/dashboard/rooms"


def test_resolve_reports_section_denial(client, db):
    sub = make_admin(db, "menu-only", permissions=["menu_management"])
    response = client.get(
        "/api/v1/navigation/resolve",
        params={"path": "/admin/dashboard/rooms"},
        headers=auth_headers(sub),
    )
    data = response.json()
    assert data["action"] == "render"
    assert data["section"]["allowed"] is False
    assert data["section"]["title"] == "Access Restricted"


def test_sections_lists_access_levels(client, db):
    sub = make_admin(db, "rooms-full", permissions=["room_management"], levels={"room_management": "full"})
    response = client.get("/api/v1/navigation/sections", headers=auth_headers(sub))
    data = response.json()
    assert data["access_levels"] == {"room_management": "full"}
    allowed = {s["section_name"] for s in data["sections"] if s["allowed"]}
    assert "Room Management" in allowed


def test_token_type_is_checked():
    refresh = create_token("a-1", "admin", TokenType.REFRESH, role="warden")

    assert decode_token(refresh, TokenType.ACCESS) is None
    claims = decode_token(refresh, TokenType.REFRESH)
    assert claims["sub"] == "a-1"
    assert "role" not in claims


def test_otp_codes():
    code = generate_otp()
    assert len(code) == 6 and code.isdigit()
    assert otp_matches(code, code)
    assert not otp_matches(None, code)


def test_health_checks_database(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "ok"}
