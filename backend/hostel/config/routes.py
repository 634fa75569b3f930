"""
Client route table: the dashboard path tree and the guard settings each
path is rendered behind.

Patterns use ``:name`` for a single path segment and a trailing ``*`` for
any remainder. More specific entries must come first; the first match wins.
"""
from dataclasses import dataclass
from typing import Optional

from hostel.config.permissions import Permission
from hostel.config.roles import Role

LOGIN_PATH = "/login"
PASSWORD_RESET_PATH = "/student/reset-password"
DEFAULT_DASHBOARD_PATH = "/student"
NOT_FOUND_PATH = "/404"


@dataclass(frozen=True)
class RouteSpec:
    pattern: str
    require_auth: bool = True
    require_password_change: bool = False
    role: Optional[Role] = None
    permission: Optional[Permission] = None
    section_name: Optional[str] = None


def _section(prefix: str, role: Role, slug: str, permission: Permission, name: str) -> RouteSpec:
    return RouteSpec(
        pattern=f"{prefix}/{slug}*",
        role=role,
        permission=permission,
        section_name=name,
    )


_ADMIN = "/admin/dashboard"

ADMIN_SECTIONS = [
    _section(_ADMIN, Role.ADMIN, "rooms", Permission.ROOM_MANAGEMENT, "Room Management"),
    _section(_ADMIN, Role.ADMIN, "electricity-bills", Permission.ROOM_MANAGEMENT, "Electricity Bills"),
    _section(_ADMIN, Role.ADMIN, "students", Permission.STUDENT_MANAGEMENT, "Student Management"),
    _section(_ADMIN, Role.ADMIN, "preregistrations", Permission.STUDENT_MANAGEMENT, "Pre-Registrations"),
    _section(_ADMIN, Role.ADMIN, "complaints", Permission.COMPLAINT_MANAGEMENT, "Complaints"),
    _section(_ADMIN, Role.ADMIN, "outpass", Permission.OUTPASS_MANAGEMENT, "Outpass Management"),
    _section(_ADMIN, Role.ADMIN, "leave", Permission.LEAVE_MANAGEMENT, "Leave Management"),
    _section(_ADMIN, Role.ADMIN, "announcements", Permission.ANNOUNCEMENT_MANAGEMENT, "Announcements"),
    _section(_ADMIN, Role.ADMIN, "polls", Permission.POLL_MANAGEMENT, "Polls"),
    _section(_ADMIN, Role.ADMIN, "menu", Permission.MENU_MANAGEMENT, "Menu Management"),
    _section(_ADMIN, Role.ADMIN, "attendance", Permission.ATTENDANCE_MANAGEMENT, "Attendance"),
    _section(_ADMIN, Role.ADMIN, "payments", Permission.PAYMENT_MANAGEMENT, "Payment Records"),
    _section(_ADMIN, Role.ADMIN, "admin-management", Permission.ADMIN_MANAGEMENT, "Admin Management"),
]

ROUTES = [
    RouteSpec("/", require_auth=False),
    RouteSpec(LOGIN_PATH, require_auth=False),
    RouteSpec("/register", require_auth=False),
    RouteSpec("/leave/qr/:id", require_auth=False),
    RouteSpec("/leave/incoming-qr/:id", require_auth=False),
    RouteSpec("/outpass/qr/:id", require_auth=False),
    RouteSpec(PASSWORD_RESET_PATH, require_password_change=True),
    *ADMIN_SECTIONS,
    RouteSpec(f"{_ADMIN}*", role=Role.ADMIN),
    RouteSpec("/warden/dashboard*", role=Role.WARDEN),
    RouteSpec("/principal/dashboard*", role=Role.PRINCIPAL),
    RouteSpec("/security/dashboard*", role=Role.SECURITY),
    RouteSpec("/student*", role=Role.STUDENT),
]
