"""
Permission registry: single source of truth for permission keys, labels,
access levels and per-role defaults.
"""
import enum


class Permission(str, enum.Enum):
    """Dashboard sections a staff account can be granted"""
    ROOM_MANAGEMENT = "room_management"
    STUDENT_MANAGEMENT = "student_management"
    COMPLAINT_MANAGEMENT = "complaint_management"
    OUTPASS_MANAGEMENT = "outpass_management"
    LEAVE_MANAGEMENT = "leave_management"
    ANNOUNCEMENT_MANAGEMENT = "announcement_management"
    POLL_MANAGEMENT = "poll_management"
    MENU_MANAGEMENT = "menu_management"
    ATTENDANCE_MANAGEMENT = "attendance_management"
    PAYMENT_MANAGEMENT = "payment_management"
    ADMIN_MANAGEMENT = "admin_management"


class AccessLevel(str, enum.Enum):
    """view allows reads only, full allows writes"""
    VIEW = "view"
    FULL = "full"


class Action(str, enum.Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"


ALL_PERMISSIONS = {
    Permission.ROOM_MANAGEMENT:         {"label": "Room Management",         "category": "hostel"},
    Permission.STUDENT_MANAGEMENT:      {"label": "Student Management",      "category": "hostel"},
    Permission.COMPLAINT_MANAGEMENT:    {"label": "Complaint Management",    "category": "requests"},
    Permission.OUTPASS_MANAGEMENT:      {"label": "Outpass Management",      "category": "requests"},
    Permission.LEAVE_MANAGEMENT:        {"label": "Leave Management",        "category": "requests"},
    Permission.ANNOUNCEMENT_MANAGEMENT: {"label": "Announcement Management", "category": "communication"},
    Permission.POLL_MANAGEMENT:         {"label": "Poll Management",         "category": "communication"},
    Permission.MENU_MANAGEMENT:         {"label": "Menu Management",         "category": "mess"},
    Permission.ATTENDANCE_MANAGEMENT:   {"label": "Attendance Management",   "category": "hostel"},
    Permission.PAYMENT_MANAGEMENT:      {"label": "Payment Management",      "category": "finance"},
    Permission.ADMIN_MANAGEMENT:        {"label": "Admin Management",        "category": "administration"},
}

# Actions that need AccessLevel.FULL
MUTATING_ACTIONS = {Action.CREATE, Action.EDIT, Action.DELETE}

DEFAULT_ACCESS_LEVEL = AccessLevel.VIEW

# Defaults: role -> {permission: access level} applied when an account is created
# without an explicit grant list.
DEFAULT_PERMISSIONS = {
    "warden": {
        Permission.ATTENDANCE_MANAGEMENT: AccessLevel.FULL,
        Permission.LEAVE_MANAGEMENT: AccessLevel.FULL,
        Permission.OUTPASS_MANAGEMENT: AccessLevel.FULL,
        Permission.ROOM_MANAGEMENT: AccessLevel.VIEW,
        Permission.MENU_MANAGEMENT: AccessLevel.VIEW,
    },
    "principal": {
        Permission.ATTENDANCE_MANAGEMENT: AccessLevel.VIEW,
        Permission.LEAVE_MANAGEMENT: AccessLevel.FULL,
        Permission.STUDENT_MANAGEMENT: AccessLevel.VIEW,
    },
    "security": {
        Permission.LEAVE_MANAGEMENT: AccessLevel.VIEW,
        Permission.OUTPASS_MANAGEMENT: AccessLevel.VIEW,
    },
}


def permission_label(permission: Permission) -> str:
    """Human readable label for a permission"""
    return ALL_PERMISSIONS[Permission(permission)]["label"]
