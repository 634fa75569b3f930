"""
Permission Service

Section gating and access-level checks. Works on any user object exposing
``role``, ``permissions`` and ``permission_access_levels``. The server's
CurrentUser and the client's SessionUser both qualify.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from hostel.config.permissions import (
    ALL_PERMISSIONS,
    DEFAULT_ACCESS_LEVEL,
    MUTATING_ACTIONS,
    AccessLevel,
    Action,
    Permission,
)
from hostel.config.roles import Role

logger = logging.getLogger(__name__)

ACCESS_RESTRICTED_TITLE = "Access Restricted"
ACCESS_RESTRICTED_MESSAGE = (
    "You don't have permission to access the {section_name} section. "
    "Please contact your super admin to request access."
)


@dataclass(frozen=True)
class SectionDecision:
    """Outcome of a section guard check"""
    allowed: bool
    section_name: str
    access_level: Optional[AccessLevel] = None
    title: Optional[str] = None
    message: Optional[str] = None


def _role_of(user: Any) -> Optional[str]:
    role = getattr(user, "role", None)
    return role.value if hasattr(role, "value") else role


def _permissions_of(user: Any) -> List[str]:
    return [
        p.value if hasattr(p, "value") else p
        for p in (getattr(user, "permissions", None) or [])
    ]


def _levels_of(user: Any) -> Mapping[str, Any]:
    return getattr(user, "permission_access_levels", None) or {}


def is_super_admin(user: Any) -> bool:
    return user is not None and _role_of(user) == Role.SUPER_ADMIN.value


def has_permission(user: Any, permission: Permission) -> bool:
    """Presence check; super admins hold every permission"""
    if user is None:
        return False
    if is_super_admin(user):
        return True
    return Permission(permission).value in _permissions_of(user)


def get_access_level(user: Any, permission: Permission) -> Optional[AccessLevel]:
    """Access level for a permission, or None when it is not granted"""
    if user is None:
        return None
    if is_super_admin(user):
        return AccessLevel.FULL
    if not has_permission(user, permission):
        return None
    level = _levels_of(user).get(Permission(permission).value)
    if level is None:
        return DEFAULT_ACCESS_LEVEL
    return AccessLevel(level.value if hasattr(level, "value") else level)


def has_full_access(user: Any, permission: Permission) -> bool:
    return get_access_level(user, permission) == AccessLevel.FULL


def can_perform_action(user: Any, permission: Permission, action: str) -> bool:
    """
    Check whether a user may perform an action within a permission.

    ``view`` only needs the permission; create/edit/delete need full access.
    Unknown actions are denied.
    """
    try:
        action = Action(action)
    except ValueError:
        logger.warning("Unknown action %r checked against %s", action, permission)
        return False

    level = get_access_level(user, permission)
    if level is None:
        return False
    if action in MUTATING_ACTIONS:
        return level == AccessLevel.FULL
    return True


def check_section(user: Any, permission: Permission, section_name: str) -> SectionDecision:
    """
    Section guard: allowed iff the user is a super admin or holds the
    permission. A denied section carries the fixed "Access Restricted"
    placeholder with the section name filled in.
    """
    if has_permission(user, permission):
        return SectionDecision(
            allowed=True,
            section_name=section_name,
            access_level=get_access_level(user, permission),
        )
    return SectionDecision(
        allowed=False,
        section_name=section_name,
        title=ACCESS_RESTRICTED_TITLE,
        message=ACCESS_RESTRICTED_MESSAGE.format(section_name=section_name),
    )


def all_access_levels(user: Any) -> Dict[str, AccessLevel]:
    """Every granted permission with its effective access level"""
    if is_super_admin(user):
        return {p.value: AccessLevel.FULL for p in ALL_PERMISSIONS}
    return {
        key: get_access_level(user, Permission(key))
        for key in _permissions_of(user)
        if key in Permission._value2member_map_
    }


def normalize_grants(
    permissions: List[Permission],
    access_levels: Optional[Mapping[str, AccessLevel]] = None,
) -> tuple[List[str], Dict[str, str]]:
    """
    Deduplicate permissions and keep access levels only for granted ones.
    Granted permissions without a level get the default level.
    """
    granted: List[str] = []
    for permission in permissions:
        value = Permission(permission).value
        if value not in granted:
            granted.append(value)

    levels: Dict[str, str] = {}
    access_levels = {
        getattr(key, "value", key): level
        for key, level in (access_levels or {}).items()
    }
    for key in granted:
        level = access_levels.get(key, DEFAULT_ACCESS_LEVEL)
        levels[key] = AccessLevel(level).value
    return granted, levels
