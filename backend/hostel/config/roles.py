"""
Role hierarchy: which concrete account roles satisfy a required role.

Consulted by the client-side route guard and by the server's require_role
dependency so both agree on role semantics.
"""
import enum
from typing import FrozenSet, Optional


class Role(str, enum.Enum):
    """Account roles"""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    SUB_ADMIN = "sub_admin"
    CUSTOM = "custom"
    WARDEN = "warden"
    PRINCIPAL = "principal"
    SECURITY = "security"
    STUDENT = "student"


STAFF_ROLES = frozenset(role for role in Role if role != Role.STUDENT)

# required role -> roles that satisfy it
ROLE_HIERARCHY = {
    Role.ADMIN: frozenset({Role.ADMIN, Role.SUPER_ADMIN, Role.SUB_ADMIN, Role.CUSTOM}),
    Role.SUPER_ADMIN: frozenset({Role.SUPER_ADMIN}),
    Role.SUB_ADMIN: frozenset({Role.SUB_ADMIN}),
    Role.CUSTOM: frozenset({Role.CUSTOM}),
    Role.WARDEN: frozenset({Role.WARDEN}),
    Role.PRINCIPAL: frozenset({Role.PRINCIPAL}),
    Role.SECURITY: frozenset({Role.SECURITY}),
    Role.STUDENT: frozenset({Role.STUDENT}),
}


def accepted_roles(required: Role) -> FrozenSet[Role]:
    """Roles that satisfy a route's role requirement"""
    return ROLE_HIERARCHY[Role(required)]


def role_satisfies(actual: Optional[str], required: Optional[str]) -> bool:
    """
    Check whether an account role satisfies a required role.

    A missing requirement is always satisfied; a missing or unknown actual
    role never is.
    """
    if required is None:
        return True
    if actual is None:
        return False
    try:
        actual_role = Role(actual)
    except ValueError:
        return False
    return actual_role in accepted_roles(Role(required))
