"""
Navigation Service

Route guard decisions for the dashboard route table. Pure functions: the
same inputs always yield the same decision, and every failure is a
redirect rather than an error.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from hostel.config.roles import role_satisfies
from hostel.config.routes import (
    ADMIN_SECTIONS,
    DEFAULT_DASHBOARD_PATH,
    LOGIN_PATH,
    NOT_FOUND_PATH,
    PASSWORD_RESET_PATH,
    ROUTES,
    RouteSpec,
)
from hostel.services.permission_service import SectionDecision, check_section
from hostel.utils.pattern import match_path

logger = logging.getLogger(__name__)


class RouteAction(str, enum.Enum):
    RENDER = "render"
    PLACEHOLDER = "placeholder"
    REDIRECT = "redirect"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class RouteDecision:
    action: RouteAction
    target: Optional[str] = None
    from_path: Optional[str] = None
    reason: Optional[str] = None
    section: Optional[SectionDecision] = None
    params: Dict[str, str] = field(default_factory=dict)


def resolve_route(
    path: str,
    *,
    token: Optional[str],
    user: Any,
    loading: bool = False,
    requires_password_change: bool = False,
    require_auth: bool = True,
    require_password_change: bool = False,
    role: Optional[str] = None,
) -> RouteDecision:
    """
    Decide whether a guarded route may render.

    Args:
        path: Requested path, kept as ``from_path`` on redirects
        token: Current session token (None when logged out)
        user: Current user (anything with a ``role`` attribute)
        loading: Auth state still resolving
        requires_password_change: Account flag forcing the reset screen
        require_auth: Route needs a token
        require_password_change: Route is the password reset screen
        role: Required role, matched through the role hierarchy

    Returns:
        RouteDecision
    """
    if loading:
        return RouteDecision(RouteAction.PLACEHOLDER, reason="auth_loading")

    if require_auth and not token:
        return RouteDecision(RouteAction.REDIRECT, target=LOGIN_PATH, from_path=path, reason="unauthenticated")

    user_role = getattr(user, "role", None)
    user_role = user_role.value if hasattr(user_role, "value") else user_role
    if role and not role_satisfies(user_role, role):
        logger.info("Role mismatch on %s: required %s, got %s", path, role, user_role)
        return RouteDecision(RouteAction.REDIRECT, target=LOGIN_PATH, from_path=path, reason="role_mismatch")

    if require_auth and token and requires_password_change and not require_password_change:
        return RouteDecision(
            RouteAction.REDIRECT, target=PASSWORD_RESET_PATH, from_path=path, reason="password_change_required",
        )

    if require_password_change and (not token or not requires_password_change):
        return RouteDecision(
            RouteAction.REDIRECT, target=DEFAULT_DASHBOARD_PATH, from_path=path, reason="password_change_not_needed",
        )

    return RouteDecision(RouteAction.RENDER)


def match_route(path: str) -> Optional[Tuple[RouteSpec, Dict[str, str]]]:
    """First route table entry matching a path, with its captured params"""
    for spec in ROUTES:
        params = match_path(spec.pattern, path)
        if params is not None:
            return spec, params
    return None


def resolve_path(
    path: str,
    *,
    token: Optional[str],
    user: Any,
    loading: bool = False,
    requires_password_change: bool = False,
) -> RouteDecision:
    """
    Resolve a concrete path against the route table: route guard first,
    then the section guard for dashboard sections. Unknown paths resolve
    to the not-found page.
    """
    matched = match_route(path)
    if matched is None:
        return RouteDecision(RouteAction.NOT_FOUND, target=NOT_FOUND_PATH, from_path=path)

    spec, params = matched
    decision = resolve_route(
        path,
        token=token,
        user=user,
        loading=loading,
        requires_password_change=requires_password_change,
        require_auth=spec.require_auth,
        require_password_change=spec.require_password_change,
        role=spec.role.value if spec.role else None,
    )
    if decision.action != RouteAction.RENDER:
        return decision

    if spec.permission is not None:
        section = check_section(user, spec.permission, spec.section_name)
        return RouteDecision(RouteAction.RENDER, section=section, params=params)

    return RouteDecision(RouteAction.RENDER, params=params)


def dashboard_sections(user: Any) -> List[SectionDecision]:
    """Section guard outcome for every admin dashboard section"""
    return [check_section(user, spec.permission, spec.section_name) for spec in ADMIN_SECTIONS]
