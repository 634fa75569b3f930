"""
Role hierarchy, permission checks and route guard decisions
"""
from types import SimpleNamespace

import pytest

from hostel.config.permissions import AccessLevel, Permission
from hostel.config.roles import Role, role_satisfies
from hostel.services import navigation_service, permission_service
from hostel.services.navigation_service import RouteAction
from hostel.utils.pattern import match_path


def user(role, permissions=(), levels=None):
    return SimpleNamespace(role=role, permissions=list(permissions), permission_access_levels=levels or {})


@pytest.mark.parametrize("actual", ["admin", "super_admin", "sub_admin", "custom"])
def test_admin_requirement_accepts_staff_admin_roles(actual):
    assert role_satisfies(actual, Role.ADMIN.value)


@pytest.mark.parametrize("actual", ["warden", "principal", "security", "student", "bogus", None])
def test_admin_requirement_rejects_other_roles(actual):
    assert not role_satisfies(actual, Role.ADMIN.value)


def test_other_requirements_need_exact_role():
    assert role_satisfies("warden", "warden")
    assert not role_satisfies("super_admin", "warden")
    assert not role_satisfies("admin", "super_admin")
    assert role_satisfies("student", None)


def test_super_admin_has_full_access_everywhere():
    root = user("super_admin")
    for permission in Permission:
        assert permission_service.has_permission(root, permission)
        assert permission_service.get_access_level(root, permission) == AccessLevel.FULL
        assert permission_service.can_perform_action(root, permission, "delete")


def test_view_grant_allows_reads_only():
    warden = user("warden", ["room_management"], {"room_management": "view"})
    assert permission_service.can_perform_action(warden, Permission.ROOM_MANAGEMENT, "view")
    for action in ("create", "edit", "delete"):
        assert not permission_service.can_perform_action(warden, Permission.ROOM_MANAGEMENT, action)


def test_missing_level_defaults_to_view():
    sub = user("sub_admin", ["menu_management"])
    assert permission_service.get_access_level(sub, Permission.MENU_MANAGEMENT) == AccessLevel.VIEW


def test_unknown_action_is_denied():
    sub = user("sub_admin", ["menu_management"], {"menu_management": "full"})
    assert not permission_service.can_perform_action(sub, Permission.MENU_MANAGEMENT, "approve")


def test_ungranted_permission_denies_everything():
    sub = user("sub_admin", ["menu_management"], {"menu_management": "full"})
    assert permission_service.get_access_level(sub, Permission.ROOM_MANAGEMENT) is None
    assert not permission_service.can_perform_action(sub, Permission.ROOM_MANAGEMENT, "view")


def test_normalize_grants_accepts_enum_keys():
    granted, levels = permission_service.normalize_grants(
        [Permission.ROOM_MANAGEMENT, Permission.ROOM_MANAGEMENT, Permission.LEAVE_MANAGEMENT],
        {Permission.ROOM_MANAGEMENT: AccessLevel.FULL, Permission.MENU_MANAGEMENT: AccessLevel.FULL},
    )
    assert granted == ["room_management", "leave_management"]
    assert levels == {"room_management": "full", "leave_management": "view"}


def test_section_denial_carries_placeholder():
    decision = permission_service.check_section(user("sub_admin"), Permission.ROOM_MANAGEMENT, "Room Management")
    assert not decision.allowed
    assert decision.title == "Access Restricted"
    assert "Room Management" in decision.message


def test_match_path():
    assert match_path("/leave/qr/:id", "/leave/qr/abc") == {"id": "abc"}
    assert match_path("/leave/qr/:id", "/leave/qr") is None
    assert match_path("/student*", "/student") == {}
    assert match_path("/student*", "/student/bills/2024") == {}
    assert match_path("/student*", "/students") is None


class TestRouteGuard:

    def test_loading_renders_placeholder(self):
        decision = navigation_service.resolve_path("/student", token=None, user=None, loading=True)
        assert decision.action == RouteAction.PLACEHOLDER

    def test_logged_out_redirects_to_login_with_origin(self):
        decision = navigation_service.resolve_path("/admin/dashboard/rooms", token=None, user=None)
        assert decision.action == RouteAction.REDIRECT
        assert decision.target == "/login"
        assert decision.from_path == "/admin/dashboard/rooms"

    def test_role_mismatch_redirects_to_login(self):
        decision = navigation_service.resolve_path("/admin/dashboard", token="t", user=user("student"))
        assert decision.action == RouteAction.REDIRECT
        assert decision.reason == "role_mismatch"

    def test_password_change_forces_reset_screen(self):
        decision = navigation_service.resolve_path(
            "/student/bills", token="t", user=user("student"), requires_password_change=True,
        )
        assert decision.target == "/student/reset-password"

    def test_reset_screen_without_flag_goes_to_dashboard(self):
        decision = navigation_service.resolve_path("/student/reset-password", token="t", user=user("student"))
        assert decision.action == RouteAction.REDIRECT
        assert decision.target == "/student"

    def test_reset_screen_with_flag_renders(self):
        decision = navigation_service.resolve_path(
            "/student/reset-password", token="t", user=user("student"), requires_password_change=True,
        )
        assert decision.action == RouteAction.RENDER

    def test_public_qr_route_captures_id(self):
        decision = navigation_service.resolve_path("/leave/incoming-qr/42", token=None, user=None)
        assert decision.action == RouteAction.RENDER
        assert decision.params == {"id": "42"}

    def test_section_guard_runs_after_role_guard(self):
        sub = user("sub_admin", ["menu_management"])
        allowed = navigation_service.resolve_path("/admin/dashboard/menu", token="t", user=sub)
        denied = navigation_service.resolve_path("/admin/dashboard/rooms", token="t", user=sub)
        assert allowed.section.allowed
        assert denied.action == RouteAction.RENDER
        assert not denied.section.allowed

    def test_unknown_path_is_not_found(self):
        decision = navigation_service.resolve_path("/nowhere", token=None, user=None)
        assert decision.action == RouteAction.NOT_FOUND
