"""
Unit tests for core.permissions module.
"""
import pytest

from dissertation_portal.core.permissions import (
    REGISTRABLE_ROLES,
    ROLE_PERMISSIONS,
    Permission,
    Role,
    has_permission,
    parse_role,
    permissions_for,
)


class TestPermissionTable:
    def test_every_role_has_an_entry(self):
        assert set(ROLE_PERMISSIONS) == set(Role)

    @pytest.mark.parametrize("role", [r.value for r in Role])
    def test_every_role_sees_dashboard(self, role):
        assert has_permission(role, Permission.VIEW_DASHBOARD)

    @pytest.mark.parametrize("role", [r.value for r in Role])
    def test_has_permission_matches_table(self, role):
        granted = ROLE_PERMISSIONS[Role(role)]
        for permission in granted:
            assert has_permission(role, permission) is True
        all_permissions = set().union(*ROLE_PERMISSIONS.values())
        for permission in all_permissions - granted:
            assert has_permission(role, permission) is False

    def test_only_admin_manages_onboarding(self):
        holders = {r for r in Role if has_permission(r, Permission.MANAGE_ONBOARDING)}
        assert holders == {Role.ADMIN}

    def test_student_permissions(self):
        assert permissions_for("student") == {
            "view_dashboard",
            "manage_own_topic",
            "track_progress",
            "manage_publications",
            "view_assigned_guides",
        }

    def test_enum_and_string_agree(self):
        assert permissions_for(Role.GUIDE) == permissions_for("guide")


class TestUnknownRoles:
    @pytest.mark.parametrize("role", ["superuser", "", "Admin", "ADMIN", None])
    def test_unknown_role_has_no_permissions(self, role):
        assert permissions_for(role) == frozenset()

    @pytest.mark.parametrize("role", ["superuser", "root", None])
    def test_unknown_role_denied_everything(self, role):
        all_permissions = set().union(*ROLE_PERMISSIONS.values())
        assert not any(has_permission(role, p) for p in all_permissions)

    def test_parse_role(self):
        assert parse_role("ethics_committee") is Role.ETHICS_COMMITTEE
        assert parse_role("dean") is None


def test_admin_is_not_registrable():
    assert "admin" not in REGISTRABLE_ROLES
    assert REGISTRABLE_ROLES == {r.value for r in Role} - {"admin"}
